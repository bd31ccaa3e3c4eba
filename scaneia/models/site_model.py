from ..extensions import db
from . import generate_id, utcnow


class Site(db.Model):
    __tablename__ = "sites"

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    owner_id = db.Column(db.String(32), nullable=False, index=True)
    url = db.Column(db.String(2048), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
