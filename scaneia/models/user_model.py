from ..extensions import db
from . import generate_id, utcnow


class User(db.Model):
    """Profile document. Credentials live on Account."""

    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    name = db.Column(db.String(200), nullable=False, default="")
    email = db.Column(db.String(320), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)


class Account(db.Model):
    __tablename__ = "accounts"

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    email = db.Column(db.String(320), unique=True, nullable=False)
    password = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
