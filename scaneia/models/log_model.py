from ..extensions import db
from . import generate_id, utcnow


LOG_LEVELS = ("INFO", "WARNING", "ERROR")


class Log(db.Model):
    __tablename__ = "logs"

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    timestamp = db.Column(db.DateTime, default=utcnow, index=True)
    level = db.Column(db.String(10), nullable=False, default="INFO")
    message = db.Column(db.Text, nullable=False)
    scan_id = db.Column(db.String(32), nullable=True, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "level": self.level,
            "message": self.message,
            "scanId": self.scan_id,
        }
