import uuid
from datetime import datetime, timezone


def generate_id():
    return uuid.uuid4().hex


def utcnow():
    # Naive UTC, the same shape SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)
