import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")

    _db_url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URI") or ""
    # Some providers hand out postgres://, SQLAlchemy only accepts postgresql://
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)

    SQLALCHEMY_DATABASE_URI = _db_url or "sqlite:///scaneia.db"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    # Keep False for local dev, set to 1 behind HTTPS
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "0") == "1"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4")
    OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))

    # Simulated scan: total duration and progress tick, in seconds
    SCAN_DURATION_SEC = float(os.getenv("SCAN_DURATION_SEC", "5"))
    SCAN_TICK_SEC = float(os.getenv("SCAN_TICK_SEC", "1"))
    SCAN_ASYNC = os.getenv("SCAN_ASYNC", "1") == "1"
    SCAN_WORKERS = int(os.getenv("SCAN_WORKERS", "4"))
    SCAN_JOB_TTL_SEC = int(os.getenv("SCAN_JOB_TTL_SEC", "600"))

    SCAN_RATE_LIMIT = int(os.getenv("SCAN_RATE_LIMIT", "10"))
    SCAN_RATE_WINDOW_SEC = int(os.getenv("SCAN_RATE_WINDOW_SEC", "60"))
