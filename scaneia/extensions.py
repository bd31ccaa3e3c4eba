from concurrent.futures import ThreadPoolExecutor

from flask import current_app
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def init_executor(app):
    """One scan worker pool per app, sized from SCAN_WORKERS."""
    pool = ThreadPoolExecutor(max_workers=app.config["SCAN_WORKERS"], thread_name_prefix="scan")
    app.extensions["scan_executor"] = pool
    return pool


def get_executor():
    return current_app.extensions.get("scan_executor")
