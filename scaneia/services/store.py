"""
Record accessors over the SQL store.

Reads return the record or None. Writes commit immediately and let any
SQLAlchemyError reach the caller as-is.
"""
from ..extensions import db
from ..models import utcnow
from ..models.log_model import Log
from ..models.scan_model import Scan
from ..models.site_model import Site
from ..models.user_model import User


# Users

def create_user(uid, name, email):
    user = User(id=uid, name=name or "", email=email)
    db.session.add(user)
    db.session.commit()
    return user


def get_user(uid):
    if not uid:
        return None
    return db.session.get(User, uid)


def update_user_profile(uid, **fields):
    user = db.session.get(User, uid)
    if user is None:
        return None
    for key in ("name", "email"):
        if key in fields:
            setattr(user, key, fields[key])
    db.session.commit()
    return user


# Sites

def add_site(owner_id, url, description=""):
    site = Site(owner_id=owner_id, url=url, description=description or "")
    db.session.add(site)
    db.session.commit()
    return site.id


def get_site(site_id):
    if not site_id:
        return None
    return db.session.get(Site, site_id)


def get_user_sites(owner_id):
    return Site.query.filter_by(owner_id=owner_id).order_by(Site.created_at.desc()).all()


def update_site(site_id, **fields):
    site = db.session.get(Site, site_id)
    if site is None:
        return None
    for key in ("url", "description"):
        if key in fields:
            setattr(site, key, fields[key])
    site.updated_at = utcnow()
    db.session.commit()
    return site


def delete_site(site_id):
    site = db.session.get(Site, site_id)
    if site is None:
        return False
    db.session.delete(site)
    db.session.commit()
    return True


# Scans

def add_scan(site_id, vulnerabilities, report):
    scan = Scan(site_id=site_id, vulnerabilities=list(vulnerabilities), report=report)
    db.session.add(scan)
    db.session.commit()
    return scan.id


def get_scan(scan_id):
    if not scan_id:
        return None
    return db.session.get(Scan, scan_id)


def get_site_scan_history(site_id):
    return Scan.query.filter_by(site_id=site_id).order_by(Scan.timestamp.desc()).all()


def get_scans_for_sites(site_ids):
    site_ids = list(site_ids)
    if not site_ids:
        return []
    return Scan.query.filter(Scan.site_id.in_(site_ids)).order_by(Scan.timestamp.desc()).all()


# Logs

def add_log(level, message, scan_id=None):
    log = Log(level=level, message=message, scan_id=scan_id)
    db.session.add(log)
    db.session.commit()
    return log.id


def get_logs_for_scans(scan_ids, limit=200):
    scan_ids = list(scan_ids)
    if not scan_ids:
        return []
    return (
        Log.query.filter(Log.scan_id.in_(scan_ids))
        .order_by(Log.timestamp.desc())
        .limit(limit)
        .all()
    )
