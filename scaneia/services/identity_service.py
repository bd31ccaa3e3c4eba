import re
from werkzeug.security import check_password_hash, generate_password_hash
from ..extensions import db
from ..models.user_model import Account

MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class IdentityError(Exception):
    """Account failure carrying a provider-style code such as auth/weak-password."""

    def __init__(self, code):
        super().__init__(code)
        self.code = code


def _normalize_email(email):
    return (email or "").strip().lower()


def _check_email(email):
    if not _EMAIL_RE.match(email):
        raise IdentityError("auth/invalid-email")


def _check_password(password):
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise IdentityError("auth/weak-password")


def create_account(email, password):
    email = _normalize_email(email)
    _check_email(email)
    _check_password(password)

    if Account.query.filter_by(email=email).first():
        raise IdentityError("auth/email-already-in-use")

    account = Account(email=email, password=generate_password_hash(password))
    db.session.add(account)
    db.session.commit()
    return account.id


def sign_in(email, password):
    email = _normalize_email(email)
    if not email:
        raise IdentityError("auth/invalid-email")

    account = Account.query.filter_by(email=email).first()
    if not account or not check_password_hash(account.password, password or ""):
        raise IdentityError("auth/invalid-credential")
    return account


def reauthenticate(uid, password):
    account = db.session.get(Account, uid)
    if account is None:
        raise IdentityError("auth/user-not-found")
    if not password:
        raise IdentityError("auth/requires-recent-login")
    if not check_password_hash(account.password, password):
        raise IdentityError("auth/wrong-password")
    return account


def update_email(uid, email):
    email = _normalize_email(email)
    _check_email(email)

    account = db.session.get(Account, uid)
    if account is None:
        raise IdentityError("auth/user-not-found")
    if account.email == email:
        return account

    taken = Account.query.filter_by(email=email).first()
    if taken and taken.id != uid:
        raise IdentityError("auth/email-already-in-use")

    account.email = email
    db.session.commit()
    return account


def update_password(uid, new_password):
    _check_password(new_password)

    account = db.session.get(Account, uid)
    if account is None:
        raise IdentityError("auth/user-not-found")
    account.password = generate_password_hash(new_password)
    db.session.commit()
    return account


def delete_account(uid):
    account = db.session.get(Account, uid)
    if account is None:
        return False
    db.session.delete(account)
    db.session.commit()
    return True
