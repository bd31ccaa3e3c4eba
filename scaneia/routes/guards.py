from functools import wraps
from flask import redirect, session, url_for
from ..services import store


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return redirect(url_for("auth.login"))
        return view(*args, **kwargs)
    return wrapper


def owned_site(site_id):
    """The site when it exists and belongs to the signed-in user, else None."""
    site = store.get_site(site_id)
    if site is None or site.owner_id != session.get("user_id"):
        return None
    return site
