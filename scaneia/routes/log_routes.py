from flask import Blueprint, current_app, flash, render_template, session
from sqlalchemy.exc import SQLAlchemyError
from ..services import ai_service, store
from .guards import login_required

logs = Blueprint("logs", __name__, url_prefix="/logs")


def _user_logs(uid):
    try:
        sites = store.get_user_sites(uid)
        scans = store.get_scans_for_sites(site.id for site in sites)
        return store.get_logs_for_scans(scan.id for scan in scans)
    except SQLAlchemyError:
        current_app.logger.exception("Could not load logs")
        flash("Erro ao carregar logs.", "error")
        return []


@logs.route("")
@login_required
def list_logs():
    return render_template("logs/logs.html", logs=_user_logs(session["user_id"]), analysis=None)


@logs.route("/analyze", methods=["POST"])
@login_required
def analyze():
    entries = _user_logs(session["user_id"])
    if entries:
        analysis = ai_service.analyze_logs(entry.to_dict() for entry in entries)
    else:
        analysis = "Nenhum log disponível para análise."
    return render_template("logs/logs.html", logs=entries, analysis=analysis)
