from flask import Blueprint, current_app, flash, render_template, request, session
from sqlalchemy.exc import SQLAlchemyError
from ..services import store
from ..services.report_service import compute_statistics, severity_share, types_ranked, TOP_TYPES
from .guards import login_required


dashboard = Blueprint("dashboard", __name__)


@dashboard.route("/dashboard")
@login_required
def dashboard_home():
    try:
        sites = store.get_user_sites(session["user_id"])
    except SQLAlchemyError:
        current_app.logger.exception("Could not load sites for dashboard")
        flash("Erro ao carregar sites.", "error")
        sites = []

    return render_template(
        "dashboard/dashboard.html",
        sites=sites,
        username=session.get("username", "Usuário"),
    )


@dashboard.route("/reports")
@login_required
def reports():
    show_all_types = request.args.get("all_types") == "1"
    try:
        sites = store.get_user_sites(session["user_id"])
        scans = store.get_scans_for_sites(site.id for site in sites)
    except SQLAlchemyError:
        current_app.logger.exception("Could not load report statistics")
        flash("Erro ao carregar estatísticas.", "error")
        sites, scans = [], []

    stats = compute_statistics(sites, scans)
    total = stats["totalVulnerabilities"]
    severity_rows = [
        {"severity": severity, "count": count, "share": severity_share(count, total)}
        for severity, count in stats["vulnerabilitiesBySeverity"].items()
    ]

    return render_template(
        "reports/reports.html",
        stats=stats,
        severity_rows=severity_rows,
        type_rows=types_ranked(stats["vulnerabilitiesByType"], None if show_all_types else TOP_TYPES),
        has_more_types=not show_all_types and len(stats["vulnerabilitiesByType"]) > TOP_TYPES,
    )
