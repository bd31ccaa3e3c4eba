import csv
import io
from flask import Blueprint, Response, current_app, flash, jsonify, redirect, render_template, request, session, url_for
from sqlalchemy.exc import SQLAlchemyError
from ..models.scan_model import SEVERITIES
from ..services import scan_service, store
from ..services.report_service import scan_rows
from .guards import login_required, owned_site

scan = Blueprint("scan", __name__, url_prefix="/scans")


@scan.route("")
@login_required
def list_scans():
    try:
        sites = store.get_user_sites(session["user_id"])
        scans = store.get_scans_for_sites(site.id for site in sites)
    except SQLAlchemyError:
        current_app.logger.exception("Could not load scans")
        flash("Erro ao carregar varreduras.", "error")
        sites, scans = [], []
    return render_template("scans/list.html", rows=scan_rows(sites, scans))


@scan.route("/new", methods=["GET", "POST"])
@login_required
def new_scan():
    site_id = request.args.get("siteId", "")
    site = owned_site(site_id)
    if site is None:
        return redirect(url_for("sites.list_sites"))

    if request.method == "POST":
        cfg = current_app.config
        ok, retry_after = scan_service.rate_limiter.hit(
            session["user_id"], cfg["SCAN_RATE_LIMIT"], cfg["SCAN_RATE_WINDOW_SEC"]
        )
        if not ok:
            flash(f"Limite de varreduras atingido. Tente novamente em {retry_after} segundos.", "error")
            return redirect(url_for("scan.new_scan", siteId=site.id))

        job = scan_service.start_scan(site.id, session["user_id"])
        if job.state == scan_service.COMPLETE:
            return redirect(url_for("scan.scan_detail", scan_id=job.scan_id))
        if job.state == scan_service.FAILED:
            flash(job.error, "error")
            return redirect(url_for("scan.new_scan", siteId=site.id))
        return redirect(url_for("scan.new_scan", siteId=site.id, job=job.id))

    job = None
    job_id = request.args.get("job")
    if job_id:
        found = scan_service.jobs.get(job_id)
        if found and found.owner_id == session["user_id"]:
            job = found.to_dict()

    return render_template("scans/new.html", site=site, job=job)


@scan.route("/jobs/<job_id>")
@login_required
def job_status(job_id):
    job = scan_service.jobs.get(job_id)
    if job is None or job.owner_id != session["user_id"]:
        return jsonify({"error": "not_found"}), 404

    payload = job.to_dict()
    if job.scan_id:
        payload["scanUrl"] = url_for("scan.scan_detail", scan_id=job.scan_id)
    return jsonify(payload)


@scan.route("/export.csv")
@login_required
def export_csv():
    sites = store.get_user_sites(session["user_id"])
    rows = scan_rows(sites, store.get_scans_for_sites(site.id for site in sites))

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["timestamp", "site_url", "vulnerabilities", *SEVERITIES])
    for row in rows:
        item = row["scan"]
        counts = item.severity_counts()
        writer.writerow([
            item.timestamp.isoformat() if item.timestamp else "",
            row["siteUrl"],
            len(item.vulnerabilities or []),
            *(counts[severity] for severity in SEVERITIES),
        ])

    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=scaneia_varreduras.csv"},
    )


@scan.route("/<scan_id>")
@login_required
def scan_detail(scan_id):
    found = store.get_scan(scan_id)
    if found is None:
        return redirect(url_for("scan.list_scans"))

    site = owned_site(found.site_id)
    if site is None:
        return redirect(url_for("scan.list_scans"))

    return render_template(
        "scans/detail.html",
        scan=found,
        site=site,
        severity_counts=found.severity_counts(),
    )
