from urllib.parse import urlparse
from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, session, url_for
from sqlalchemy.exc import SQLAlchemyError
from ..extensions import db
from ..services import ai_service, store
from .guards import login_required, owned_site

sites = Blueprint("sites", __name__, url_prefix="/sites")

INVALID_URL_MESSAGE = "Por favor, insira uma URL válida, incluindo http:// ou https://"


def validate_url(url):
    cleaned = (url or "").strip()
    if not cleaned or any(c.isspace() for c in cleaned):
        return False
    try:
        parsed = urlparse(cleaned)
        # .port raises on a malformed port
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc and parsed.hostname)


def _wants_json():
    return request.accept_mimetypes.best == "application/json" or request.is_json


@sites.route("")
@login_required
def list_sites():
    try:
        user_sites = store.get_user_sites(session["user_id"])
    except SQLAlchemyError:
        current_app.logger.exception("Could not load sites")
        flash("Erro ao carregar sites.", "error")
        user_sites = []
    return render_template("sites/list.html", sites=user_sites)


@sites.route("/add", methods=["GET", "POST"])
@login_required
def add_site():
    if request.method == "POST":
        url = request.form.get("url", "").strip()
        if not validate_url(url):
            flash(INVALID_URL_MESSAGE, "error")
            return render_template("sites/add.html", url=url), 400

        description = ai_service.analyze_url(url)
        try:
            store.add_site(session["user_id"], url, description)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Could not add site %s", url)
            flash("Ocorreu um erro ao adicionar o site. Tente novamente.", "error")
            return render_template("sites/add.html", url=url), 500

        flash("Site adicionado com sucesso.", "success")
        return redirect(url_for("sites.list_sites"))

    return render_template("sites/add.html", url="")


@sites.route("/<site_id>")
@login_required
def site_detail(site_id):
    site = owned_site(site_id)
    if site is None:
        return redirect(url_for("sites.list_sites"))

    scans = store.get_site_scan_history(site.id)
    return render_template("sites/detail.html", site=site, scans=scans)


@sites.route("/<site_id>/edit", methods=["GET", "POST"])
@login_required
def edit_site(site_id):
    site = owned_site(site_id)
    if site is None:
        return redirect(url_for("sites.list_sites"))

    if request.method == "POST":
        url = request.form.get("url", "").strip()
        description = request.form.get("description", "").strip()
        if not validate_url(url):
            flash(INVALID_URL_MESSAGE, "error")
            return render_template("sites/edit.html", site=site, url=url, description=description), 400

        try:
            store.update_site(site.id, url=url, description=description)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Could not update site %s", site.id)
            flash("Erro ao atualizar site. Tente novamente.", "error")
            return render_template("sites/edit.html", site=site, url=url, description=description), 500

        flash("Site atualizado com sucesso.", "success")
        return redirect(url_for("sites.site_detail", site_id=site.id))

    return render_template("sites/edit.html", site=site, url=site.url, description=site.description)


@sites.route("/<site_id>/delete", methods=["POST"])
@login_required
def delete_site(site_id):
    site = owned_site(site_id)
    if site is None:
        if _wants_json():
            return jsonify({"error": "not_found"}), 404
        return redirect(url_for("sites.list_sites"))

    try:
        store.delete_site(site.id)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Could not delete site %s", site_id)
        if _wants_json():
            return jsonify({"error": "Erro ao excluir site. Tente novamente."}), 500
        flash("Erro ao excluir site. Tente novamente.", "error")
        return redirect(url_for("sites.list_sites"))

    if _wants_json():
        return jsonify({"deleted": site_id})
    flash("Site excluído.", "success")
    return redirect(url_for("sites.list_sites"))
