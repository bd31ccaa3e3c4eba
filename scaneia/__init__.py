import logging
import os
from flask import Flask, render_template, request, session
from .config import Config
from .extensions import db, init_executor


NAV_LINKS = [
    ("/dashboard", "Dashboard"),
    ("/sites", "Meus Sites"),
    ("/scans", "Varreduras"),
    ("/reports", "Relatórios"),
]

SEVERITY_BADGES = {
    "Crítica": "badge-critical",
    "Alta": "badge-high",
    "Média": "badge-medium",
    "Baixa": "badge-low",
}


def create_app(overrides=None):

    app = Flask(__name__)

    app.static_folder = os.path.join(os.path.dirname(__file__), "static")
    app.template_folder = os.path.join(os.path.dirname(__file__), "templates")

    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    db.init_app(app)
    init_executor(app)

    from .routes.auth_routes import auth
    from .routes.dashboard_routes import dashboard
    from .routes.site_routes import sites
    from .routes.scan_routes import scan
    from .routes.profile_routes import profile
    from .routes.log_routes import logs

    app.register_blueprint(auth)
    app.register_blueprint(dashboard)
    app.register_blueprint(sites)
    app.register_blueprint(scan)
    app.register_blueprint(profile)
    app.register_blueprint(logs)

    @app.context_processor
    def navbar():
        signed_in = "user_id" in session
        email = session.get("username", "")
        return {
            "signed_in": signed_in,
            "nav_links": [
                {"href": href, "label": label, "active": request.path == href}
                for href, label in NAV_LINKS
            ] if signed_in else [],
            "nav_home_active": request.path == "/",
            "user_email": email,
            "user_initial": email[:1].upper() if email else "U",
        }

    @app.template_filter("ptbr_datetime")
    def ptbr_datetime(value):
        if not value:
            return ""
        return value.strftime("%d/%m/%Y %H:%M:%S")

    @app.template_filter("severity_badge")
    def severity_badge(severity):
        return SEVERITY_BADGES.get(severity, "badge-unknown")

    @app.route("/")
    def home():
        return render_template("index.html")

    with app.app_context():
        from .models.user_model import Account, User
        from .models.site_model import Site
        from .models.scan_model import Scan
        from .models.log_model import Log
        db.create_all()

    return app
