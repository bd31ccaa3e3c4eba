from flask import Blueprint, current_app, flash, render_template, request, redirect, session, url_for
from sqlalchemy.exc import SQLAlchemyError
from ..extensions import db
from ..services import identity_service, store
from ..services.identity_service import IdentityError, MIN_PASSWORD_LENGTH

auth = Blueprint("auth", __name__, url_prefix="/auth")

GENERIC_SIGNUP_ERROR = "Falha ao criar conta. Tente novamente."
GENERIC_LOGIN_ERROR = "Falha ao fazer login. Verifique suas credenciais."

AUTH_ERROR_MESSAGES = {
    "auth/email-already-in-use": "Este e-mail já está em uso.",
    "auth/invalid-email": "E-mail inválido.",
    "auth/weak-password": "A senha é muito fraca.",
    "auth/invalid-credential": "E-mail ou senha inválidos.",
    "auth/user-not-found": "Usuário não encontrado.",
    "auth/wrong-password": "Senha atual incorreta.",
    "auth/requires-recent-login": "Informe sua senha atual para continuar.",
}


def auth_error_message(code, default=GENERIC_SIGNUP_ERROR):
    return AUTH_ERROR_MESSAGES.get(code, default)


def validate_new_password(password, confirm_password):
    """Inline check done before any account call. Returns an error message or None."""
    if password != confirm_password:
        return "As senhas não conferem."
    if len(password or "") < MIN_PASSWORD_LENGTH:
        return f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres."
    return None


def _sign_in_session(uid, email):
    session.clear()
    session["user_id"] = uid
    session["username"] = email


def _discard_account(uid):
    # Every account keeps a matching users row
    try:
        identity_service.delete_account(uid)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Could not remove account %s after failed signup", uid)


@auth.route("/signup", methods=["GET", "POST"])
def signup():
    if request.method == "POST":
        name = request.form.get("name", "").strip()
        email = request.form.get("email", "").strip()
        password = request.form.get("password", "")
        confirm_password = request.form.get("confirmPassword", "")

        error = validate_new_password(password, confirm_password)
        if error:
            flash(error, "error")
            return render_template("auth/signup.html", name=name, email=email), 400

        uid = None
        try:
            uid = identity_service.create_account(email, password)
            store.create_user(uid, name, email.lower())
        except IdentityError as exc:
            flash(auth_error_message(exc.code), "error")
            return render_template("auth/signup.html", name=name, email=email), 400
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Signup failed for %s", email)
            if uid:
                _discard_account(uid)
            flash(GENERIC_SIGNUP_ERROR, "error")
            return render_template("auth/signup.html", name=name, email=email), 500

        _sign_in_session(uid, email.lower())
        return redirect(url_for("dashboard.dashboard_home"))

    return render_template("auth/signup.html", name="", email="")


@auth.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email", "")
        password = request.form.get("password", "")

        try:
            account = identity_service.sign_in(email, password)
        except IdentityError as exc:
            flash(auth_error_message(exc.code, GENERIC_LOGIN_ERROR), "error")
            return render_template("auth/login.html", email=email), 401

        _sign_in_session(account.id, account.email)
        return redirect(url_for("dashboard.dashboard_home"))

    return render_template("auth/login.html", email="")


@auth.route("/logout")
def logout():
    session.clear()
    return redirect(url_for("auth.login"))

