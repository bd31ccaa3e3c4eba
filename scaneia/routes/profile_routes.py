from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for
from sqlalchemy.exc import SQLAlchemyError
from ..extensions import db
from ..services import identity_service, store
from ..services.identity_service import IdentityError
from .auth_routes import auth_error_message, validate_new_password
from .guards import login_required

profile = Blueprint("profile", __name__, url_prefix="/profile")


@profile.route("")
@login_required
def profile_home():
    user = store.get_user(session["user_id"])
    return render_template(
        "profile/profile.html",
        user=user,
        display_name=user.name if user else "",
        email=session.get("username", ""),
    )


@profile.route("/name", methods=["POST"])
@login_required
def update_name():
    display_name = request.form.get("displayName", "").strip()
    user = store.get_user(session["user_id"])
    try:
        if user and display_name != user.name:
            store.update_user_profile(session["user_id"], name=display_name)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Profile update failed")
        flash("Erro ao atualizar perfil. Tente novamente.", "error")
        return redirect(url_for("profile.profile_home"))

    flash("Perfil atualizado com sucesso!", "success")
    return redirect(url_for("profile.profile_home"))


@profile.route("/email", methods=["POST"])
@login_required
def update_email():
    uid = session["user_id"]
    email = request.form.get("email", "").strip()
    current_password = request.form.get("currentPassword", "")

    try:
        identity_service.reauthenticate(uid, current_password)
        if email.lower() != session.get("username", ""):
            account = identity_service.update_email(uid, email)
            if store.get_user(uid):
                store.update_user_profile(uid, email=account.email)
            session["username"] = account.email
    except IdentityError as exc:
        flash(f"Erro ao atualizar email: {auth_error_message(exc.code)}", "error")
        return redirect(url_for("profile.profile_home"))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Email update failed")
        flash("Erro ao atualizar email. Tente novamente.", "error")
        return redirect(url_for("profile.profile_home"))

    flash("Email atualizado com sucesso!", "success")
    return redirect(url_for("profile.profile_home"))


@profile.route("/password", methods=["POST"])
@login_required
def update_password():
    uid = session["user_id"]
    current_password = request.form.get("currentPassword", "")
    new_password = request.form.get("newPassword", "")
    confirm_password = request.form.get("confirmPassword", "")

    if new_password != confirm_password:
        flash("As senhas não coincidem", "error")
        return redirect(url_for("profile.profile_home"))
    error = validate_new_password(new_password, confirm_password)
    if error:
        flash(error, "error")
        return redirect(url_for("profile.profile_home"))

    try:
        identity_service.reauthenticate(uid, current_password)
        identity_service.update_password(uid, new_password)
    except IdentityError as exc:
        flash(f"Erro ao atualizar senha: {auth_error_message(exc.code)}", "error")
        return redirect(url_for("profile.profile_home"))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Password update failed")
        flash("Erro ao atualizar senha. Tente novamente.", "error")
        return redirect(url_for("profile.profile_home"))

    flash("Senha atualizada com sucesso!", "success")
    return redirect(url_for("profile.profile_home"))
