from __future__ import annotations

from flask import Blueprint, current_app, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user  # type: ignore

from ..extensions import limiter
from ..forms.auth import LoginForm
from ..models import User
from ..security import LoginUser, verify_password

auth_bp = Blueprint("auth", __name__)


def _login_rate_limit() -> str:
    return current_app.config.get("LOGIN_RATE_LIMIT", "20 per minute")


def _next_url() -> str:
    target = request.args.get("next", "")
    # Only same-site paths; "//host" would leave the site.
    if target.startswith("/") and not target.startswith("//"):
        return target
    return url_for("auth.index")


@auth_bp.route("/")
def index():
    if current_user.is_authenticated:
        return render_template("index.html")
    return redirect(url_for("auth.login"))


@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit(_login_rate_limit, methods=["POST"])
def login():
    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(email=form.email.data).first()
        if user and verify_password(user.password_hash, form.password.data):
            login_user(LoginUser(user), remember=form.remember.data)
            return redirect(_next_url())
        current_app.logger.info("Failed login for %s", form.email.data)
        form.password.errors.append("Invalid credentials.")
    return render_template("auth/login.html", form=form)


@auth_bp.route("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("auth.login"))
