from __future__ import annotations

from functools import wraps

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    url_for,
)
from flask_login import current_user, login_required  # type: ignore

from ..forms.admin import PartnerProjectsForm
from ..models import Project
from ..services.partner_service import get_partner_service

admin_bp = Blueprint("admin", __name__)


def admin_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            flash("Administrator access required.", "danger")
            return redirect(url_for("auth.login"))
        return func(*args, **kwargs)

    return login_required(wrapper)


@admin_bp.route("/partners")
@admin_required
def partners():
    service = get_partner_service()
    return render_template("admin/partners.html", partners=service.get_list())


@admin_bp.route("/partners/<code>", methods=["GET", "POST"])
@admin_required
def edit_partner(code: str):
    service = get_partner_service()
    if not service.registry.has_backend(code):
        abort(404)

    details = service.get_details(code)
    form = PartnerProjectsForm()
    form.projects.choices = [
        (project.id, project.title)
        for project in Project.query.order_by(Project.title).all()
    ]

    if form.validate_on_submit():
        result = service.update(code, form.projects.data)
        if result:
            flash(f"Updated projects for partner {details['name']}.", "success")
            return redirect(url_for("admin.partners"))
        current_app.logger.error(
            "Failed to update partner %s projects: %s", code, result.error
        )
        flash("Failed to update the partner's projects.", "danger")
    elif not form.is_submitted():
        form.projects.data = list(details["projects"].keys())

    return render_template("admin/partner_edit.html", form=form, partner=details)
