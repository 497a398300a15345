from __future__ import annotations

from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    render_template,
    request,
)
from flask_login import current_user, login_required  # type: ignore

from ..constants import ROLE_CUSTOMER
from ..forms.issue import NO_CATEGORY, IssuePartnersForm, PhoneEntryForm
from ..models import Issue, User
from ..services.access_service import can_access_issue, has_role_above
from ..services.partner_service import PartnerService, get_partner_service
from ..services.phone_service import (
    PHONE_ENTRY_FAILED,
    PhoneEntry,
    PhoneSupportError,
    add_phone_entry,
    get_category_assoc_list,
    get_phone_entries,
)
from ..services.prefs_service import get_preferences

issues_bp = Blueprint("issues", __name__)


def _current_user_obj() -> User | None:
    user_obj = getattr(current_user, "model", None)
    if user_obj is None and getattr(current_user, "is_authenticated", False):
        user_obj = current_user
    return user_obj


def _permission_denied():
    return render_template("permission_denied.html"), 403


def _can_modify_issue(issue: Issue, user: User | None, partners: PartnerService) -> bool:
    if not can_access_issue(issue, user, partners):
        return False
    return has_role_above(user, issue.project_id, ROLE_CUSTOMER)


def _phone_entry_from_form(form: PhoneEntryForm) -> PhoneEntry:
    category_id = form.category_id.data
    return PhoneEntry(
        call_type=form.call_type.data,
        phone_number=form.phone_number.data,
        phone_type=form.phone_type.data,
        description=form.description.data,
        category_id=None if category_id in (None, NO_CATEGORY) else category_id,
        call_from_first_name=form.call_from_first_name.data or None,
        call_from_last_name=form.call_from_last_name.data or None,
        call_to_first_name=form.call_to_first_name.data or None,
        call_to_last_name=form.call_to_last_name.data or None,
        minutes_spent=form.minutes_spent.data or 0,
    )


@issues_bp.route("/<int:issue_id>/phone-calls", methods=["GET", "POST"])
@login_required
def phone_calls(issue_id: int):
    """Show and submit the "log phone call" form for an issue."""
    issue = Issue.query.get_or_404(issue_id)
    user = _current_user_obj()
    partners = get_partner_service()

    if not _can_modify_issue(issue, user, partners):
        return _permission_denied()
    if partners.can_user_access_issue_section(user.id, "phone").is_denied:
        return _permission_denied()

    phone_categories = get_category_assoc_list(issue.project_id)
    form = PhoneEntryForm()
    form.category_id.choices = [(NO_CATEGORY, "-- none --")] + list(
        phone_categories.items()
    )

    add_phone_result = None
    if request.method == "POST" and request.form.get("cat") == "add_phone":
        if form.validate_on_submit():
            try:
                add_phone_result = add_phone_entry(
                    issue.id, user.id, _phone_entry_from_form(form)
                )
            except PhoneSupportError as exc:
                flash(str(exc), "danger")
                add_phone_result = PHONE_ENTRY_FAILED
        else:
            add_phone_result = PHONE_ENTRY_FAILED
        if add_phone_result == PHONE_ENTRY_FAILED:
            current_app.logger.info(
                "Phone entry for issue %s rejected: %s", issue.id, form.errors
            )

    return render_template(
        "phone_calls/add_phone_entry.html",
        form=form,
        issue=issue,
        issue_id=issue.id,
        phone_categories=phone_categories,
        phone_entries=get_phone_entries(issue.id),
        current_user_prefs=get_preferences(user.id),
        add_phone_result=add_phone_result,
    )


@issues_bp.route("/<int:issue_id>/partners", methods=["GET"])
@login_required
def issue_partners(issue_id: int):
    issue = Issue.query.get_or_404(issue_id)
    user = _current_user_obj()
    partners = get_partner_service()

    if not can_access_issue(issue, user, partners):
        return jsonify({"error": "Permission denied."}), 403
    if partners.can_user_access_issue_section(user.id, "partners").is_denied:
        return jsonify({"error": "Permission denied."}), 403

    return jsonify(
        {
            "issue_id": issue.id,
            "partners": partners.get_partners_by_issue(issue.id),
            "available": {
                code: details["name"]
                for code, details in partners.get_partners_by_project(
                    issue.project_id
                ).items()
            },
        }
    )


@issues_bp.route("/<int:issue_id>/partners", methods=["POST"])
@login_required
def select_issue_partners(issue_id: int):
    issue = Issue.query.get_or_404(issue_id)
    user = _current_user_obj()
    partners = get_partner_service()

    if not _can_modify_issue(issue, user, partners):
        return jsonify({"error": "Permission denied."}), 403
    if partners.can_update_issue(issue.id, user.id).is_denied:
        return jsonify({"error": "Permission denied."}), 403

    form = IssuePartnersForm()
    if not form.validate_on_submit():
        return jsonify({"error": "Invalid request.", "details": form.errors}), 400

    result = partners.select_partners_for_issue(
        issue.id, list(form.partners.data or []), user_id=user.id
    )
    if not result:
        current_app.logger.error(
            "Partner selection for issue %s failed: %s", issue.id, result.error
        )
        return jsonify(result.to_dict()), 500
    return jsonify(result.to_dict())
