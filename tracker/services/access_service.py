"""Per-issue access control."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from ..constants import ROLE_ADMINISTRATOR, ROLE_CUSTOMER, ROLE_REPORTER
from ..extensions import db
from ..models import Issue, ProjectUser, User
from .partner_service import PartnerService


def get_role_id(user: Optional[User], project_id: int) -> Optional[int]:
    """Return the user's role in ``project_id``; ``None`` when not a member."""
    if user is None:
        return None
    if user.is_admin:
        return ROLE_ADMINISTRATOR
    return db.session.scalar(
        select(ProjectUser.role_id).where(
            ProjectUser.project_id == project_id,
            ProjectUser.user_id == user.id,
        )
    )


def can_access_issue(
    issue: Issue, user: Optional[User], partners: Optional[PartnerService] = None
) -> bool:
    """Whether ``user`` may view ``issue``.

    Reporters and customers only see issues they reported. Users bound to a
    partner only see issues that partner is attached to.
    """
    if user is None:
        return False
    if user.is_admin:
        return True

    role_id = get_role_id(user, issue.project_id)
    if role_id is None:
        return False
    if role_id in (ROLE_REPORTER, ROLE_CUSTOMER) and issue.reporter_id != user.id:
        return False
    if user.partner_code and partners is not None:
        return partners.is_partner_enabled_for_issue(user.partner_code, issue.id)
    return True


def has_role_above(user: Optional[User], project_id: int, threshold: int) -> bool:
    role_id = get_role_id(user, project_id)
    return role_id is not None and role_id > threshold
