"""Phone support entries logged against issues."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..constants import PHONE_CALL_TYPES, PHONE_NUMBER_TYPES
from ..extensions import db
from ..models import Issue, PhoneCategory, PhoneSupport, User
from .history_service import record_history

logger = logging.getLogger(__name__)

PHONE_ENTRY_ADDED = 1
PHONE_ENTRY_FAILED = -1


class PhoneSupportError(ValueError):
    """Raised when a phone entry is inconsistent with its issue."""


@dataclass(slots=True)
class PhoneEntry:
    call_type: str
    phone_number: str
    phone_type: str
    description: str
    category_id: Optional[int] = None
    call_from_first_name: Optional[str] = None
    call_from_last_name: Optional[str] = None
    call_to_first_name: Optional[str] = None
    call_to_last_name: Optional[str] = None
    minutes_spent: int = 0


def get_category_assoc_list(project_id: int) -> dict[int, str]:
    """Return ``{category_id: title}`` for the project's phone categories."""
    try:
        rows = db.session.execute(
            select(PhoneCategory.id, PhoneCategory.title)
            .where(PhoneCategory.project_id == project_id)
            .order_by(PhoneCategory.title)
        ).all()
    except SQLAlchemyError:
        logger.exception("Failed to load phone categories for project %s", project_id)
        db.session.rollback()
        return {}
    return {category_id: title for category_id, title in rows}


def add_category(project_id: int, title: str) -> PhoneCategory:
    category = PhoneCategory(project_id=project_id, title=title.strip())
    db.session.add(category)
    db.session.commit()
    return category


def _validate(issue: Issue, entry: PhoneEntry) -> None:
    if entry.call_type not in {value for value, _ in PHONE_CALL_TYPES}:
        raise PhoneSupportError(f"Unknown call type: {entry.call_type}")
    if entry.phone_type not in {value for value, _ in PHONE_NUMBER_TYPES}:
        raise PhoneSupportError(f"Unknown phone type: {entry.phone_type}")
    if entry.minutes_spent < 0:
        raise PhoneSupportError("Time spent cannot be negative.")
    if entry.category_id is not None:
        category = db.session.get(PhoneCategory, entry.category_id)
        if category is None or category.project_id != issue.project_id:
            raise PhoneSupportError("Phone category does not belong to this project.")


def add_phone_entry(issue_id: int, user_id: int, entry: PhoneEntry) -> int:
    """Log a phone call on an issue.

    Returns ``PHONE_ENTRY_ADDED`` or ``PHONE_ENTRY_FAILED``. Invalid entries
    raise :class:`PhoneSupportError`.
    """
    issue = db.session.get(Issue, issue_id)
    if issue is None:
        raise PhoneSupportError(f"Issue {issue_id} not found")
    _validate(issue, entry)

    user = db.session.get(User, user_id)
    try:
        db.session.add(
            PhoneSupport(
                issue_id=issue_id,
                user_id=user_id,
                category_id=entry.category_id,
                call_type=entry.call_type,
                call_from_first_name=entry.call_from_first_name,
                call_from_last_name=entry.call_from_last_name,
                call_to_first_name=entry.call_to_first_name,
                call_to_last_name=entry.call_to_last_name,
                phone_number=entry.phone_number.strip(),
                phone_type=entry.phone_type,
                description=entry.description,
                minutes_spent=entry.minutes_spent,
            )
        )
        record_history(
            issue_id,
            user_id,
            "phone_entry_added",
            "Phone Support entry submitted by {user}",
            {"user": user.name if user else "unknown user"},
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Failed to add phone entry to issue %s: %s", issue_id, exc)
        return PHONE_ENTRY_FAILED
    return PHONE_ENTRY_ADDED


def get_phone_entries(issue_id: int) -> list[PhoneSupport]:
    return (
        PhoneSupport.query.filter(PhoneSupport.issue_id == issue_id)
        .order_by(PhoneSupport.created_date, PhoneSupport.id)
        .all()
    )
