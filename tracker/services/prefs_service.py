from __future__ import annotations

from typing import Any

from ..extensions import db
from ..models import User

DEFAULT_PREFERENCES: dict[str, Any] = {
    "timezone": "UTC",
    "week_start": 0,
    "list_refresh_rate": 5,
    "email_refresh_rate": 5,
    "close_popup_windows": True,
    "receive_assigned_email": True,
    "receive_new_issue_email": False,
}


def get_preferences(user_id: int) -> dict[str, Any]:
    """Return the user's preferences merged over the defaults."""
    prefs = dict(DEFAULT_PREFERENCES)
    user = db.session.get(User, user_id)
    if user is not None and user.preferences:
        prefs.update(user.preferences)
    return prefs


def set_preferences(user_id: int, values: dict[str, Any]) -> dict[str, Any]:
    user = db.session.get(User, user_id)
    if user is None:
        raise LookupError(f"User {user_id} not found")
    merged = dict(user.preferences or {})
    merged.update({key: value for key, value in values.items() if key in DEFAULT_PREFERENCES})
    user.preferences = merged
    db.session.commit()
    return get_preferences(user_id)
