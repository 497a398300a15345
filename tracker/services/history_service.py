"""Issue history (audit trail) helpers.

Entries are added to the current session only; callers commit them together
with the change they describe.
"""

from __future__ import annotations

from typing import Any, Optional

from ..extensions import db
from ..models import IssueHistory


def record_history(
    issue_id: int,
    user_id: Optional[int],
    history_type: str,
    summary: str,
    context: Optional[dict[str, Any]] = None,
) -> IssueHistory:
    """Stage a history entry for ``issue_id``.

    Args:
        issue_id: Issue the entry belongs to
        user_id: Acting user, if known
        history_type: Machine-readable event kind (e.g. 'partner_added')
        summary: Message template with ``{name}`` placeholders
        context: Values substituted into ``summary`` on display

    Returns:
        IssueHistory: The pending entry
    """
    entry = IssueHistory(
        issue_id=issue_id,
        user_id=user_id,
        history_type=history_type,
        summary=summary,
        context=dict(context) if context else None,
    )
    db.session.add(entry)
    return entry


def get_issue_history(
    issue_id: int, history_type: Optional[str] = None
) -> list[IssueHistory]:
    query = IssueHistory.query.filter(IssueHistory.issue_id == issue_id)
    if history_type:
        query = query.filter(IssueHistory.history_type == history_type)
    return query.order_by(IssueHistory.created_date, IssueHistory.id).all()


__all__ = ["get_issue_history", "record_history"]
