from __future__ import annotations

import logging
from typing import Any, Optional

from tracker.partners.abstract import AbstractPartnerBackend

logger = logging.getLogger(__name__)


class ExamplePartnerBackend(AbstractPartnerBackend):
    """Reference backend: logs every callback and keeps partner users
    away from reports, exports and internal issue sections."""

    restricted_features = frozenset({"reports", "export"})
    restricted_sections = frozenset({"drafts", "time", "notification_list"})

    def get_name(self) -> str:
        return "Example"

    def issue_added(self, issue_id: int) -> None:
        logger.info("Example partner added to issue %s", issue_id)

    def issue_removed(self, issue_id: int) -> None:
        logger.info("Example partner removed from issue %s", issue_id)

    def handle_new_email(self, issue_id: int, email_id: int) -> None:
        logger.info("New email %s on issue %s", email_id, issue_id)

    def handle_new_note(self, issue_id: int, note_id: int) -> None:
        logger.info("New note %s on issue %s", note_id, issue_id)

    def handle_issue_change(
        self,
        issue_id: int,
        user_id: Optional[int],
        old_details: dict[str, Any],
        changes: dict[str, Any],
    ) -> None:
        logger.info(
            "Issue %s changed by user %s: %s", issue_id, user_id, sorted(changes)
        )

    def can_user_access_feature(self, user_id: int, feature: str) -> Optional[bool]:
        return feature not in self.restricted_features

    def can_user_access_issue_section(
        self, user_id: int, section: str
    ) -> Optional[bool]:
        return section not in self.restricted_sections

    def can_update_issue(self, issue_id: int, user_id: int) -> Optional[bool]:
        return True

    def get_issue_message(self, issue_id: int) -> str:
        return "This issue is shared with the Example partner."
