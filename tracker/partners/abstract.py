from __future__ import annotations

from typing import Any, Optional


class AbstractPartnerBackend:
    """Interface every partner backend implements.

    Hooks default to no-ops. Access predicates return ``None`` when the
    backend has no opinion, letting regular authorization decide.
    """

    def get_name(self) -> str:
        raise NotImplementedError

    def issue_added(self, issue_id: int) -> None:
        pass

    def issue_removed(self, issue_id: int) -> None:
        pass

    def handle_new_email(self, issue_id: int, email_id: int) -> None:
        pass

    def handle_new_note(self, issue_id: int, note_id: int) -> None:
        pass

    def handle_issue_change(
        self,
        issue_id: int,
        user_id: Optional[int],
        old_details: dict[str, Any],
        changes: dict[str, Any],
    ) -> None:
        pass

    def can_user_access_feature(self, user_id: int, feature: str) -> Optional[bool]:
        return None

    def can_user_access_issue_section(
        self, user_id: int, section: str
    ) -> Optional[bool]:
        return None

    def can_update_issue(self, issue_id: int, user_id: int) -> Optional[bool]:
        return None

    def get_issue_message(self, issue_id: int) -> str:
        return ""
