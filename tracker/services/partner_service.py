"""Partner associations and dispatch to partner backends.

Partners are enabled per project (``partner_project``) and attached per
issue (``issue_partner``). A partner only counts for an issue when both
associations exist. Read failures degrade to empty results and are logged;
multi-row changes are applied in a single transaction.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from flask_login import current_user  # type: ignore
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Issue, IssuePartner, PartnerProject, Project, User
from ..partners.abstract import AbstractPartnerBackend
from .history_service import record_history
from .partner_registry import PartnerRegistry, get_partner_registry

logger = logging.getLogger(__name__)

PARTNER_ADDED_SUMMARY = "Partner '{partner}' added to issue by {user}"
PARTNER_REMOVED_SUMMARY = "Partner '{partner}' removed from issue by {user}"


class Capability(enum.Enum):
    """Outcome of a partner capability check.

    ``NOT_APPLICABLE`` means no partner constraint applies and the caller
    should fall back to its default authorization.
    """

    ALLOW = "allow"
    DENY = "deny"
    NOT_APPLICABLE = "not_applicable"

    @classmethod
    def from_backend(cls, value: Optional[bool]) -> "Capability":
        if value is None:
            return cls.NOT_APPLICABLE
        return cls.ALLOW if value else cls.DENY

    @property
    def is_denied(self) -> bool:
        return self is Capability.DENY


@dataclass
class AssociationResult:
    """Result of replacing a partner's project set."""

    ok: bool
    partner_code: str
    project_ids: list[int] = field(default_factory=list)
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass
class SelectionResult:
    """Result of reconciling the partners attached to an issue."""

    ok: bool
    issue_id: int
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "issue_id": self.issue_id,
            "added": list(self.added),
            "removed": list(self.removed),
            "skipped": list(self.skipped),
            "error": self.error,
        }


def _normalize_codes(codes: Any) -> list[str]:
    if not isinstance(codes, (list, tuple, set, frozenset)):
        return []
    seen: list[str] = []
    for code in codes:
        if isinstance(code, str) and code and code not in seen:
            seen.append(code)
    return seen


def _normalize_project_ids(project_ids: Any) -> list[int]:
    if not isinstance(project_ids, (list, tuple, set, frozenset)):
        return []
    seen: list[int] = []
    for value in project_ids:
        try:
            project_id = int(value)
        except (TypeError, ValueError):
            continue
        if project_id not in seen:
            seen.append(project_id)
    return seen


def _acting_user_id(user_id: Optional[int]) -> Optional[int]:
    if user_id is not None:
        return user_id
    if getattr(current_user, "is_authenticated", False):
        return int(current_user.get_id())
    return None


def _user_full_name(user_id: Optional[int]) -> str:
    if user_id is None:
        return "system"
    user = db.session.get(User, user_id)
    return user.name if user else "unknown user"


class PartnerService:
    """Partner associations, listings, event dispatch and capability checks."""

    def __init__(self, registry: PartnerRegistry) -> None:
        self.registry = registry

    # -- backends -----------------------------------------------------------

    def get_backend(self, code: str) -> AbstractPartnerBackend:
        return self.registry.get_backend(code)

    def get_backend_list(self) -> list[str]:
        return self.registry.get_backend_list()

    def get_name(self, code: str) -> str:
        return self.get_backend(code).get_name()

    def get_issue_message(self, code: str, issue_id: int) -> str:
        return self.get_backend(code).get_issue_message(issue_id)

    def get_list(self) -> list[dict[str, Any]]:
        return [self.get_details(code) for code in self.get_backend_list()]

    def get_assoc_list(self) -> dict[str, str]:
        return {partner["code"]: partner["name"] for partner in self.get_list()}

    def get_details(self, code: str) -> dict[str, Any]:
        return {
            "code": code,
            "name": self.get_name(code),
            "projects": self.get_projects_for_partner(code),
        }

    # -- project associations ----------------------------------------------

    def get_partners_by_project(self, project_id: int) -> dict[str, dict[str, str]]:
        try:
            codes = db.session.scalars(
                select(PartnerProject.partner_code)
                .where(PartnerProject.project_id == project_id)
                .order_by(PartnerProject.id)
            ).all()
        except SQLAlchemyError:
            logger.exception("Failed to load partners for project %s", project_id)
            db.session.rollback()
            return {}
        return {code: {"name": self.get_name(code)} for code in codes}

    def get_projects_for_partner(self, code: str) -> dict[int, str]:
        try:
            rows = db.session.execute(
                select(Project.id, Project.title)
                .join(PartnerProject, PartnerProject.project_id == Project.id)
                .where(PartnerProject.partner_code == code)
                .order_by(Project.title)
            ).all()
        except SQLAlchemyError:
            logger.exception("Failed to load projects for partner %s", code)
            db.session.rollback()
            return {}
        return {project_id: title for project_id, title in rows}

    def update(self, code: str, project_ids: Any) -> AssociationResult:
        """Replace the set of projects ``code`` is enabled for."""
        wanted = _normalize_project_ids(project_ids)
        try:
            db.session.execute(
                delete(PartnerProject).where(PartnerProject.partner_code == code)
            )
            for project_id in wanted:
                db.session.add(PartnerProject(partner_code=code, project_id=project_id))
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning("Failed to update projects for partner %s: %s", code, exc)
            return AssociationResult(
                ok=False, partner_code=code, project_ids=wanted, error=str(exc)
            )
        logger.info("Partner %s enabled for projects %s", code, wanted)
        return AssociationResult(ok=True, partner_code=code, project_ids=wanted)

    # -- issue associations -------------------------------------------------

    def get_partner_codes_by_issue(self, issue_id: int) -> list[str]:
        try:
            project_id = db.session.scalar(
                select(Issue.project_id).where(Issue.id == issue_id)
            )
            if project_id is None:
                return []
            codes = db.session.scalars(
                select(IssuePartner.partner_code)
                .join(
                    PartnerProject,
                    PartnerProject.partner_code == IssuePartner.partner_code,
                )
                .where(
                    PartnerProject.project_id == project_id,
                    IssuePartner.issue_id == issue_id,
                )
                .order_by(IssuePartner.created_date, IssuePartner.id)
            ).all()
        except SQLAlchemyError:
            logger.exception("Failed to load partners for issue %s", issue_id)
            db.session.rollback()
            return []
        return list(codes)

    def get_partners_by_issue(self, issue_id: int) -> dict[str, dict[str, str]]:
        return {
            code: {
                "name": self.get_name(code),
                "message": self.get_issue_message(code, issue_id),
            }
            for code in self.get_partner_codes_by_issue(issue_id)
        }

    def is_partner_enabled_for_issue(self, code: str, issue_id: int) -> bool:
        return code in self.get_partner_codes_by_issue(issue_id)

    def add_partner_to_issue(
        self, issue_id: int, code: str, user_id: Optional[int] = None
    ) -> bool:
        """Attach ``code`` to the issue; a no-op when already attached.

        Partners not enabled for the issue's project are refused, matching
        :meth:`select_partners_for_issue`.
        """
        backend = self.get_backend(code)
        if code not in self._project_partner_codes_for_issue(issue_id):
            logger.warning(
                "Partner %s is not enabled for the project of issue %s",
                code,
                issue_id,
            )
            return False
        if code in self.get_partner_codes_by_issue(issue_id):
            return True

        actor_id = _acting_user_id(user_id)
        try:
            self._stage_add(issue_id, code, backend, actor_id)
            db.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent add of the same pair.
            db.session.rollback()
            return code in self.get_partner_codes_by_issue(issue_id)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning("Failed to add partner %s to issue %s: %s", code, issue_id, exc)
            return False

        backend.issue_added(issue_id)
        return True

    def remove_partner_from_issue(
        self, issue_id: int, code: str, user_id: Optional[int] = None
    ) -> bool:
        backend = self.get_backend(code)
        actor_id = _acting_user_id(user_id)
        try:
            self._stage_remove(issue_id, code, backend, actor_id)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning(
                "Failed to remove partner %s from issue %s: %s", code, issue_id, exc
            )
            return False

        backend.issue_removed(issue_id)
        return True

    def select_partners_for_issue(
        self, issue_id: int, codes: Any, user_id: Optional[int] = None
    ) -> SelectionResult:
        """Attach exactly ``codes`` to the issue.

        Codes not enabled for the issue's project are skipped. The difference
        against the current attachments is applied in one transaction and
        backend hooks run after it commits. Retrying after a failure is safe
        since the difference is recomputed each time.
        """
        requested = _normalize_codes(codes)
        enabled = self._project_partner_codes_for_issue(issue_id)
        wanted = [code for code in requested if code in enabled]
        skipped = [code for code in requested if code not in enabled]
        if skipped:
            logger.warning(
                "Partners %s are not enabled for the project of issue %s",
                skipped,
                issue_id,
            )

        current = self.get_partner_codes_by_issue(issue_id)
        to_add = [code for code in wanted if code not in current]
        to_remove = [code for code in current if code not in wanted]
        if not to_add and not to_remove:
            return SelectionResult(ok=True, issue_id=issue_id, skipped=skipped)

        backends = {code: self.get_backend(code) for code in to_add + to_remove}
        actor_id = _acting_user_id(user_id)
        try:
            for code in to_add:
                self._stage_add(issue_id, code, backends[code], actor_id)
            for code in to_remove:
                self._stage_remove(issue_id, code, backends[code], actor_id)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning("Failed to select partners for issue %s: %s", issue_id, exc)
            return SelectionResult(
                ok=False, issue_id=issue_id, skipped=skipped, error=str(exc)
            )

        for code in to_add:
            backends[code].issue_added(issue_id)
        for code in to_remove:
            backends[code].issue_removed(issue_id)
        return SelectionResult(
            ok=True,
            issue_id=issue_id,
            added=to_add,
            removed=to_remove,
            skipped=skipped,
        )

    def _project_partner_codes_for_issue(self, issue_id: int) -> list[str]:
        try:
            codes = db.session.scalars(
                select(PartnerProject.partner_code)
                .join(Issue, Issue.project_id == PartnerProject.project_id)
                .where(Issue.id == issue_id)
                .order_by(PartnerProject.id)
            ).all()
        except SQLAlchemyError:
            logger.exception("Failed to load project partners for issue %s", issue_id)
            db.session.rollback()
            return []
        return list(codes)

    def _stage_add(
        self,
        issue_id: int,
        code: str,
        backend: AbstractPartnerBackend,
        actor_id: Optional[int],
    ) -> None:
        db.session.add(
            IssuePartner(
                issue_id=issue_id,
                partner_code=code,
                created_date=datetime.utcnow(),
            )
        )
        record_history(
            issue_id,
            actor_id,
            "partner_added",
            PARTNER_ADDED_SUMMARY,
            {"partner": backend.get_name(), "user": _user_full_name(actor_id)},
        )
        db.session.flush()

    def _stage_remove(
        self,
        issue_id: int,
        code: str,
        backend: AbstractPartnerBackend,
        actor_id: Optional[int],
    ) -> None:
        db.session.execute(
            delete(IssuePartner).where(
                IssuePartner.issue_id == issue_id,
                IssuePartner.partner_code == code,
            )
        )
        record_history(
            issue_id,
            actor_id,
            "partner_removed",
            PARTNER_REMOVED_SUMMARY,
            {"partner": backend.get_name(), "user": _user_full_name(actor_id)},
        )
        db.session.flush()

    # -- event dispatch -----------------------------------------------------

    def get_backends_by_issue(self, issue_id: int) -> list[AbstractPartnerBackend]:
        return [
            self.get_backend(code) for code in self.get_partner_codes_by_issue(issue_id)
        ]

    def handle_new_email(self, issue_id: int, email_id: int) -> None:
        for backend in self.get_backends_by_issue(issue_id):
            backend.handle_new_email(issue_id, email_id)

    def handle_new_note(self, issue_id: int, note_id: int) -> None:
        for backend in self.get_backends_by_issue(issue_id):
            backend.handle_new_note(issue_id, note_id)

    def handle_issue_change(
        self,
        issue_id: int,
        user_id: Optional[int],
        old_details: dict[str, Any],
        changes: dict[str, Any],
    ) -> None:
        for backend in self.get_backends_by_issue(issue_id):
            backend.handle_issue_change(issue_id, user_id, old_details, changes)

    # -- capability checks --------------------------------------------------

    def _user_backend(self, user_id: int) -> Optional[AbstractPartnerBackend]:
        user = db.session.get(User, user_id)
        if user is None or not user.partner_code:
            return None
        return self.get_backend(user.partner_code)

    def can_user_access_feature(self, user_id: int, feature: str) -> Capability:
        backend = self._user_backend(user_id)
        if backend is None:
            return Capability.NOT_APPLICABLE
        return Capability.from_backend(backend.can_user_access_feature(user_id, feature))

    def can_user_access_issue_section(self, user_id: int, section: str) -> Capability:
        backend = self._user_backend(user_id)
        if backend is None:
            return Capability.NOT_APPLICABLE
        return Capability.from_backend(
            backend.can_user_access_issue_section(user_id, section)
        )

    def can_update_issue(self, issue_id: int, user_id: int) -> Capability:
        backend = self._user_backend(user_id)
        if backend is None:
            return Capability.NOT_APPLICABLE
        return Capability.from_backend(backend.can_update_issue(issue_id, user_id))


def get_partner_service() -> PartnerService:
    return PartnerService(get_partner_registry())


__all__ = [
    "AssociationResult",
    "Capability",
    "PartnerService",
    "SelectionResult",
    "get_partner_service",
]
