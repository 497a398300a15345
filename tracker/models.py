from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .constants import ROLE_VIEWER
from .extensions import BaseModel, db, login_manager
from .security import LoginUser

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(BaseModel, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Binds the account to a single partner; capability checks route to it.
    partner_code: Mapped[Optional[str]] = mapped_column(
        "usr_par_code", String(64), nullable=True, index=True
    )
    preferences: Mapped[Optional[dict[str, Any]]] = mapped_column(
        db.JSON, nullable=True
    )

    memberships: Mapped[list["ProjectUser"]] = relationship(
        "ProjectUser", back_populates="user", cascade="all, delete-orphan"
    )


class Project(BaseModel, TimestampMixin):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    memberships: Mapped[list["ProjectUser"]] = relationship(
        "ProjectUser", back_populates="project", cascade="all, delete-orphan"
    )
    issues: Mapped[list["Issue"]] = relationship(
        "Issue", back_populates="project", cascade="all, delete-orphan"
    )
    phone_categories: Mapped[list["PhoneCategory"]] = relationship(
        "PhoneCategory", back_populates="project", cascade="all, delete-orphan"
    )


class ProjectUser(BaseModel):
    __tablename__ = "project_users"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[int] = mapped_column(Integer, default=ROLE_VIEWER, nullable=False)

    project: Mapped["Project"] = relationship("Project", back_populates="memberships")
    user: Mapped["User"] = relationship("User", back_populates="memberships")


class Issue(BaseModel, TimestampMixin):
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id"), nullable=False, index=True
    )
    summary: Mapped[str] = mapped_column(String(512), nullable=False)
    reporter_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    project: Mapped["Project"] = relationship("Project", back_populates="issues")
    reporter: Mapped[Optional["User"]] = relationship("User")
    history: Mapped[list["IssueHistory"]] = relationship(
        "IssueHistory", back_populates="issue", cascade="all, delete-orphan"
    )


class PartnerProject(BaseModel):
    """Enables a partner backend for a project."""

    __tablename__ = "partner_project"
    __table_args__ = (
        UniqueConstraint("pap_par_code", "pap_prj_id", name="uq_partner_project"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    partner_code: Mapped[str] = mapped_column(
        "pap_par_code", String(64), nullable=False, index=True
    )
    project_id: Mapped[int] = mapped_column(
        "pap_prj_id",
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    project: Mapped["Project"] = relationship("Project")


class IssuePartner(BaseModel):
    """Attaches a partner backend to a single issue."""

    __tablename__ = "issue_partner"
    __table_args__ = (
        UniqueConstraint("ipa_iss_id", "ipa_par_code", name="uq_issue_partner"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    issue_id: Mapped[int] = mapped_column(
        "ipa_iss_id",
        ForeignKey("issues.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    partner_code: Mapped[str] = mapped_column(
        "ipa_par_code", String(64), nullable=False
    )
    created_date: Mapped[datetime] = mapped_column(
        "ipa_created_date", DateTime, default=datetime.utcnow, nullable=False
    )

    issue: Mapped["Issue"] = relationship("Issue")


class IssueHistory(BaseModel):
    """Append-only audit trail for an issue.

    ``summary`` is a template with ``{name}`` placeholders filled from
    ``context`` when the entry is displayed.
    """

    __tablename__ = "issue_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    issue_id: Mapped[int] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    history_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[Optional[dict[str, Any]]] = mapped_column(db.JSON, nullable=True)
    created_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    issue: Mapped["Issue"] = relationship("Issue", back_populates="history")
    user: Mapped[Optional["User"]] = relationship("User")

    @property
    def message(self) -> str:
        values = self.context or {}

        def _substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in values:
                return match.group(0)
            return str(values[key])

        return _PLACEHOLDER_RE.sub(_substitute, self.summary)


class PhoneCategory(BaseModel):
    __tablename__ = "phone_categories"
    __table_args__ = (
        UniqueConstraint("project_id", "title", name="uq_phone_category_title"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(64), nullable=False)

    project: Mapped["Project"] = relationship(
        "Project", back_populates="phone_categories"
    )


class PhoneSupport(BaseModel):
    """A phone call logged against an issue."""

    __tablename__ = "phone_support"

    id: Mapped[int] = mapped_column(primary_key=True)
    issue_id: Mapped[int] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("phone_categories.id", ondelete="SET NULL"), nullable=True
    )
    call_type: Mapped[str] = mapped_column(String(16), nullable=False)
    call_from_first_name: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    call_from_last_name: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    call_to_first_name: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    call_to_last_name: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    phone_type: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    minutes_spent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    issue: Mapped["Issue"] = relationship("Issue")
    user: Mapped["User"] = relationship("User")
    category: Mapped[Optional["PhoneCategory"]] = relationship("PhoneCategory")


@login_manager.user_loader
def load_user(user_id: str) -> Optional[LoginUser]:
    user = db.session.get(User, int(user_id))
    return LoginUser(user) if user else None
