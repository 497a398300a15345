from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tracker import create_app, db
from tracker.config import Config
from tracker.constants import ROLE_CUSTOMER, ROLE_DEVELOPER
from tracker.models import (
    Issue,
    IssueHistory,
    PhoneCategory,
    PhoneSupport,
    Project,
    ProjectUser,
    User,
)
from tracker.partners.abstract import AbstractPartnerBackend
from tracker.security import hash_password
from tracker.services.partner_registry import get_partner_registry
from tracker.services.partner_service import PartnerService


class PhoneCallsTestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False


class SectionGateBackend(AbstractPartnerBackend):
    def __init__(self, name, hidden_sections):
        self.name = name
        self.hidden_sections = set(hidden_sections)

    def get_name(self):
        return self.name

    def can_user_access_issue_section(self, user_id, section):
        return section not in self.hidden_sections


@pytest.fixture()
def app(tmp_path: Path):
    class _Config(PhoneCallsTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'phone.db'}"
        PARTNER_LOCAL_PATH = str(tmp_path / "partners")

    application = create_app(_Config)
    registry = get_partner_registry(application)
    registry.register("acme", lambda: SectionGateBackend("Acme Corp", {"phone"}))
    registry.register("beta", lambda: SectionGateBackend("Beta Ltd", set()))

    with application.app_context():
        db.create_all()
        users = {
            key: User(
                email=f"{key}@example.com",
                name=name,
                password_hash=hash_password("password123"),
                partner_code=partner,
                preferences={"timezone": "Europe/Berlin"} if key == "dev" else None,
            )
            for key, name, partner in (
                ("dev", "Dana Developer", None),
                ("customer", "Carl Customer", None),
                ("outsider", "Olga Outsider", None),
                ("acme", "Acme Contact", "acme"),
                ("beta", "Beta Contact", "beta"),
            )
        }
        project = Project(title="Support")
        other = Project(title="Internal")
        db.session.add_all([*users.values(), project, other])
        db.session.commit()

        for key, role in (
            ("dev", ROLE_DEVELOPER),
            ("customer", ROLE_CUSTOMER),
            ("acme", ROLE_DEVELOPER),
            ("beta", ROLE_DEVELOPER),
        ):
            db.session.add(
                ProjectUser(project_id=project.id, user_id=users[key].id, role_id=role)
            )
        sales = PhoneCategory(project_id=project.id, title="Sales")
        billing = PhoneCategory(project_id=project.id, title="Billing")
        foreign = PhoneCategory(project_id=other.id, title="Foreign")
        issue = Issue(
            project_id=project.id,
            summary="Customer cannot log in",
            reporter_id=users["customer"].id,
        )
        db.session.add_all([sales, billing, foreign, issue])
        db.session.commit()

        service = PartnerService(registry)
        service.update("acme", [project.id])
        service.update("beta", [project.id])
        service.add_partner_to_issue(issue.id, "acme")
        service.add_partner_to_issue(issue.id, "beta")

        application.config["TEST_DATA"] = SimpleNamespace(
            issue_id=issue.id,
            sales_id=sales.id,
            foreign_id=foreign.id,
        )

        yield application

        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def data(app):
    return app.config["TEST_DATA"]


def _login(client, key):
    return client.post(
        "/login",
        data={"email": f"{key}@example.com", "password": "password123"},
        follow_redirects=True,
    )


def _phone_form(**overrides):
    form = {
        "cat": "add_phone",
        "category_id": "0",
        "call_type": "incoming",
        "call_from_first_name": "Jane",
        "call_from_last_name": "Doe",
        "phone_number": "+49 30 1234567",
        "phone_type": "office",
        "minutes_spent": "15",
        "description": "Walked the customer through a password reset.",
    }
    form.update(overrides)
    return form


class TestPhoneCallsAccess:
    """Who may open the phone call page."""

    def test_anonymous_user_is_redirected_to_login(self, client, data):
        response = client.get(f"/issues/{data.issue_id}/phone-calls")

        assert response.status_code == 302
        assert "/login" in response.headers["Location"]

    def test_unknown_issue_returns_404(self, client):
        _login(client, "dev")

        response = client.get("/issues/9999/phone-calls")

        assert response.status_code == 404

    def test_non_member_is_denied(self, client, data):
        _login(client, "outsider")

        response = client.get(f"/issues/{data.issue_id}/phone-calls")

        assert response.status_code == 403
        assert b"Permission denied" in response.data

    def test_customer_cannot_log_calls_on_own_issue(self, client, data):
        _login(client, "customer")

        response = client.get(f"/issues/{data.issue_id}/phone-calls")

        assert response.status_code == 403

    def test_partner_hiding_phone_section_denies_access(self, client, data):
        _login(client, "acme")

        response = client.get(f"/issues/{data.issue_id}/phone-calls")

        assert response.status_code == 403

    def test_partner_allowing_phone_section_grants_access(self, client, data):
        _login(client, "beta")

        response = client.get(f"/issues/{data.issue_id}/phone-calls")

        assert response.status_code == 200


class TestPhoneCallsPage:
    """Rendering and submitting phone entries."""

    def test_get_renders_form_with_categories(self, client, data):
        _login(client, "dev")

        response = client.get(f"/issues/{data.issue_id}/phone-calls")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert f"Log phone call for issue #{data.issue_id}" in body
        assert "Sales" in body and "Billing" in body
        assert "Foreign" not in body
        assert "No phone calls logged yet." in body
        assert "Europe/Berlin" not in body

    def test_valid_post_adds_entry(self, client, app, data):
        _login(client, "dev")

        response = client.post(
            f"/issues/{data.issue_id}/phone-calls",
            data=_phone_form(category_id=str(data.sales_id)),
        )

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "the phone entry was added successfully" in body
        assert "+49 30 1234567" in body
        assert "Date (Europe/Berlin)" in body

        with app.app_context():
            entry = PhoneSupport.query.one()
            assert entry.category_id == data.sales_id
            assert entry.minutes_spent == 15
            assert entry.call_from_first_name == "Jane"
            assert entry.call_to_first_name is None
            history = IssueHistory.query.filter_by(
                issue_id=data.issue_id, history_type="phone_entry_added"
            ).one()
            assert history.message == "Phone Support entry submitted by Dana Developer"

    def test_post_without_category_stores_null(self, client, app, data):
        _login(client, "dev")

        client.post(f"/issues/{data.issue_id}/phone-calls", data=_phone_form())

        with app.app_context():
            assert PhoneSupport.query.one().category_id is None

    def test_invalid_post_reports_error(self, client, app, data):
        _login(client, "dev")

        response = client.post(
            f"/issues/{data.issue_id}/phone-calls",
            data=_phone_form(phone_number="", description=""),
        )

        assert response.status_code == 200
        assert "An error occurred while trying to run your query." in response.get_data(
            as_text=True
        )
        with app.app_context():
            assert PhoneSupport.query.count() == 0

    def test_category_from_other_project_is_rejected(self, client, app, data):
        _login(client, "dev")

        response = client.post(
            f"/issues/{data.issue_id}/phone-calls",
            data=_phone_form(category_id=str(data.foreign_id)),
        )

        assert "An error occurred" in response.get_data(as_text=True)
        with app.app_context():
            assert PhoneSupport.query.count() == 0

    def test_post_without_add_marker_is_ignored(self, client, app, data):
        _login(client, "dev")

        response = client.post(
            f"/issues/{data.issue_id}/phone-calls", data=_phone_form(cat="other")
        )

        body = response.get_data(as_text=True)
        assert "added successfully" not in body
        assert "An error occurred" not in body
        with app.app_context():
            assert PhoneSupport.query.count() == 0
