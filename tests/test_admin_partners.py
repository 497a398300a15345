from pathlib import Path

import pytest

from tracker import create_app, db
from tracker.config import Config
from tracker.models import PartnerProject, Project, User
from tracker.partners.abstract import AbstractPartnerBackend
from tracker.security import hash_password
from tracker.services.partner_registry import get_partner_registry


class AdminPartnersTestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False


class AcmePartnerBackend(AbstractPartnerBackend):
    def get_name(self):
        return "Acme Corp"


@pytest.fixture()
def app(tmp_path: Path):
    class _Config(AdminPartnersTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'admin_partners.db'}"
        PARTNER_LOCAL_PATH = str(tmp_path / "partners")

    application = create_app(_Config)
    get_partner_registry(application).register("acme", AcmePartnerBackend)

    with application.app_context():
        db.create_all()
        admin = User(
            email="admin@example.com",
            name="Admin",
            password_hash=hash_password("password123"),
            is_admin=True,
        )
        regular = User(
            email="user@example.com",
            name="Regular",
            password_hash=hash_password("password123"),
        )
        db.session.add_all(
            [admin, regular, Project(title="Support"), Project(title="Billing")]
        )
        db.session.commit()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login_admin(client):
    response = client.post(
        "/login",
        data={"email": "admin@example.com", "password": "password123"},
        follow_redirects=True,
    )
    assert response.status_code == 200
    return response


def _project_id(app, title):
    with app.app_context():
        return Project.query.filter_by(title=title).one().id


class TestPartnerListing:
    """Admin overview of installed partner backends."""

    def test_requires_admin(self, client):
        client.post(
            "/login",
            data={"email": "user@example.com", "password": "password123"},
            follow_redirects=True,
        )

        response = client.get("/admin/partners")

        assert response.status_code == 302
        assert "/login" in response.headers["Location"]

    def test_lists_builtin_and_registered_backends(self, client, login_admin):
        response = client.get("/admin/partners")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "Acme Corp" in body
        assert "Example" in body
        assert "/admin/partners/acme" in body


class TestPartnerEdit:
    """Enabling a partner for projects."""

    def test_unknown_partner_returns_404(self, client, login_admin):
        assert client.get("/admin/partners/nobody").status_code == 404

    def test_get_preselects_current_projects(self, client, app, login_admin):
        support_id = _project_id(app, "Support")
        with app.app_context():
            db.session.add(PartnerProject(partner_code="acme", project_id=support_id))
            db.session.commit()

        response = client.get("/admin/partners/acme")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert f'selected value="{support_id}"' in body or (
            f'value="{support_id}" selected' in body
        )

    def test_post_replaces_projects(self, client, app, login_admin):
        support_id = _project_id(app, "Support")
        billing_id = _project_id(app, "Billing")

        response = client.post(
            "/admin/partners/acme",
            data={"projects": [str(support_id), str(billing_id)]},
        )
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/admin/partners")

        with app.app_context():
            stored = {
                row.project_id
                for row in PartnerProject.query.filter_by(partner_code="acme")
            }
        assert stored == {support_id, billing_id}

        client.post("/admin/partners/acme", data={"projects": [str(billing_id)]})
        with app.app_context():
            stored = [
                row.project_id
                for row in PartnerProject.query.filter_by(partner_code="acme")
            ]
        assert stored == [billing_id]

    def test_post_with_no_projects_clears(self, client, app, login_admin):
        support_id = _project_id(app, "Support")
        client.post("/admin/partners/acme", data={"projects": [str(support_id)]})

        response = client.post("/admin/partners/acme", data={}, follow_redirects=True)

        assert response.status_code == 200
        assert "Updated projects for partner Acme Corp." in response.get_data(
            as_text=True
        )
        with app.app_context():
            assert PartnerProject.query.count() == 0
