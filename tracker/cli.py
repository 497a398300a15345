from typing import Optional

import click
from flask import Flask
from flask.cli import with_appcontext
from sqlalchemy import select

from .constants import ROLE_CHOICES, get_role_id
from .extensions import db
from .models import Project, ProjectUser, User
from .security import hash_password
from .services.partner_registry import PartnerConfigurationError
from .services.partner_service import get_partner_service
from .version import __version__


@click.command("db_init")
@with_appcontext
def db_init_command() -> None:
    """Initialize the database tables."""
    db.create_all()
    click.echo("Database initialized.")


@click.command("create-admin")
@click.option("--email", prompt=True)
@click.option("--name", default="Administrator", show_default=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin_command(email: str, name: str, password: str) -> None:
    """Create an administrator account."""
    if User.query.filter_by(email=email.lower()).first():
        raise click.ClickException("User already exists.")

    user = User(
        email=email.lower(),
        name=name,
        password_hash=hash_password(password),
        is_admin=True,
    )
    db.session.add(user)
    db.session.commit()
    click.echo(f"Admin user {email} created.")


@click.command("add-member")
@click.option("--email", required=True)
@click.option("--project", "project_title", required=True)
@click.option(
    "--role",
    type=click.Choice([label for _, label in ROLE_CHOICES], case_sensitive=False),
    default="Standard User",
    show_default=True,
)
@with_appcontext
def add_member_command(email: str, project_title: str, role: str) -> None:
    """Grant a user a role in a project."""
    user = User.query.filter_by(email=email.lower()).first()
    if user is None:
        raise click.ClickException(f"User {email} not found.")
    project = Project.query.filter_by(title=project_title).first()
    if project is None:
        raise click.ClickException(f"Project {project_title} not found.")

    membership = ProjectUser.query.filter_by(
        project_id=project.id, user_id=user.id
    ).first()
    if membership is None:
        membership = ProjectUser(project_id=project.id, user_id=user.id)
        db.session.add(membership)
    membership.role_id = get_role_id(role)
    db.session.commit()
    click.echo(f"{user.email} is now {role} in {project.title}.")


@click.command("partners-list")
@with_appcontext
def partners_list_command() -> None:
    """List available partner backends and their projects."""
    service = get_partner_service()
    partners = service.get_list()
    if not partners:
        click.echo("No partner backends found.")
        return
    for partner in partners:
        projects = ", ".join(partner["projects"].values()) or "-"
        click.echo(f"{partner['code']}\t{partner['name']}\t{projects}")


@click.command("partner-projects")
@click.argument("code")
@click.option(
    "--project",
    "project_ids",
    type=int,
    multiple=True,
    help="Project ID to enable the partner for. Repeat for several; omit to clear.",
)
@with_appcontext
def partner_projects_command(code: str, project_ids: tuple[int, ...]) -> None:
    """Replace the set of projects a partner is enabled for."""
    service = get_partner_service()
    try:
        name = service.get_name(code)
    except PartnerConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    known_ids = set(
        db.session.scalars(select(Project.id).where(Project.id.in_(project_ids)))
    )
    missing = sorted(set(project_ids) - known_ids)
    if missing:
        raise click.ClickException(
            f"Unknown project id(s): {', '.join(str(pid) for pid in missing)}"
        )

    result = service.update(code, list(project_ids))
    if not result:
        raise click.ClickException(
            f"Failed to update projects for {name}: {result.error}"
        )
    projects = service.get_projects_for_partner(code)
    summary = ", ".join(projects.values()) or "no projects"
    click.echo(f"{name} enabled for {summary}.")


def _resolve_owner(owner_email: Optional[str]) -> User:
    if owner_email:
        user = User.query.filter_by(email=owner_email.lower()).first()
    else:
        user = User.query.filter_by(is_admin=True).order_by(User.id).first()
    if user is None:
        raise click.ClickException("No owner user found; create an admin first.")
    return user


@click.command("create-project")
@click.argument("title")
@click.option("--owner-email", default=None, help="User granted the Manager role.")
@with_appcontext
def create_project_command(title: str, owner_email: Optional[str]) -> None:
    """Create a project and make its owner a manager."""
    if Project.query.filter_by(title=title).first():
        raise click.ClickException("Project already exists.")
    owner = _resolve_owner(owner_email)
    project = Project(title=title)
    db.session.add(project)
    db.session.flush()
    db.session.add(
        ProjectUser(
            project_id=project.id, user_id=owner.id, role_id=get_role_id("Manager")
        )
    )
    db.session.commit()
    click.echo(f"Project {title} created with id {project.id}.")


@click.command("version")
def version_command() -> None:
    """Print the tracker version."""
    click.echo(__version__)


def register_cli_commands(app: Flask) -> None:
    app.cli.add_command(db_init_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(add_member_command)
    app.cli.add_command(create_project_command)
    app.cli.add_command(partners_list_command)
    app.cli.add_command(partner_projects_command)
    app.cli.add_command(version_command)
