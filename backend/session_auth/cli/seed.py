"""``flask seed``: reference data and the first administrator."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from session_auth.core.extensions import db, get_auth_settings
from session_auth.infra.jwt import FlaskJWTTokenSigner
from session_auth.infra.security import SecretsTokenGenerator, WerkzeugPasswordHasher
from session_auth.models.role import Role, RoleName
from session_auth.models.user import normalize_email
from session_auth.seeds import roles as role_seeds
from session_auth.services._shared.errors import ServiceError
from session_auth.services.auth import AuthenticationService, RegistrationIn

LOGGER = logging.getLogger(__name__)


def _email_option(ctx, param, value: str) -> str:
    try:
        return normalize_email(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group("seed")
@click.option("--verbose", is_flag=True, help="Log every inserted row.")
def seed_cli(verbose: bool) -> None:
    """Database seeding commands."""
    if verbose:
        logging.getLogger(role_seeds.__name__).setLevel(logging.DEBUG)


@seed_cli.command("roles")
@with_appcontext
def roles_command() -> None:
    """Insert the Admin, Manager and User roles if they are missing."""
    try:
        report = role_seeds.seed_roles(db)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise click.ClickException(f"Seeding failed: {exc}") from exc
    click.echo(f"roles: created={len(report.created)} existing={len(report.existing)}")


@seed_cli.command("admin")
@click.option(
    "--email", required=True, callback=_email_option, help="Login email of the administrator."
)
@click.option("--username", required=True, help="Public handle of the administrator.")
@click.password_option(help="Password (prompted twice when omitted).")
@with_appcontext
def admin_command(email: str, username: str, password: str) -> None:
    """Create an administrator account through the registration flow."""
    if db.session.execute(select(Role.id).filter_by(name=RoleName.ADMIN.value)).first() is None:
        raise click.ClickException("Role 'Admin' is missing; run 'flask seed roles' first.")
    settings = get_auth_settings(current_app)
    service = AuthenticationService(
        hasher=WerkzeugPasswordHasher(settings.password_hash_method),
        signer=FlaskJWTTokenSigner(settings),
        generator=SecretsTokenGenerator(),
        settings=settings,
    )
    try:
        user = service.register(
            RegistrationIn(username=username, email=email, password=password),
            role_name=RoleName.ADMIN,
        )
    except ServiceError as exc:
        raise click.ClickException(exc.message) from exc
    LOGGER.info("seed.admin.created", extra={"user_id": user.id})
    click.echo(f"Created administrator '{user.username}' (id={user.id}).")
