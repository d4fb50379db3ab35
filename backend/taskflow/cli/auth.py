"""Flask CLI commands for operating on sessions and lockouts."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from taskflow.api.deps import SERVICE_KEY
from taskflow.infra.sql import SqlRefreshTokenStore
from taskflow.services.auth.service import SessionService

LOGGER = logging.getLogger(__name__)


def _service() -> SessionService:
    return current_app.extensions[SERVICE_KEY]


@click.group("auth")
def auth_cli() -> None:
    """Session and lockout administration commands."""


@auth_cli.command("unlock")
@click.argument("email")
@with_appcontext
def unlock(email: str) -> None:
    """Clear the lockout flag and failure counter of EMAIL."""
    _service().lockout.unlock(email)
    click.echo(f"Unlocked {email.strip().lower()}")


@auth_cli.command("revoke-sessions")
@click.argument("user_id")
@with_appcontext
def revoke_sessions(user_id: str) -> None:
    """Deactivate every refresh token of USER_ID."""
    count = _service().revoke_all_sessions(user_id)
    LOGGER.info("Sessions revoked from CLI", extra={"user_id": user_id})
    click.echo(f"Revoked {count} refresh token(s)")


@auth_cli.command("purge-tokens")
@with_appcontext
def purge_tokens() -> None:
    """Delete expired and long-inactive refresh tokens (database backend only)."""
    service = _service()
    store = service.refresh_store
    if not isinstance(store, SqlRefreshTokenStore):
        raise click.UsageError("Redis refresh tokens expire on their own; nothing to purge.")
    with service.rw_uow():
        deleted = store.purge_expired(retention=service.settings.refresh_ttl)
    click.echo(f"Deleted {deleted} refresh token(s)")
