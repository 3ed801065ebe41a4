"""Flask CLI commands for refresh-token maintenance."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask import current_app
from flask.cli import with_appcontext

from authcore.core.auth import get_auth

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("purge-expired")
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Report the configured backend without deleting anything.",
)
@with_appcontext
def purge_expired(dry_run: bool) -> None:
    """Delete refresh tokens whose expiry has passed."""
    backend = current_app.config.get("REFRESH_TOKEN_BACKEND", "sql")
    if dry_run:
        click.echo(f"Dry run: would purge expired refresh tokens from the {backend} backend.")
        return

    now = datetime.now(UTC)
    removed = get_auth().records.purge_expired(now)
    LOGGER.info(
        "tokens.purge_expired removed=%s",
        removed,
        extra={"event": "tokens.purge_expired", "backend": backend},
    )
    click.echo(f"Purged {removed} expired refresh token(s) from the {backend} backend.")
