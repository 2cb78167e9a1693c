"""Flask CLI commands for passcode table maintenance."""

from __future__ import annotations

import logging
from datetime import timedelta

import click
from flask.cli import with_appcontext

from storefront.services._shared.clock import now_utc
from storefront.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 7


def purge_terminal_challenges(older_than_days: int) -> int:
    """Delete verified or expired challenges created more than ``older_than_days`` ago.

    :returns: Number of deleted rows.
    """
    now = now_utc()
    cutoff = now - timedelta(days=older_than_days)
    with SQLAlchemyUnitOfWork() as uow:
        deleted = uow.otp_challenges.purge_terminal(created_before=cutoff, now=now)
    LOGGER.info("Purged %d terminal passcode challenges older than %s", deleted, cutoff)
    return deleted


@click.group("otp")
def otp_cli() -> None:
    """One-time passcode maintenance commands."""


@otp_cli.command("purge")
@click.option(
    "--older-than-days",
    type=click.IntRange(min=0),
    default=DEFAULT_RETENTION_DAYS,
    show_default=True,
    help="Only delete challenges created before this many days ago.",
)
@with_appcontext
def purge(older_than_days: int) -> None:
    """Delete terminal (verified or expired) passcode challenges."""
    deleted = purge_terminal_challenges(older_than_days)
    click.echo(f"Purged {deleted} passcode challenge(s).")
