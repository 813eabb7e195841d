"""Flask CLI maintenance commands for tokens, lockouts and the schema."""

from __future__ import annotations

import logging
from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from authcore.infra.sql.schema_repair import SchemaRepair
from authcore.services._shared.errors import NotFoundError, StoreError
from authcore.services.rate_limit.dto import LOGIN_ACTION
from authcore.services.registry import get_services

LOGGER = logging.getLogger(__name__)


@click.group("auth")
def auth_cli() -> None:
    """Token and login maintenance commands."""


@auth_cli.command("repair-schema")
@click.option("--dry-run", is_flag=True, help="Report changes without applying them.")
@with_appcontext
def repair_schema(dry_run: bool) -> None:
    """Create missing tables and add missing nullable columns."""
    report = SchemaRepair().run(dry_run=dry_run)
    for name in report.created_tables:
        click.echo(f"  table   {name}")
    for name in report.added_columns:
        click.echo(f"  column  {name}")
    for name in report.skipped_columns:
        click.echo(f"  skipped {name} (NOT NULL without default)")
    if report.changed or report.skipped_columns:
        click.echo(report.summary())
    else:
        click.echo("Schema is up to date.")


@auth_cli.command("purge-blacklist")
@click.option("--days", type=int, default=None, help="Retention past original expiry.")
@with_appcontext
def purge_blacklist(days: int | None) -> None:
    """Delete blacklist entries whose token expired more than DAYS ago."""
    retention = days
    if retention is None:
        retention = int(current_app.config.get("BLACKLIST_RETENTION_DAYS", 30))
    try:
        deleted = get_services().tokens.blacklist.purge_older_than(retention)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Purged {deleted} blacklist entries older than {retention} days.")


@auth_cli.command("cleanup-tokens")
@click.option("--expired-days", type=int, default=7, show_default=True)
@click.option("--revoked-days", type=int, default=30, show_default=True)
@with_appcontext
def cleanup_tokens(expired_days: int, revoked_days: int) -> None:
    """Delete issued-token rows long expired or long revoked."""
    services = get_services()
    now = services.clock.now()
    try:
        deleted = services.tokens.token_store.purge(
            expired_before=now - timedelta(days=expired_days),
            revoked_before=now - timedelta(days=revoked_days),
        )
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.info("tokens.cleaned", extra={"count": deleted})
    click.echo(f"Deleted {deleted} issued-token rows.")


@auth_cli.command("reset-attempts")
@click.option("--ip", "ip_address", required=True, help="Client address to unlock.")
@click.option("--action", default=LOGIN_ACTION, show_default=True)
@with_appcontext
def reset_attempts(ip_address: str, action: str) -> None:
    """Clear the attempt counter and lockout of one address."""
    get_services().limiter.reset(ip_address, action)
    click.echo(f"Reset {action} attempts for {ip_address}.")


@auth_cli.command("invalidate-user")
@click.argument("user_id", type=int)
@click.option(
    "--reason",
    type=click.Choice(["security", "password_change", "logout"]),
    default="security",
    show_default=True,
)
@with_appcontext
def invalidate_user(user_id: int, reason: str) -> None:
    """Invalidate every token of USER_ID (version bump + blacklist sweep)."""
    try:
        out = get_services().tokens.invalidate_all(user_id, reason)
    except NotFoundError as exc:
        raise click.ClickException(f"User {user_id} not found") from exc
    except StoreError as exc:
        raise click.ClickException(f"{exc} (safe to retry)") from exc
    click.echo(
        f"User {user_id}: token_version={out.token_version} "
        f"blacklisted={out.blacklisted} revoked_rows={out.revoked_rows}"
    )
