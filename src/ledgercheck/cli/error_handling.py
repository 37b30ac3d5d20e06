"""CLI error handling helpers."""

import click

from ledgercheck.database.base import Database
from ledgercheck.domain.entities import Report
from ledgercheck.domain.errors import DomainError
from ledgercheck.domain.validation_service import LedgerValidationService


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_report_or_exit(ctx: click.Context, db: Database, report: str | int) -> Report:
    """Resolve report name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return LedgerValidationService(db).resolve_report(report)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
