"""Report management commands."""

import click
from ledgercheck.cli.error_handling import handle_domain_error
from ledgercheck.domain.errors import DomainError
from ledgercheck.domain.ledger import LedgerService
from ledgercheck.utils.date_parser import parse_date


@click.group()
def report_group():
    """Manage reports (one ledger per reporting period)."""
    pass


@report_group.command("create")
@click.argument("name", metavar="REPORT_NAME")
@click.option("--period", help="Reporting period start (e.g. 2024-03, 'last month')")
@click.pass_context
def create_report(ctx, name: str, period: str | None):
    """Create a new report.

    Examples:
        ledgercheck report create "March 2024" --period 2024-03
        ledgercheck report create "Q1 close"
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    try:
        period_date = parse_date(period) if period else None
        report_id = service.create_report(name=name, period=period_date)
        click.echo(f"Created report '{name.strip()}' (ID: {report_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@report_group.command("list")
@click.pass_context
def list_reports(ctx):
    """List all reports."""
    db = ctx.obj["db"]
    service = LedgerService(db)

    reports = service.list_reports()
    if not reports:
        click.echo("No reports found.")
        return

    click.echo("\nReports:")
    click.echo("-" * 60)
    for rep in reports:
        period = rep.period.isoformat() if rep.period else "-"
        click.echo(f"ID: {rep.id:3d} | {rep.name:30s} | Period: {period}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
