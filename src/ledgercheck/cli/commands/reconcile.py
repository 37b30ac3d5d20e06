"""Amount reconciliation command."""

import click
from ledgercheck.cli.error_handling import resolve_report_or_exit
from ledgercheck.domain.validation_service import LedgerValidationService
from ledgercheck.utils.amount_parser import format_currency


@click.command("reconcile")
@click.argument("report", metavar="REPORT")
@click.pass_context
def reconcile(ctx, report: str):
    """Check stated parent amounts against the sum of their children.

    Only variances beyond rounding are listed.

    Examples:
        ledgercheck reconcile "March 2024"
    """
    db = ctx.obj["db"]
    found = resolve_report_or_exit(ctx, db, report)
    service = LedgerValidationService(db, ctx.obj["settings"])

    results = service.reconcile(found.id)
    if not results:
        click.echo(f"All parent amounts in '{found.name}' match their children.")
        return

    click.echo(f"\nAmount variances in '{found.name}':")
    click.echo("-" * 100)
    for r in results:
        click.echo(
            f"{r.parent_code} | {r.parent_name[:25]:25s} | "
            f"stated {format_currency(r.parent_amount):>16s} | "
            f"children {format_currency(r.children_sum):>16s} | "
            f"variance {format_currency(r.variance)} ({r.variance_percentage:.2f}%) | "
            f"{r.status.value}"
        )


def register_commands(cli):
    """Register reconcile command with main CLI."""
    cli.add_command(reconcile)
