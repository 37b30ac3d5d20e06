"""Ledger row commands."""

import click
from ledgercheck.cli.classification_options import classification_options, resolve_classification
from ledgercheck.cli.error_handling import handle_domain_error, resolve_report_or_exit
from ledgercheck.domain.errors import DomainError
from ledgercheck.domain.ledger import LedgerService
from ledgercheck.domain.status import status_of
from ledgercheck.utils.amount_parser import parse_amount


@click.group()
def row_group():
    """Manage ledger rows."""
    pass


@row_group.command("add")
@click.argument("report", metavar="REPORT")
@click.argument("code", metavar="CODE")
@click.argument("label", metavar="LABEL")
@click.argument("amount", metavar="AMOUNT")
@classification_options(required=False)
@click.pass_context
def add_row(
    ctx,
    report: str,
    code: str,
    label: str,
    amount: str,
    flow: str | None,
    category: str | None,
    subcategory: str,
    detail: str | None,
):
    """Add a row to a report.

    REPORT can be a report name or ID. CODE is a TTTT-DDDD-CCC-FFF account
    code. Omit the classification options to add an unclassified row.

    Examples:
        ledgercheck row add "March 2024" 5000-1002-001-000 "Materia prima" 13150000
        ledgercheck row add 1 5000-1002-001-001 Cemento 9350000 \\
            --flow expense --category "Costo de Venta" --detail "Materia Prima"
    """
    db = ctx.obj["db"]
    service = LedgerService(db)
    found = resolve_report_or_exit(ctx, db, report)
    flow_type, classification = resolve_classification(
        ctx, flow=flow, category=category, subcategory=subcategory, detail=detail
    )

    try:
        row_id = service.add_row(
            report_id=found.id,
            code=code,
            label=label,
            amount=parse_amount(amount),
            flow_type=flow_type,
            classification=classification,
        )
        click.echo(f"Added row {code.strip()} to report '{found.name}' (ID: {row_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@row_group.command("list")
@click.argument("report", metavar="REPORT")
@click.pass_context
def list_rows(ctx, report: str):
    """List the rows of a report."""
    db = ctx.obj["db"]
    service = LedgerService(db)
    found = resolve_report_or_exit(ctx, db, report)

    rows = service.list_rows(found.id)
    if not rows:
        click.echo("No rows found.")
        return

    click.echo(f"\nRows in '{found.name}':")
    click.echo("-" * 100)
    for r in rows:
        detail = r.classification.detail_class if r.classification else "-"
        click.echo(
            f"{r.code} | {r.label[:30]:30s} | {r.amount:>16,.2f} | "
            f"{status_of(r).value:12s} | {r.flow_type.value:9s} | {detail}"
        )


def register_commands(cli):
    """Register row commands with main CLI."""
    cli.add_command(row_group, name="row")
