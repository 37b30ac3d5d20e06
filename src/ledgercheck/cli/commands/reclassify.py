"""Retroactive reclassification commands."""

import click
from ledgercheck.cli.classification_options import (
    classification_options,
    resolve_classification,
    resolve_effective_from,
)
from ledgercheck.cli.error_handling import handle_domain_error
from ledgercheck.domain.errors import DomainError
from ledgercheck.domain.retroactive import RetroactiveService
from ledgercheck.utils.amount_parser import format_currency


@click.command("reclassify")
@click.argument("code", metavar="CODE")
@classification_options(required=True)
@click.option("--effective-from", help="When the new rule takes effect (default: now)")
@click.option("--by", "created_by", default="cli", help="Who is making the change")
@click.option("--yes", is_flag=True, help="Apply without asking for confirmation")
@click.pass_context
def reclassify(
    ctx,
    code: str,
    flow: str,
    category: str,
    subcategory: str,
    detail: str,
    effective_from: str | None,
    created_by: str,
    yes: bool,
):
    """Apply a classification to every historical row of an account code.

    Shows the impact first and asks before changing anything. The
    classification rule for the code is updated as well.

    Examples:
        ledgercheck reclassify 5000-1000-001-001 --flow expense \\
            --category "Gastos" --detail "Mantenimiento"
    """
    db = ctx.obj["db"]
    service = RetroactiveService(db, ctx.obj["settings"])
    flow_type, classification = resolve_classification(
        ctx, flow=flow, category=category, subcategory=subcategory, detail=detail
    )
    starts = resolve_effective_from(ctx, effective_from)

    try:
        impact = service.analyze(code, flow_type, classification)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"{impact.account_code}: {impact.affected_records} record(s) in "
        f"{len(impact.affected_reports)} report(s), "
        f"impact {format_currency(impact.total_financial_impact)}"
    )
    if impact.affected_records == 0:
        click.echo("Nothing to reclassify.")
        return

    if not yes and not click.confirm("Apply this classification to all of them?"):
        click.echo("Cancelled.")
        return

    try:
        entry = service.commit(impact, created_by=created_by, effective_from=starts)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Reclassified {entry.affected_records} record(s) in "
        f"{entry.affected_reports} report(s) (audit ID: {entry.id})"
    )


@click.command("history")
@click.argument("code", metavar="CODE")
@click.pass_context
def history(ctx, code: str):
    """Show how an account code was classified in each report."""
    db = ctx.obj["db"]
    service = RetroactiveService(db)

    try:
        entries = service.history(code)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not entries:
        click.echo("No history found.")
        return

    click.echo(f"\nClassification history of {code.strip()}:")
    click.echo("-" * 90)
    for h in entries:
        detail = h.classification.detail_class if h.classification else "-"
        click.echo(
            f"{h.report_name[:25]:25s} | {format_currency(h.amount):>14s} | "
            f"{h.flow_type.value:9s} | {detail}"
        )


def register_commands(cli):
    """Register reclassify and history commands with main CLI."""
    cli.add_command(reclassify)
    cli.add_command(history)
