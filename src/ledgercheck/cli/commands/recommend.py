"""Approach recommendation command."""

import click
from ledgercheck.cli.error_handling import resolve_report_or_exit
from ledgercheck.domain.validation_service import LedgerValidationService
from ledgercheck.utils.amount_parser import format_percentage


@click.command("recommend")
@click.argument("report", metavar="REPORT")
@click.option("--family", "family_key", help="Only show one family (TTTT-DDDD)")
@click.pass_context
def recommend(ctx, report: str, family_key: str | None):
    """Recommend the classification level for each family of a report.

    Examples:
        ledgercheck recommend "March 2024"
        ledgercheck recommend 1 --family 5000-1002
    """
    db = ctx.obj["db"]
    found = resolve_report_or_exit(ctx, db, report)
    service = LedgerValidationService(db, ctx.obj["settings"])

    recommendations = service.recommend(found.id)
    if family_key is not None:
        recommendations = {k: v for k, v in recommendations.items() if k == family_key}
    if not recommendations:
        click.echo("No families found.")
        return

    for key, (name, rec) in recommendations.items():
        click.echo(f"\n{key} {name}")
        click.echo("-" * 60)
        click.echo(
            f"  {rec.approach.value} ({format_percentage(rec.current_completeness)} complete)"
        )
        click.echo(f"  {rec.reasoning}")
        for action in rec.specific_actions:
            click.echo(f"    - {action}")


def register_commands(cli):
    """Register recommend command with main CLI."""
    cli.add_command(recommend)
