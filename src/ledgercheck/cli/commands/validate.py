"""Hierarchy validation command."""

import click
from ledgercheck.cli.error_handling import resolve_report_or_exit
from ledgercheck.domain.entities import FamilyValidationResult
from ledgercheck.domain.validation_service import LedgerValidationService
from ledgercheck.utils.amount_parser import format_currency, format_percentage


def _echo_family(result: FamilyValidationResult, show_steps: bool) -> None:
    click.echo(
        f"\n{result.family_key} {result.family_name} "
        f"(impact {format_currency(result.financial_impact)})"
    )
    click.echo("-" * 80)
    for issue in result.issues:
        click.echo(
            f"[{issue.severity.value}] P{issue.priority_rank} {issue.type.value} "
            f"{issue.parent_code}"
        )
        click.echo(f"  {issue.error_message}")
        click.echo(f"  {issue.business_impact}")
        if issue.completeness_percentage is not None:
            click.echo(
                f"  Completeness: {format_percentage(issue.completeness_percentage)}"
                + ("  (auto-fixable)" if issue.auto_fixable else "")
            )
        if show_steps:
            for step in issue.resolution_steps:
                click.echo(f"    {step}")
    rec = result.recommended_approach
    click.echo(
        f"  Recommended: {rec.approach.value} "
        f"({format_percentage(rec.current_completeness)} complete)"
    )


@click.command("validate")
@click.argument("report", metavar="REPORT")
@click.option(
    "--flag-partial-coverage",
    is_flag=True,
    envvar="LEDGERCHECK_FLAG_PARTIAL_COVERAGE",
    help="Also flag classified parents whose children are only partly classified",
)
@click.option("--steps/--no-steps", default=True, help="Show resolution steps")
@click.pass_context
def validate(ctx, report: str, flag_partial_coverage: bool, steps: bool):
    """Validate classification consistency of a report.

    REPORT can be a report name or ID. Exits with status 1 when issues are
    found, so the command can gate a close process.

    Examples:
        ledgercheck validate "March 2024"
        ledgercheck validate 1 --flag-partial-coverage --no-steps
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    if flag_partial_coverage:
        settings = settings.with_overrides(flag_partial_coverage=True)
    found = resolve_report_or_exit(ctx, db, report)
    service = LedgerValidationService(db, settings)

    results = service.validate(found.id)
    if not results:
        click.echo(f"No classification issues found in '{found.name}'.")
        return

    issue_count = sum(len(r.issues) for r in results)
    total = sum((r.financial_impact for r in results))
    click.echo(
        f"Found {issue_count} issue(s) in {len(results)} families of '{found.name}' "
        f"(total impact {format_currency(total)})"
    )
    for result in results:
        _echo_family(result, steps)
    ctx.exit(1)


def register_commands(cli):
    """Register validate command with main CLI."""
    cli.add_command(validate)
