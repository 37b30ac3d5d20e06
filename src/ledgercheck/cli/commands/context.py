"""Account context command."""

import click
from ledgercheck.cli.error_handling import handle_domain_error, resolve_report_or_exit
from ledgercheck.domain.context import check_before_apply, suggest_classification
from ledgercheck.domain.errors import DomainError
from ledgercheck.domain.rules import ClassificationRuleService
from ledgercheck.domain.validation_service import LedgerValidationService
from ledgercheck.utils.amount_parser import format_currency, format_percentage


@click.command("context")
@click.argument("report", metavar="REPORT")
@click.argument("code", metavar="CODE")
@click.pass_context
def context(ctx, report: str, code: str):
    """Show the family context of an account before classifying it.

    Lists the account's siblings, whether classifying it would double count,
    and a suggested classification.

    Examples:
        ledgercheck context "March 2024" 5000-1002-001-007
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    found = resolve_report_or_exit(ctx, db, report)
    rows = db.list_ledger_rows(found.id)

    try:
        catalogue = ClassificationRuleService(db).catalogue()
        suggestion = suggest_classification(code, rows, catalogue, settings)
        check = check_before_apply(code, rows, settings)
    except DomainError as e:
        handle_domain_error(ctx, e)

    fam = suggestion.context
    click.echo(f"\n{fam.family_key} {fam.family_name} - Level {fam.level}")
    click.echo("-" * 80)
    for s in fam.siblings:
        marker = "*" if s.code == suggestion.account_code else " "
        click.echo(
            f"{marker} {s.code} | {s.label[:30]:30s} | {format_currency(s.amount):>14s} | "
            f"{s.status.value}"
        )
    click.echo(
        f"\n{fam.classified_siblings} of {fam.total_siblings} classified "
        f"({format_percentage(fam.completeness_percentage)}), "
        f"missing {format_currency(fam.missing_amount)}"
    )
    click.echo(f"Recommended approach: {fam.recommended_approach.value}")

    if check.valid:
        click.echo("Classifying this account is safe.")
    else:
        click.echo(f"WARNING [{check.error}]: {check.message}")

    if suggestion.classification is not None:
        c = suggestion.classification
        click.echo(
            f"Suggested ({suggestion.source}, {suggestion.confidence:.0%}): "
            f"{suggestion.flow_type.value} / {c.category} / {c.subcategory or '-'} / "
            f"{c.detail_class}"
        )
    click.echo(suggestion.reasoning)


def register_commands(cli):
    """Register context command with main CLI."""
    cli.add_command(context)
