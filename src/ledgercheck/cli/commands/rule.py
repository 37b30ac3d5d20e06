"""Classification rule commands."""

import click
from ledgercheck.cli.classification_options import (
    classification_options,
    resolve_classification,
    resolve_effective_from,
)
from ledgercheck.cli.error_handling import handle_domain_error
from ledgercheck.domain.errors import DomainError
from ledgercheck.domain.rules import ClassificationRuleService


@click.group()
def rule_group():
    """Manage the classification rule catalogue."""
    pass


@rule_group.command("set")
@click.argument("code", metavar="CODE")
@classification_options(required=True)
@click.option("--effective-from", help="When the rule takes effect (default: now)")
@click.option("--by", "created_by", default="cli", help="Who is setting the rule")
@click.pass_context
def set_rule(
    ctx,
    code: str,
    flow: str,
    category: str,
    subcategory: str,
    detail: str,
    effective_from: str | None,
    created_by: str,
):
    """Set the classification rule for an account code.

    The rule fills in the classification of matching rows that have none
    when reports are validated. Existing rows are not changed; use
    'reclassify' for that.

    Examples:
        ledgercheck rule set 5000-1002-001-007 --flow expense \\
            --category "Costo de Venta" --detail "Materia Prima"
    """
    db = ctx.obj["db"]
    service = ClassificationRuleService(db)
    flow_type, classification = resolve_classification(
        ctx, flow=flow, category=category, subcategory=subcategory, detail=detail
    )
    starts = resolve_effective_from(ctx, effective_from)

    try:
        rule_id = service.set_rule(
            code,
            flow_type,
            classification,
            effective_from=starts,
            created_by=created_by,
        )
        click.echo(f"Set rule for {code.strip()} (ID: {rule_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@rule_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive rules")
@click.pass_context
def list_rules(ctx, show_all: bool):
    """List classification rules."""
    db = ctx.obj["db"]
    service = ClassificationRuleService(db)

    rules = service.list_rules(active_only=not show_all)
    if not rules:
        click.echo("No rules found.")
        return

    usage = service.rule_usage()
    click.echo("\nClassification rules:")
    click.echo("-" * 100)
    for r in rules:
        state = "active" if r.is_active else "inactive"
        c = r.classification
        click.echo(
            f"{r.account_code} | {r.flow_type.value:8s} | {c.category} > "
            f"{c.subcategory or '-'} > {c.detail_class} | from {r.effective_from:%Y-%m-%d} | "
            f"{state} | rows: {usage.get(r.account_code, 0)}"
        )


@rule_group.command("deactivate")
@click.argument("code", metavar="CODE")
@click.pass_context
def deactivate_rule(ctx, code: str):
    """Deactivate the rule for an account code."""
    db = ctx.obj["db"]
    service = ClassificationRuleService(db)

    try:
        service.deactivate_rule(code)
        click.echo(f"Deactivated rule for {code.strip()}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
