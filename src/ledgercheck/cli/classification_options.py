"""CLI helpers for classification input."""

from datetime import datetime

import click

from ledgercheck.domain.entities import Classification, FlowType
from ledgercheck.utils.date_parser import parse_effective_from

FLOW_CHOICES = {"income": FlowType.INCOME, "expense": FlowType.EXPENSE}


def classification_options(required: bool):
    """Add --flow/--category/--subcategory/--detail options to a command."""

    def decorator(func):
        func = click.option(
            "--detail", "detail", required=required, help="Detail classification"
        )(func)
        func = click.option("--subcategory", default="", help="Subcategory")(func)
        func = click.option("--category", required=required, help="Category")(func)
        func = click.option(
            "--flow",
            type=click.Choice(sorted(FLOW_CHOICES), case_sensitive=False),
            required=required,
            help="Flow type",
        )(func)
        return func

    return decorator


def resolve_classification(
    ctx,
    *,
    flow: str | None,
    category: str | None,
    subcategory: str | None,
    detail: str | None,
) -> tuple[FlowType, Classification | None]:
    """Build flow type and classification from CLI options.

    All of --flow, --category and --detail must be given together, or none.
    """
    given = [value for value in (flow, category, detail) if value]
    if not given:
        return FlowType.UNDEFINED, None

    if len(given) != 3:
        click.echo(
            "Error: --flow, --category and --detail must be given together.",
            err=True,
        )
        ctx.exit(1)

    return FLOW_CHOICES[flow.lower()], Classification(
        category=category, subcategory=subcategory or "", detail_class=detail
    )


def resolve_effective_from(ctx, effective_from: str | None) -> datetime:
    """Parse --effective-from, exiting with an error on bad input."""
    try:
        return parse_effective_from(effective_from)
    except ValueError as e:
        click.echo(f"Error: Invalid effective date: {e}", err=True)
        ctx.exit(1)
