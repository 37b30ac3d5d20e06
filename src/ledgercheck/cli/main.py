"""Main CLI entry point."""

import logging

import click
from ledgercheck.database.factories import create_sqlite_database
from ledgercheck.domain.settings import DEFAULT_SETTINGS

# Import and register all commands at module level
from ledgercheck.cli.commands import (
    report,
    row,
    rule,
    validate,
    reconcile,
    recommend,
    context,
    reclassify,
)

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERCHECK_DB_PATH environment variable)",
    envvar="LEDGERCHECK_DB_PATH",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase log output (-v for progress, -vv for per-family detail)",
)
@click.pass_context
def cli(ctx, db_path: str | None, verbose: int):
    """Ledgercheck - Account classification consistency checker.

    Validates that ledger accounts in a TTTT-DDDD-CCC-FFF hierarchy are
    classified at exactly one level, so no amount is counted twice or missed.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj.setdefault("settings", DEFAULT_SETTINGS)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
report.register_commands(cli)
row.register_commands(cli)
rule.register_commands(cli)
validate.register_commands(cli)
reconcile.register_commands(cli)
recommend.register_commands(cli)
context.register_commands(cli)
reclassify.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
