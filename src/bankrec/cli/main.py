"""Main CLI entry point."""

import click
from bankrec.database.factories import BACKENDS, create_database
from bankrec.domain.errors import PersistenceError
from bankrec.utils.logging_config import setup_logging

# Import and register all commands at module level
from bankrec.cli.commands import (
    statement,
    rules,
    reconcile,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BANKREC_DB_PATH environment variable)",
    envvar="BANKREC_DB_PATH",
)
@click.option(
    "--backend",
    type=click.Choice(BACKENDS),
    default="sqlite",
    show_default=True,
    envvar="BANKREC_BACKEND",
    help="Storage backend",
)
@click.option(
    "--owner",
    default="default",
    show_default=True,
    envvar="BANKREC_OWNER",
    help="Owner (user) whose statements and rules to use",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="BANKREC_LOG_LEVEL",
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, backend: str, owner: str, log_level: str):
    """Bankrec - bank statement reconciliation.

    Import OFX statements exported by your bank and turn their transactions
    into income and expense entries using reconciliation rules.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            db = create_database(backend=backend, database_path=db_path)
        except PersistenceError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["owner"] = owner
        ctx.call_on_close(db.disconnect)


# Register all commands
statement.register_commands(cli)
rules.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
