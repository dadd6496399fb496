"""Main CLI entry point."""

import click
from sitebooks.database.factories import create_sqlite_database
from sitebooks.logger import setup_logging

# Import and register all commands at module level
from sitebooks.cli.commands import (
    import_cmd,
    batch,
    payee,
    client,
    project,
    mapping,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SITEBOOKS_DB_PATH environment variable)",
    envvar="SITEBOOKS_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides SITEBOOKS_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Sitebooks - QuickBooks import for construction project books.

    Import QuickBooks transaction exports into project expenses and revenue,
    with duplicate detection, payee matching and per-import rollback.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
import_cmd.register_commands(cli)
batch.register_commands(cli)
payee.register_commands(cli)
client.register_commands(cli)
project.register_commands(cli)
mapping.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
