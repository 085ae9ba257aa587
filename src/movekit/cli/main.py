"""Main CLI entry point."""

import logging

import click
from movekit.database.factories import create_sqlite_database

# Import and register all commands at module level
from movekit.cli.commands import (
    init_concepts,
    concept,
    directory,
    movement,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides MOVEKIT_DB_PATH environment variable)",
    envvar="MOVEKIT_DB_PATH",
)
@click.option(
    "--org",
    "organization_id",
    default="default",
    show_default=True,
    help="Organization to work in",
    envvar="MOVEKIT_ORGANIZATION",
)
@click.option(
    "--user",
    "user_id",
    help="Acting user id, recorded as the movement creator",
    envvar="MOVEKIT_USER",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, organization_id: str, user_id: str | None, verbose: bool):
    """Movekit - Movement classification and entry.

    Record project movements (expenses, income, currency conversions,
    internal transfers, member contributions and withdrawals) against a
    shared concept tree.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["organization_id"] = organization_id
    ctx.obj["user_id"] = user_id

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
init_concepts.register_commands(cli)
concept.register_commands(cli)
directory.register_commands(cli)
movement.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
