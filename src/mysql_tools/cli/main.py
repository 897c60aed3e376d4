"""
Main CLI entry point for MySQL Tools.

This module provides the command-line interface for finding the bindings
of MySQL service instances and migrating instances between plans.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from mysql_tools import __version__
from mysql_tools.cli.commands import config as config_commands
from mysql_tools.cli.commands import find_bindings as find_bindings_commands
from mysql_tools.cli.commands import migrate as migrate_commands
from mysql_tools.cli.context import ToolsContext
from mysql_tools.cli.utils import echo_error
from mysql_tools.utils.logging import DEFAULT_LOG_LEVEL, configure_logging, get_logger

load_dotenv()

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="mysql-tools")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
    envvar="MYSQL_TOOLS_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Console logging level [default: logging.level from the configuration, else WARNING]",
    envvar="MYSQL_TOOLS_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Also write JSON logs to this file",
    envvar="MYSQL_TOOLS_LOG_FILE",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str | None,
    log_file: Path | None,
) -> None:
    """MySQL Tools - find bindings of and migrate MySQL service instances.

    Examples:

        # List every app binding and service key of p.mysql instances
        mysql-tools find-bindings p.mysql

        # Migrate an instance to a new plan
        mysql-tools migrate orders-db db-small

        # Validate configuration and test connectivity
        mysql-tools --config config.yaml config validate --check-connectivity
    """
    configure_logging(
        level=log_level or DEFAULT_LOG_LEVEL, log_file=str(log_file) if log_file else None
    )

    ctx.obj = ToolsContext(
        config_path=config,
        log_level=log_level,
        log_file=log_file,
    )

    logger.debug(
        "CLI initialized",
        config=str(config) if config else None,
        log_level=log_level,
    )


@cli.command(name="version")
def version() -> None:
    """Show the version and exit."""
    click.echo(__version__)


cli.add_command(config_commands.config)
cli.add_command(find_bindings_commands.find_bindings)
cli.add_command(migrate_commands.migrate)


def main() -> int:
    """Main entry point for CLI."""
    try:
        # Non-standalone click returns the exit code of ctx.exit() instead of raising
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        echo_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
