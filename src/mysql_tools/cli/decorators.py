"""
Command decorators: context injection, error to exit-code mapping, and
confirmation prompts.
"""

import functools
from collections.abc import Callable

import click

from mysql_tools.cli.context import ToolsContext
from mysql_tools.cli.utils import echo_error
from mysql_tools.client.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    DiscoveryError,
    MigrationError,
    NetworkError,
)
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)

EXIT_GENERAL = 1
EXIT_CONFIG = 2
EXIT_AUTH = 3
EXIT_API = 4
EXIT_MIGRATION = 5

# First matching entry wins
_ERROR_EXITS: tuple[tuple[tuple[type[Exception], ...], int, str], ...] = (
    ((ConfigurationError,), EXIT_CONFIG, "Configuration error"),
    ((APIError, NetworkError, DiscoveryError), EXIT_API, "API error"),
    ((MigrationError,), EXIT_MIGRATION, "Migration error"),
)


def pass_context(f: Callable) -> Callable:
    """Call the command with the :class:`ToolsContext` as first argument."""

    @click.pass_context
    @functools.wraps(f)
    def wrapper(click_ctx: click.Context, *args, **kwargs):
        tools_ctx: ToolsContext = click_ctx.obj
        return f(tools_ctx, *args, **kwargs)

    return wrapper


def _expired_token(error: BaseException) -> bool:
    """True when the error, or the API error it wraps, is a 401."""
    return any(isinstance(e, AuthenticationError) for e in (error, error.__cause__))


def exit_code_for(error: Exception) -> tuple[int, str]:
    """Map an exception to the process exit code and a short label."""
    if _expired_token(error):
        return EXIT_AUTH, "Authentication error"
    for error_types, code, label in _ERROR_EXITS:
        if isinstance(error, error_types):
            return code, label
    return EXIT_GENERAL, "Unexpected error"


def handle_errors(f: Callable) -> Callable:
    """Turn errors raised by a command into a message and an exit code.

    Exit codes: 1 unexpected, 2 configuration, 3 rejected token,
    4 Cloud Controller or discovery failure, 5 migration failure.
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except Exception as e:
            code, label = exit_code_for(e)
            logger.error(label, error=str(e), exit_code=code, exc_info=code == EXIT_GENERAL)
            echo_error(f"{label}: {e}")
            if code == EXIT_AUTH:
                click.echo("Run `cf oauth-token` and update the configured token.", err=True)
            raise click.exceptions.Exit(code) from e

    return wrapper


def confirm_action(
    message: str = "Do you want to continue?",
    abort_message: str = "Operation cancelled.",
) -> Callable:
    """Ask before running the command unless it was given ``--yes``."""

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            if not click.get_current_context().params.get("yes") and not click.confirm(message):
                click.echo(abort_message)
                raise click.exceptions.Exit(0)
            return f(*args, **kwargs)

        return wrapper

    return decorator
