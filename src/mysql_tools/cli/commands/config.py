"""
Configuration management commands.

This module provides commands for validating and displaying the
MySQL Tools configuration.
"""

import asyncio

import click

from mysql_tools.cli.context import ToolsContext
from mysql_tools.cli.decorators import handle_errors, pass_context
from mysql_tools.cli.utils import echo_info, echo_success, echo_warning, print_table
from mysql_tools.config import ToolsConfig
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="validate")
@click.option(
    "--check-connectivity",
    is_flag=True,
    help="Query the Cloud Controller info endpoint with the configured token",
)
@pass_context
@handle_errors
def validate(ctx: ToolsContext, check_connectivity: bool) -> None:
    """Validate configuration.

    Examples:

        mysql-tools --config config.yaml config validate

        mysql-tools config validate --check-connectivity
    """
    config = ctx.config

    _display_config_summary(config)

    if config.cf is None:
        echo_warning("No Cloud Controller connection configured; find-bindings will not work")
    if config.migration.app_assets_dir is None:
        echo_warning("No migration app assets configured; migrate will not work")

    if check_connectivity:
        echo_info("Testing connectivity...")
        info = asyncio.run(_fetch_info(ctx))
        echo_success(
            f"Cloud Controller reachable: {info.get('name') or 'unnamed'} "
            f"(API {info.get('api_version', 'unknown')})"
        )

    echo_success("Configuration is valid!")


async def _fetch_info(ctx: ToolsContext) -> dict:
    async with ctx.create_catalog_client() as client:
        return await client.get_info()


def _display_config_summary(config: ToolsConfig) -> None:
    rows = [
        ["API URL", config.cf.api_url if config.cf else None],
        ["Token", "*" * 8 + " (masked)" if config.cf else None],
        ["Verify SSL", config.cf.verify_ssl if config.cf else None],
        ["Rate Limit (req/s)", config.performance.rate_limit],
        ["Results Per Page", config.performance.results_per_page],
        ["Recipient Product", config.migration.recipient_product_name],
        ["Migration App Assets", config.migration.app_assets_dir],
        ["Provision Timeout (s)", config.migration.provision_timeout],
    ]

    print_table("Configuration Summary", ["Setting", "Value"], rows)


@config.command(name="show")
@pass_context
@handle_errors
def show(ctx: ToolsContext) -> None:
    """Display current configuration with the token masked.

    Examples:

        mysql-tools --config config.yaml config show
    """
    config = ctx.config

    _display_config_summary(config)

    click.echo("\nLogging Configuration:")
    click.echo(f"  Level: {config.logging.level}")
    click.echo(f"  File: {config.logging.file or '-'} ({config.logging.format})")
    click.echo(f"  Log Payloads: {config.logging.log_payloads}")
