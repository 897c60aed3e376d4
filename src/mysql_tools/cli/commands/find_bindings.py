"""
Binding discovery command.

Lists every app binding and service key of the instances of a service
offering, so operators can see who is affected before migrating.
"""

import asyncio
import json

import click

from mysql_tools.bindings.finder import BindingFinder
from mysql_tools.bindings.models import BindingRecord
from mysql_tools.cli.context import ToolsContext
from mysql_tools.cli.decorators import handle_errors, pass_context
from mysql_tools.cli.utils import echo_info, print_table
from mysql_tools.config import DEFAULT_PRODUCT_NAME
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)

TABLE_COLUMNS = ["Name", "Service Instance", "Service Instance GUID", "Org", "Space", "Type"]


async def _find_bindings(ctx: ToolsContext, label: str) -> list[BindingRecord]:
    async with ctx.create_catalog_client() as client:
        return await BindingFinder(client).find_bindings(label)


@click.command(name="find-bindings")
@click.argument("service_label", default=DEFAULT_PRODUCT_NAME)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format",
)
@pass_context
@handle_errors
def find_bindings(ctx: ToolsContext, service_label: str, output_format: str) -> None:
    """List app bindings and service keys of every instance of a service.

    SERVICE_LABEL is the service offering label (default: p.mysql).

    Examples:

        mysql-tools find-bindings

        mysql-tools find-bindings p-mysql --format json
    """
    records = asyncio.run(_find_bindings(ctx, service_label))

    if output_format.lower() == "json":
        click.echo(json.dumps([record.to_dict() for record in records], indent=2))
        return

    if not records:
        echo_info(f"No bindings or service keys found for service {service_label!r}")
        return

    rows = [
        [
            record.name,
            record.service_instance_name,
            record.service_instance_guid,
            record.org_name,
            record.space_name,
            record.type.value,
        ]
        for record in records
    ]
    print_table(f"Bindings for {service_label}", TABLE_COLUMNS, rows)
