"""
Migration command.

Moves the data of a MySQL service instance to a new instance on another
plan and swaps the instance names once the copy succeeded.
"""

import click

from mysql_tools.cli.context import ToolsContext
from mysql_tools.cli.decorators import confirm_action, handle_errors, pass_context
from mysql_tools.cli.utils import echo_success
from mysql_tools.migration.workflow import run_migration
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)


@click.command(name="migrate")
@click.argument("source_instance", metavar="<source-service-instance>")
@click.argument("plan_name", metavar="<p.mysql-plan-type>")
@click.option(
    "--no-cleanup",
    is_flag=True,
    help="Don't clean up the migration app and new service instance after a failed migration",
)
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@pass_context
@handle_errors
@confirm_action("This will create a new service instance and rename the existing one. Continue?")
def migrate(
    ctx: ToolsContext, source_instance: str, plan_name: str, no_cleanup: bool, yes: bool
) -> None:
    """Migrate a service instance to a new instance on PLAN_NAME.

    The new instance is created as <source>-new. After the data is copied,
    the source is renamed to <source>-old and the new instance takes its name.

    Examples:

        mysql-tools migrate orders-db db-small

        mysql-tools migrate orders-db db-small --no-cleanup --yes
    """
    settings = ctx.config.migration
    migrator = ctx.create_migrator()

    run_migration(
        migrator,
        donor_instance_name=source_instance,
        plan_name=plan_name,
        cleanup=not no_cleanup,
        product_name=settings.recipient_product_name,
    )

    echo_success(
        f"Migrated {source_instance} to plan {plan_name} of {settings.recipient_product_name}; "
        f"the original instance is now {source_instance}-old"
    )
