"""End-to-end migration of a MySQL service instance.

The workflow creates ``<donor>-new`` on the requested plan, copies the
data across with a short-lived migration app, and finally swaps the
instance names. When creation or data migration fails the new instance
is deleted again, unless cleanup was disabled.
"""

from typing import Protocol

from mysql_tools.client.exceptions import MigrationError, MySQLToolsError
from mysql_tools.config import DEFAULT_PRODUCT_NAME
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)


class MigrationSteps(Protocol):
    def check_service_exists(self, donor_instance_name: str) -> None: ...

    def create_and_configure_service_instance(self, plan_type: str, service_name: str) -> None: ...

    def migrate_data(
        self, donor_instance_name: str, recipient_instance_name: str, cleanup: bool = True
    ) -> None: ...

    def rename_service_instances(
        self, donor_instance_name: str, recipient_instance_name: str
    ) -> None: ...

    def cleanup_on_error(self, recipient_instance_name: str) -> None: ...


def recipient_name(donor_instance_name: str) -> str:
    return f"{donor_instance_name}-new"


def run_migration(
    migrator: MigrationSteps,
    donor_instance_name: str,
    plan_name: str,
    cleanup: bool = True,
    product_name: str = DEFAULT_PRODUCT_NAME,
) -> None:
    """Migrate a service instance to a new instance on ``plan_name``.

    Args:
        migrator: Migration steps implementation
        donor_instance_name: Instance to migrate
        plan_name: Plan of the new instance
        cleanup: Delete the new instance if creation or migration fails
        product_name: Service offering of the new instance (for messages)

    Raises:
        MigrationError: If any step fails
    """
    recipient_instance_name = recipient_name(donor_instance_name)

    migrator.check_service_exists(donor_instance_name)

    logger.warning(
        "The migrate command will not migrate any triggers, routines or events.",
        donor=donor_instance_name,
    )
    logger.info(
        "creating_service_instance",
        service_instance=recipient_instance_name,
        product=product_name,
        plan=plan_name,
    )

    try:
        migrator.create_and_configure_service_instance(plan_name, recipient_instance_name)
    except MySQLToolsError as e:
        raise _compensate(
            migrator, "error creating service instance", e, recipient_instance_name, cleanup
        ) from e

    try:
        migrator.migrate_data(donor_instance_name, recipient_instance_name, cleanup)
    except MySQLToolsError as e:
        raise _compensate(
            migrator, "error migrating data", e, recipient_instance_name, cleanup
        ) from e

    migrator.rename_service_instances(donor_instance_name, recipient_instance_name)

    logger.info(
        "migration_complete",
        service_instance=donor_instance_name,
        previous_instance=f"{donor_instance_name}-old",
    )


def _compensate(
    migrator: MigrationSteps,
    stage: str,
    error: Exception,
    recipient_instance_name: str,
    cleanup: bool,
) -> MigrationError:
    """Delete the recipient (if allowed) and build the error to raise."""
    if not cleanup:
        return MigrationError(
            f"{stage}: {error}. Not cleaning up service {recipient_instance_name}"
        )

    try:
        migrator.cleanup_on_error(recipient_instance_name)
    except MySQLToolsError as cleanup_error:
        logger.error(
            "service_cleanup_failed",
            service_instance=recipient_instance_name,
            error=str(cleanup_error),
        )

    return MigrationError(
        f"{stage}: {error}. Attempting to clean up service {recipient_instance_name}"
    )
