"""Individual steps of a service instance migration.

Each step drives the platform through a :class:`MigrationClient` (the cf
CLI in production). The workflow that chains the steps and compensates
on failure lives in :mod:`mysql_tools.migration.workflow`.
"""

import json
import tempfile
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from mysql_tools.client.exceptions import MigrationError, MySQLToolsError
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)


class MigrationClient(Protocol):
    """Platform operations needed by the migrator."""

    def service_exists(self, service_name: str) -> bool: ...

    def create_service_instance(self, plan_type: str, instance_name: str) -> None: ...

    def get_hostnames(self, instance_name: str) -> list[str]: ...

    def update_service_config(self, instance_name: str, json_params: str) -> None: ...

    def bind_service(self, app_name: str, service_name: str) -> None: ...

    def delete_app(self, app_name: str) -> None: ...

    def delete_service_instance(self, instance_name: str) -> None: ...

    def dump_logs(self, app_name: str) -> str: ...

    def push_app(self, path: str, app_name: str) -> None: ...

    def rename_service(self, old_name: str, new_name: str) -> None: ...

    def run_task(self, app_name: str, command: str) -> None: ...

    def start_app(self, app_name: str) -> None: ...


class Unpacker(Protocol):
    def unpack(self, dest_dir: str | Path) -> None: ...


class Migrator:
    """Migrates the data of one MySQL service instance into another."""

    def __init__(
        self,
        client: MigrationClient,
        unpacker: Unpacker,
        log_dump_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.unpacker = unpacker
        self.log_dump_delay = log_dump_delay
        self._sleep = sleep
        self.app_name: str | None = None

    def check_service_exists(self, donor_instance_name: str) -> None:
        if not self.client.service_exists(donor_instance_name):
            raise MigrationError(f"Service instance {donor_instance_name} not found")

    def create_and_configure_service_instance(self, plan_type: str, service_name: str) -> None:
        """Create the recipient instance and enable TLS for its hostnames.

        If the hostnames cannot be read the new instance is deleted again.
        """
        try:
            self.client.create_service_instance(plan_type, service_name)
        except MySQLToolsError as e:
            raise MigrationError(f"Error creating service instance: {e}") from e

        try:
            hostnames = self.client.get_hostnames(service_name)
        except MySQLToolsError as e:
            self._delete_quietly(service_name)
            raise MigrationError(
                f"Error obtaining hostname for new service instance: {e}"
            ) from e

        try:
            self.client.update_service_config(service_name, json.dumps({"enable_tls": hostnames}))
        except MySQLToolsError as e:
            raise MigrationError(f"Error enabling TLS on service instance: {e}") from e

    def migrate_data(
        self, donor_instance_name: str, recipient_instance_name: str, cleanup: bool = True
    ) -> None:
        """Push the migration app, bind both instances and run the migrate task.

        The migration app is deleted afterwards unless ``cleanup`` is False.
        """
        with tempfile.TemporaryDirectory(prefix="migrate_app_") as tmp_dir:
            logger.info("unpacking_assets", directory=tmp_dir)
            try:
                self.unpacker.unpack(tmp_dir)
            except (MySQLToolsError, OSError) as e:
                raise MigrationError(f"Error extracting migrate assets: {e}") from e

            self.app_name = f"migrate-app-{uuid.uuid4()}"
            logger.info("pushing_app", app=self.app_name)
            try:
                self.client.push_app(tmp_dir, self.app_name)
            except MySQLToolsError as e:
                raise MigrationError(f"failed to push application: {e}") from e

        try:
            self._run_migration_app(donor_instance_name, recipient_instance_name)
        finally:
            if cleanup:
                logger.info("cleaning_up_app", app=self.app_name)
                try:
                    self.client.delete_app(self.app_name)
                except MySQLToolsError as e:
                    logger.warning("app_cleanup_failed", app=self.app_name, error=str(e))

    def _run_migration_app(self, donor_instance_name: str, recipient_instance_name: str) -> None:
        app_name = self.app_name

        for instance_name in (donor_instance_name, recipient_instance_name):
            try:
                self.client.bind_service(app_name, instance_name)
            except MySQLToolsError as e:
                raise MigrationError(
                    f"failed to bind-service {instance_name!r} to application {app_name!r}: {e}"
                ) from e
            logger.info("service_bound", app=app_name, service_instance=instance_name)

        try:
            self.client.start_app(app_name)
        except MySQLToolsError as e:
            raise MigrationError(f"failed to start application {app_name!r}: {e}") from e

        logger.info("running_migration_task", app=app_name)
        command = f"./migrate {donor_instance_name} {recipient_instance_name}"
        try:
            self.client.run_task(app_name, command)
        except MySQLToolsError as e:
            logger.error("migration_task_failed", app=app_name, error=str(e))
            # Give the log aggregator time to receive the task output
            self._sleep(self.log_dump_delay)
            self.client.dump_logs(app_name)
            raise MigrationError(f"migration task failed: {e}") from e

        logger.info("migration_task_succeeded", app=app_name)

    def rename_service_instances(
        self, donor_instance_name: str, recipient_instance_name: str
    ) -> None:
        """Swap names: donor becomes ``<donor>-old``, recipient takes the donor's name."""
        renames = (
            (donor_instance_name, f"{donor_instance_name}-old"),
            (recipient_instance_name, donor_instance_name),
        )
        for old_name, new_name in renames:
            try:
                self.client.rename_service(old_name, new_name)
            except MySQLToolsError as e:
                raise MigrationError(f"Error renaming service instance {old_name}: {e}") from e

    def cleanup_on_error(self, recipient_instance_name: str) -> None:
        self.client.delete_service_instance(recipient_instance_name)

    def _delete_quietly(self, instance_name: str) -> None:
        try:
            self.client.delete_service_instance(instance_name)
        except MySQLToolsError as e:
            logger.warning("service_cleanup_failed", service_instance=instance_name, error=str(e))
