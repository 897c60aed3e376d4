"""cf CLI client used by the migration workflow.

The migration needs operations the Cloud Controller exposes only through
multi-step flows (pushing bits, running tasks, waiting on brokers), so it
drives the ``cf`` command line of the already logged-in user instead of
the HTTP API.
"""

import json
import re
import subprocess
import time
import uuid
from collections.abc import Callable

from mysql_tools.client.exceptions import CommandError, MigrationError
from mysql_tools.utils.logging import get_logger
from mysql_tools.utils.retry import retry_on_command_error, wait_until

logger = get_logger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]

_STATUS_PATTERN = re.compile(r"^\s*status:\s*(.+?)\s*$", re.MULTILINE)
_TASK_ID_PATTERN = re.compile(r"^\s*task id:\s*(\d+)\s*$", re.MULTILINE)


class CfCliClient:
    """Thin wrapper around the cf CLI.

    Every method runs one or more cf commands and raises
    :class:`CommandError` when one exits non-zero.
    """

    def __init__(
        self,
        product_name: str,
        cf_binary: str = "cf",
        provision_timeout: float = 3600,
        poll_interval: float = 10,
        runner: Runner = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize cf CLI client.

        Args:
            product_name: Service offering used when creating instances
            cf_binary: cf CLI executable
            provision_timeout: Seconds to wait for service and task operations
            poll_interval: Seconds between status polls
            runner: subprocess.run compatible callable
            sleep: Sleep function used while polling
        """
        self.product_name = product_name
        self.cf_binary = cf_binary
        self.provision_timeout = provision_timeout
        self.poll_interval = poll_interval
        self._runner = runner
        self._sleep = sleep

    def _run(self, *args: str) -> str:
        command = [self.cf_binary, *args]
        logger.debug("cf_command", command=" ".join(command))

        result = self._runner(command, capture_output=True, text=True, check=False)
        output = (result.stdout or "") + (result.stderr or "")

        if result.returncode != 0:
            logger.warning(
                "cf_command_failed", command=" ".join(command), returncode=result.returncode
            )
            raise CommandError(command, result.returncode, output)

        return result.stdout or ""

    def service_exists(self, service_name: str) -> bool:
        try:
            self._run("service", service_name, "--guid")
        except CommandError:
            return False
        return True

    @retry_on_command_error()
    def service_status(self, service_name: str) -> str:
        """Return the last operation status of a service instance (e.g. 'create succeeded')."""
        match = _STATUS_PATTERN.search(self._run("service", service_name))
        if match is None:
            raise MigrationError(f"Could not determine status of service instance {service_name}")
        return match.group(1).lower()

    def _wait_for_service(self, service_name: str, operation: str) -> None:
        def finished() -> bool:
            status = self.service_status(service_name)
            if status == f"{operation} failed":
                raise MigrationError(f"Service instance {service_name}: {operation} failed")
            return status == f"{operation} succeeded"

        wait_until(
            finished,
            description=f"service instance {service_name} to {operation}",
            timeout=self.provision_timeout,
            interval=self.poll_interval,
            sleep=self._sleep,
        )

    def create_service_instance(self, plan_type: str, instance_name: str) -> None:
        self._run("create-service", self.product_name, plan_type, instance_name)
        self._wait_for_service(instance_name, "create")

    def update_service_config(self, instance_name: str, json_params: str) -> None:
        self._run("update-service", instance_name, "-c", json_params)
        self._wait_for_service(instance_name, "update")

    def get_hostnames(self, instance_name: str) -> list[str]:
        """Read the hostnames of an instance from a temporary service key."""
        key_name = f"MIGRATE-{uuid.uuid4()}"
        self._run("create-service-key", instance_name, key_name)
        try:
            output = self._run("service-key", instance_name, key_name)
        finally:
            try:
                self._run("delete-service-key", "-f", instance_name, key_name)
            except CommandError as e:
                logger.warning(
                    "service_key_cleanup_failed",
                    service_instance=instance_name,
                    service_key=key_name,
                    error=str(e),
                )

        start = output.find("{")
        if start < 0:
            raise MigrationError(f"Service key for {instance_name} contains no credentials")
        try:
            credentials = json.loads(output[start:])
        except json.JSONDecodeError as e:
            raise MigrationError(f"Service key for {instance_name} is not valid JSON") from e

        # cf v7 nests credentials, v6 prints them directly
        credentials = credentials.get("credentials", credentials)
        hostnames = credentials.get("hostnames") or []
        if not hostnames and credentials.get("hostname"):
            hostnames = [credentials["hostname"]]
        if not hostnames:
            raise MigrationError(f"Service key for {instance_name} has no hostname")
        return list(hostnames)

    def push_app(self, path: str, app_name: str) -> None:
        self._run("push", app_name, "-p", path, "--no-start", "--no-route", "-u", "none")

    def bind_service(self, app_name: str, service_name: str) -> None:
        self._run("bind-service", app_name, service_name)

    def start_app(self, app_name: str) -> None:
        self._run("start", app_name)

    def run_task(self, app_name: str, command: str) -> None:
        """Run a task and wait for it to finish successfully."""
        output = self._run("run-task", app_name, command, "--name", "migrate")
        match = _TASK_ID_PATTERN.search(output)
        if match is None:
            raise MigrationError(f"Could not determine task id for app {app_name}")
        task_id = match.group(1)

        def finished() -> bool:
            state = self.task_state(app_name, task_id)
            if state == "FAILED":
                raise MigrationError(f"Task {task_id} on app {app_name} failed")
            return state == "SUCCEEDED"

        wait_until(
            finished,
            description=f"task {task_id} on app {app_name}",
            timeout=self.provision_timeout,
            interval=self.poll_interval,
            sleep=self._sleep,
        )

    @retry_on_command_error()
    def task_state(self, app_name: str, task_id: str) -> str:
        for line in self._run("tasks", app_name).splitlines():
            columns = line.split()
            if len(columns) >= 3 and columns[0] == task_id:
                return columns[2].upper()
        raise MigrationError(f"Task {task_id} not found for app {app_name}")

    def dump_logs(self, app_name: str) -> str:
        try:
            output = self._run("logs", app_name, "--recent")
        except CommandError as e:
            logger.warning("log_dump_failed", app=app_name, error=str(e))
            return ""
        logger.info("app_logs", app=app_name, logs=output)
        return output

    def delete_app(self, app_name: str) -> None:
        self._run("delete", app_name, "-f")

    def delete_service_instance(self, instance_name: str) -> None:
        self._run("delete-service", instance_name, "-f")

    def rename_service(self, old_name: str, new_name: str) -> None:
        self._run("rename-service", old_name, new_name)
