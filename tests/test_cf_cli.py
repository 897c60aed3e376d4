"""Tests for the cf CLI wrapper with a scripted command runner."""

import subprocess

import pytest

from mysql_tools.client.cf_cli import CfCliClient
from mysql_tools.client.exceptions import CommandError, MigrationError


class ScriptedRunner:
    """Stands in for subprocess.run.

    ``responses`` maps the cf sub-command (first argument) to either a
    ``(returncode, stdout)`` pair or a list of them, consumed in order.
    """

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.commands: list[list[str]] = []

    def __call__(self, command, capture_output, text, check):
        self.commands.append(command)
        response = self.responses.get(command[1], (0, ""))
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        returncode, stdout = response
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr="")

    def subcommands(self) -> list[str]:
        return [command[1] for command in self.commands]


def make_client(runner, **kwargs) -> CfCliClient:
    return CfCliClient(
        product_name="p.mysql",
        provision_timeout=60,
        poll_interval=1,
        runner=runner,
        sleep=lambda seconds: None,
        **kwargs,
    )


def test_failed_command_raises_with_output():
    runner = ScriptedRunner({"bind-service": (1, "FAILED\nApp not found")})

    with pytest.raises(CommandError) as exc_info:
        make_client(runner).bind_service("app", "db")

    assert exc_info.value.returncode == 1
    assert "App not found" in exc_info.value.output
    assert runner.commands == [["cf", "bind-service", "app", "db"]]


def test_custom_binary_is_used():
    runner = ScriptedRunner()

    make_client(runner, cf_binary="/usr/local/bin/cf8").start_app("app")

    assert runner.commands == [["/usr/local/bin/cf8", "start", "app"]]


def test_service_exists_reflects_exit_status():
    found = ScriptedRunner({"service": (0, "guid-1\n")})
    missing = ScriptedRunner({"service": (1, "Service instance db not found")})

    assert make_client(found).service_exists("db")
    assert not make_client(missing).service_exists("db")


def test_create_service_instance_waits_for_success():
    runner = ScriptedRunner(
        {
            "service": [
                (0, "name: db-new\nstatus:    create in progress\n"),
                (0, "name: db-new\nstatus:    create succeeded\n"),
            ]
        }
    )

    make_client(runner).create_service_instance("db-small", "db-new")

    assert runner.commands[0] == ["cf", "create-service", "p.mysql", "db-small", "db-new"]
    assert runner.subcommands() == ["create-service", "service", "service"]


def test_create_service_instance_fails_when_broker_fails():
    runner = ScriptedRunner({"service": (0, "status:    create failed\n")})

    with pytest.raises(MigrationError, match="create failed"):
        make_client(runner).create_service_instance("db-small", "db-new")


def test_update_service_config_passes_parameters():
    runner = ScriptedRunner({"service": (0, "status:    update succeeded\n")})

    make_client(runner).update_service_config("db-new", '{"enable_tls": ["h1"]}')

    assert runner.commands[0] == ["cf", "update-service", "db-new", "-c", '{"enable_tls": ["h1"]}']


def test_wait_times_out():
    runner = ScriptedRunner({"service": (0, "status:    create in progress\n")})
    client = CfCliClient(
        product_name="p.mysql",
        provision_timeout=0,
        poll_interval=1,
        runner=runner,
        sleep=lambda seconds: None,
    )

    with pytest.raises(MigrationError, match="Timed out"):
        client.create_service_instance("db-small", "db-new")


def test_get_hostnames_reads_temporary_key_and_deletes_it():
    key_output = (
        "Getting key MIGRATE-x for service instance db-new as admin...\n\n"
        '{\n  "credentials": {\n    "hostname": "10.0.0.1",\n'
        '    "hostnames": ["10.0.0.1", "db.internal"]\n  }\n}\n'
    )
    runner = ScriptedRunner({"service-key": (0, key_output)})

    hostnames = make_client(runner).get_hostnames("db-new")

    assert hostnames == ["10.0.0.1", "db.internal"]
    assert runner.subcommands() == ["create-service-key", "service-key", "delete-service-key"]
    key_name = runner.commands[0][3]
    assert key_name.startswith("MIGRATE-")
    assert runner.commands[2] == ["cf", "delete-service-key", "-f", "db-new", key_name]


def test_get_hostnames_falls_back_to_single_hostname():
    runner = ScriptedRunner({"service-key": (0, '{"hostname": "10.0.0.2"}')})

    assert make_client(runner).get_hostnames("db-new") == ["10.0.0.2"]


def test_get_hostnames_deletes_key_when_read_fails():
    runner = ScriptedRunner({"service-key": (1, "boom")})

    with pytest.raises(CommandError):
        make_client(runner).get_hostnames("db-new")

    assert runner.subcommands()[-1] == "delete-service-key"


def test_get_hostnames_cleanup_failure_keeps_read_error():
    runner = ScriptedRunner(
        {"service-key": (1, "key not ready"), "delete-service-key": (1, "delete refused")}
    )

    with pytest.raises(CommandError) as exc_info:
        make_client(runner).get_hostnames("db-new")

    assert exc_info.value.command[1] == "service-key"
    assert "key not ready" in exc_info.value.output
    assert runner.subcommands()[-1] == "delete-service-key"


def test_get_hostnames_cleanup_failure_after_read_is_tolerated():
    runner = ScriptedRunner(
        {
            "service-key": (0, '{"hostnames": ["10.0.0.3"]}'),
            "delete-service-key": (1, "delete refused"),
        }
    )

    assert make_client(runner).get_hostnames("db-new") == ["10.0.0.3"]


def test_get_hostnames_without_hostname_is_an_error():
    runner = ScriptedRunner({"service-key": (0, '{"username": "admin"}')})

    with pytest.raises(MigrationError, match="no hostname"):
        make_client(runner).get_hostnames("db-new")


def test_push_app_does_not_start_or_route():
    runner = ScriptedRunner()

    make_client(runner).push_app("/tmp/assets", "migrate-app-1")

    assert runner.commands[0][:4] == ["cf", "push", "migrate-app-1", "-p"]
    assert runner.commands[0][4:] == ["/tmp/assets", "--no-start", "--no-route", "-u", "none"]


def test_run_task_waits_for_success():
    runner = ScriptedRunner(
        {
            "run-task": (0, "Creating task for app migrate-app...\ntask id:     7\n"),
            "tasks": [
                (0, "id   name      state     start time\n7    migrate   RUNNING   now\n"),
                (0, "id   name      state       start time\n7    migrate   SUCCEEDED   now\n"),
            ],
        }
    )

    make_client(runner).run_task("migrate-app", "./migrate donor recipient")

    assert runner.commands[0] == [
        "cf",
        "run-task",
        "migrate-app",
        "./migrate donor recipient",
        "--name",
        "migrate",
    ]
    assert runner.subcommands() == ["run-task", "tasks", "tasks"]


def test_run_task_failure_raises():
    runner = ScriptedRunner(
        {
            "run-task": (0, "task id:     3\n"),
            "tasks": (0, "3    migrate   FAILED   now\n"),
        }
    )

    with pytest.raises(MigrationError, match="Task 3 on app migrate-app failed"):
        make_client(runner).run_task("migrate-app", "./migrate a b")


def test_read_only_commands_are_retried_with_injected_sleep(monkeypatch):
    def real_sleep(seconds):
        raise AssertionError("time.sleep must not be called")

    monkeypatch.setattr("time.sleep", real_sleep)
    runner = ScriptedRunner(
        {"service": [(1, "temporary failure"), (0, "status:    update succeeded\n")]}
    )
    sleeps = []
    client = CfCliClient(product_name="p.mysql", runner=runner, sleep=sleeps.append)

    assert client.service_status("db") == "update succeeded"
    assert runner.subcommands() == ["service", "service"]
    assert sleeps == [1]


def test_read_only_commands_give_up_after_three_attempts():
    runner = ScriptedRunner({"tasks": (1, "still broken")})

    with pytest.raises(CommandError):
        make_client(runner).task_state("migrate-app", "7")

    assert runner.subcommands() == ["tasks", "tasks", "tasks"]


def test_dump_logs_failure_is_tolerated():
    runner = ScriptedRunner({"logs": (1, "no logs")})

    assert make_client(runner).dump_logs("migrate-app") == ""


def test_delete_and_rename_commands():
    runner = ScriptedRunner()
    client = make_client(runner)

    client.delete_app("migrate-app")
    client.delete_service_instance("db-new")
    client.rename_service("db", "db-old")

    assert runner.commands == [
        ["cf", "delete", "migrate-app", "-f"],
        ["cf", "delete-service", "db-new", "-f"],
        ["cf", "rename-service", "db", "db-old"],
    ]
