"""Shared fixtures: an in-memory service catalog that records every call."""

import pytest

from mysql_tools.bindings.models import (
    App,
    Binding,
    BindingRecord,
    BindingType,
    Instance,
    Key,
    Org,
    Plan,
    ServiceClass,
    Space,
)
from mysql_tools.client.exceptions import NotFoundError


class FakeCatalog:
    """Catalog client backed by dictionaries.

    ``calls`` lists every invocation as ``(method, argument)`` in order.
    ``failures`` maps ``(method, argument)`` to an exception to raise.
    """

    def __init__(
        self,
        services=None,
        plans=None,
        instances=None,
        bindings=None,
        keys=None,
        apps=None,
        spaces=None,
        orgs=None,
    ):
        self.services = services or {}
        self.plans = plans or {}
        self.instances = instances or {}
        self.bindings = bindings or {}
        self.keys = keys or {}
        self.apps = apps or {}
        self.spaces = spaces or {}
        self.orgs = orgs or {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}

    def _record(self, method: str, argument: str) -> None:
        self.calls.append((method, argument))
        failure = self.failures.get((method, argument))
        if failure is not None:
            raise failure

    def calls_to(self, method: str) -> list[str]:
        return [argument for name, argument in self.calls if name == method]

    async def list_service_classes(self, label):
        self._record("list_service_classes", label)
        return list(self.services.get(label, []))

    async def list_service_plans(self, service_guid):
        self._record("list_service_plans", service_guid)
        return list(self.plans.get(service_guid, []))

    async def list_service_instances(self, service_plan_guid):
        self._record("list_service_instances", service_plan_guid)
        return list(self.instances.get(service_plan_guid, []))

    async def list_service_bindings(self, service_instance_guid):
        self._record("list_service_bindings", service_instance_guid)
        return list(self.bindings.get(service_instance_guid, []))

    async def list_service_keys(self, service_instance_guid):
        self._record("list_service_keys", service_instance_guid)
        return list(self.keys.get(service_instance_guid, []))

    async def _get(self, method, table, guid):
        self._record(method, guid)
        if guid not in table:
            raise NotFoundError("Resource not found", status_code=404)
        return table[guid]

    async def get_app(self, guid):
        return await self._get("get_app", self.apps, guid)

    async def get_space(self, guid):
        return await self._get("get_space", self.spaces, guid)

    async def get_org(self, guid):
        return await self._get("get_org", self.orgs, guid)


@pytest.fixture
def mysql_catalog() -> FakeCatalog:
    """p.mysql with plans small, medium and large.

    small holds instance1 (bound and keyed) and instance2 (neither),
    medium holds instance3 (bound and keyed), large holds nothing.
    """
    return FakeCatalog(
        services={"p.mysql": [ServiceClass(guid="service-guid", label="p.mysql")]},
        plans={
            "service-guid": [
                Plan(guid="small-guid", name="small", service_guid="service-guid"),
                Plan(guid="medium-guid", name="medium", service_guid="service-guid"),
                Plan(guid="large-guid", name="large", service_guid="service-guid"),
            ]
        },
        instances={
            "small-guid": [
                Instance(
                    guid="instance1-guid",
                    name="instance1",
                    service_plan_guid="small-guid",
                    space_guid="space1-guid",
                ),
                Instance(
                    guid="instance2-guid",
                    name="instance2",
                    service_plan_guid="small-guid",
                    space_guid="space2-guid",
                ),
            ],
            "medium-guid": [
                Instance(
                    guid="instance3-guid",
                    name="instance3",
                    service_plan_guid="medium-guid",
                    space_guid="space3-guid",
                ),
            ],
        },
        bindings={
            "instance1-guid": [
                Binding(
                    guid="binding1-guid",
                    app_guid="app1-guid",
                    service_instance_guid="instance1-guid",
                )
            ],
            "instance3-guid": [
                Binding(
                    guid="binding3-guid",
                    app_guid="app3-guid",
                    service_instance_guid="instance3-guid",
                )
            ],
        },
        keys={
            "instance1-guid": [Key(name="key1", service_instance_guid="instance1-guid")],
            "instance3-guid": [Key(name="key3", service_instance_guid="instance3-guid")],
        },
        apps={
            "app1-guid": App(guid="app1-guid", name="app1", space_guid="space1-guid"),
            "app3-guid": App(guid="app3-guid", name="app3", space_guid="space3-guid"),
        },
        spaces={
            "space1-guid": Space(name="app1-space", organization_guid="app1-org-guid"),
            "space3-guid": Space(name="app3-space", organization_guid="app3-org-guid"),
        },
        orgs={
            "app1-org-guid": Org(name="app1-org"),
            "app3-org-guid": Org(name="app3-org"),
        },
    )


@pytest.fixture
def expected_mysql_records() -> list[BindingRecord]:
    return [
        BindingRecord(
            name="app1",
            service_instance_name="instance1",
            service_instance_guid="instance1-guid",
            org_name="app1-org",
            space_name="app1-space",
            type=BindingType.APP_BINDING,
        ),
        BindingRecord(
            name="key1",
            service_instance_name="instance1",
            service_instance_guid="instance1-guid",
            org_name="app1-org",
            space_name="app1-space",
            type=BindingType.SERVICE_KEY_BINDING,
        ),
        BindingRecord(
            name="app3",
            service_instance_name="instance3",
            service_instance_guid="instance3-guid",
            org_name="app3-org",
            space_name="app3-space",
            type=BindingType.APP_BINDING,
        ),
        BindingRecord(
            name="key3",
            service_instance_name="instance3",
            service_instance_guid="instance3-guid",
            org_name="app3-org",
            space_name="app3-space",
            type=BindingType.SERVICE_KEY_BINDING,
        ),
    ]
