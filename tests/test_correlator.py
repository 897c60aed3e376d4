"""Tests for per-instance correlation of bindings and keys."""

import pytest
from conftest import FakeCatalog

from mysql_tools.bindings.correlator import BindingCorrelator
from mysql_tools.bindings.models import App, Binding, BindingType, Instance, Key, Org, Space
from mysql_tools.client.exceptions import ReferenceResolutionError, ServerError

INSTANCE = Instance(
    guid="orders-guid", name="orders", service_plan_guid="plan-guid", space_guid="space-guid"
)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(
        apps={"app-guid": App(guid="app-guid", name="checkout", space_guid="space-guid")},
        spaces={"space-guid": Space(name="prod", organization_guid="org-guid")},
        orgs={"org-guid": Org(name="acme")},
    )


async def test_bindings_come_before_keys(catalog):
    records = await BindingCorrelator(catalog).correlate(
        INSTANCE,
        [Binding(guid="b1", app_guid="app-guid", service_instance_guid="orders-guid")],
        [Key(name="analytics", service_instance_guid="orders-guid")],
    )

    assert [r.to_dict() for r in records] == [
        {
            "name": "checkout",
            "serviceInstanceName": "orders",
            "serviceInstanceGuid": "orders-guid",
            "orgName": "acme",
            "spaceName": "prod",
            "type": "AppBinding",
        },
        {
            "name": "analytics",
            "serviceInstanceName": "orders",
            "serviceInstanceGuid": "orders-guid",
            "orgName": "acme",
            "spaceName": "prod",
            "type": "ServiceKeyBinding",
        },
    ]


async def test_no_bindings_and_no_keys_yields_nothing(catalog):
    records = await BindingCorrelator(catalog).correlate(INSTANCE, [], [])

    assert records == []
    assert catalog.calls == []


async def test_cache_does_not_leak_between_instances(catalog):
    catalog.apps["other-app"] = App(guid="other-app", name="billing", space_guid="space-guid")
    correlator = BindingCorrelator(catalog)

    await correlator.correlate(
        INSTANCE,
        [Binding(guid="b1", app_guid="app-guid", service_instance_guid="orders-guid")],
        [],
    )
    records = await correlator.correlate(
        INSTANCE,
        [Binding(guid="b2", app_guid="app-guid", service_instance_guid="orders-guid")],
        [Key(name="k", service_instance_guid="orders-guid")],
    )

    assert [r.type for r in records] == [
        BindingType.APP_BINDING,
        BindingType.SERVICE_KEY_BINDING,
    ]
    assert catalog.calls_to("get_app") == ["app-guid", "app-guid"]
    assert catalog.calls_to("get_space") == ["space-guid", "space-guid"]


async def test_space_lookup_failure_names_space_and_instance(catalog):
    catalog.failures[("get_space", "space-guid")] = ServerError("Server error", status_code=500)

    with pytest.raises(ReferenceResolutionError) as exc_info:
        await BindingCorrelator(catalog).correlate(
            INSTANCE,
            [Binding(guid="b1", app_guid="app-guid", service_instance_guid="orders-guid")],
            [],
        )

    assert exc_info.value.kind == "space"
    assert exc_info.value.guid == "space-guid"
    assert "orders-guid" in str(exc_info.value)


async def test_missing_org_is_a_resolution_error(catalog):
    del catalog.orgs["org-guid"]

    with pytest.raises(ReferenceResolutionError) as exc_info:
        await BindingCorrelator(catalog).correlate(
            INSTANCE,
            [Binding(guid="b1", app_guid="app-guid", service_instance_guid="orders-guid")],
            [Key(name="k", service_instance_guid="orders-guid")],
        )

    assert exc_info.value.kind == "organization"
    assert exc_info.value.guid == "org-guid"
