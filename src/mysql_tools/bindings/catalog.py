"""Interface of the catalog client consumed by binding discovery."""

from typing import Protocol

from mysql_tools.bindings.models import (
    App,
    Binding,
    Instance,
    Key,
    Org,
    Plan,
    ServiceClass,
    Space,
)


class CatalogClient(Protocol):
    """Filtered-list and get-by-guid operations over the service catalog.

    Each list operation filters on exactly one field.
    :class:`~mysql_tools.client.catalog_client.CloudControllerClient` is the
    production implementation.
    """

    async def list_service_classes(self, label: str) -> list[ServiceClass]: ...

    async def list_service_plans(self, service_guid: str) -> list[Plan]: ...

    async def list_service_instances(self, service_plan_guid: str) -> list[Instance]: ...

    async def list_service_bindings(self, service_instance_guid: str) -> list[Binding]: ...

    async def list_service_keys(self, service_instance_guid: str) -> list[Key]: ...

    async def get_app(self, guid: str) -> App: ...

    async def get_space(self, guid: str) -> Space: ...

    async def get_org(self, guid: str) -> Org: ...
