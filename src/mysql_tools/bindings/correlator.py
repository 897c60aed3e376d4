"""Correlation of service instance bindings with their owning app, space and org.

For every service instance the correlator turns its app bindings and
service keys into flat :class:`BindingRecord` rows. The org and space are
resolved once per instance, from the app of its first binding, and reused
for every other binding and key of that instance.
"""

from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from mysql_tools.bindings.catalog import CatalogClient
from mysql_tools.bindings.models import (
    App,
    Binding,
    BindingRecord,
    BindingType,
    Instance,
    Key,
)
from mysql_tools.client.exceptions import APIError, NetworkError, ReferenceResolutionError
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class InstanceContext:
    """Memo for one service instance, discarded once the instance is done.

    Attributes:
        instance: Service instance being correlated
        apps: Apps already looked up, by guid
        org_name: Resolved organization name (None until resolved)
        space_name: Resolved space name (None until resolved)
    """

    instance: Instance
    apps: dict[str, App] = field(default_factory=dict)
    org_name: str | None = None
    space_name: str | None = None
    resolved: bool = False


class BindingCorrelator:
    """Resolves bindings and keys of one service instance into records."""

    def __init__(self, catalog: CatalogClient):
        self.catalog = catalog

    async def correlate(
        self,
        instance: Instance,
        bindings: Sequence[Binding],
        keys: Sequence[Key],
    ) -> list[BindingRecord]:
        """Build the records for one service instance.

        App binding records come first, in binding order, followed by
        service key records in key order.

        Args:
            instance: The service instance
            bindings: App bindings of the instance
            keys: Service keys of the instance

        Returns:
            Records for the instance

        Raises:
            ReferenceResolutionError: If an app, space or org lookup fails
        """
        context = InstanceContext(instance=instance)
        records: list[BindingRecord] = []

        for binding in bindings:
            app = await self._resolve_app(context, binding.app_guid)
            if not context.resolved:
                await self._resolve_location(context, app)

            records.append(self._record(context, app.name, BindingType.APP_BINDING))

        if keys and not context.resolved:
            # Keys carry no app reference, so org and space stay unknown
            logger.warning(
                "instance_location_unresolved",
                service_instance=instance.name,
                service_instance_guid=instance.guid,
                keys=len(keys),
            )

        for key in keys:
            records.append(self._record(context, key.name, BindingType.SERVICE_KEY_BINDING))

        logger.debug(
            "instance_correlated",
            service_instance=instance.name,
            bindings=len(bindings),
            keys=len(keys),
            org=context.org_name,
            space=context.space_name,
        )

        return records

    async def _resolve_app(self, context: InstanceContext, app_guid: str) -> App:
        app = context.apps.get(app_guid)
        if app is None:
            app = await self._lookup(context, "app", app_guid, self.catalog.get_app(app_guid))
            context.apps[app_guid] = app
        return app

    async def _resolve_location(self, context: InstanceContext, app: App) -> None:
        space = await self._lookup(
            context, "space", app.space_guid, self.catalog.get_space(app.space_guid)
        )
        org = await self._lookup(
            context,
            "organization",
            space.organization_guid,
            self.catalog.get_org(space.organization_guid),
        )

        context.space_name = space.name
        context.org_name = org.name
        context.resolved = True

    async def _lookup(
        self, context: InstanceContext, kind: str, guid: str, call: Awaitable[T]
    ) -> T:
        try:
            return await call
        except (APIError, NetworkError) as e:
            logger.error(
                "reference_resolution_failed",
                kind=kind,
                guid=guid,
                service_instance_guid=context.instance.guid,
                error=str(e),
            )
            raise ReferenceResolutionError(
                kind=kind, guid=guid, instance_guid=context.instance.guid, reason=str(e)
            ) from e

    @staticmethod
    def _record(context: InstanceContext, name: str, binding_type: BindingType) -> BindingRecord:
        return BindingRecord(
            name=name,
            service_instance_name=context.instance.name,
            service_instance_guid=context.instance.guid,
            org_name=context.org_name,
            space_name=context.space_name,
            type=binding_type,
        )
