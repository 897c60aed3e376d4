"""Binding discovery across the service catalog.

The finder walks service → plans → instances → bindings/keys, one list
request per parent, strictly in the order the API returns them, and hands
each instance to the :class:`BindingCorrelator`. The first failing request
aborts the traversal; no partial result is returned.
"""

from collections.abc import Awaitable
from typing import TypeVar

from mysql_tools.bindings.catalog import CatalogClient
from mysql_tools.bindings.correlator import BindingCorrelator
from mysql_tools.bindings.models import BindingRecord, Instance, Plan, ServiceClass
from mysql_tools.client.exceptions import (
    AmbiguousServiceClassError,
    APIError,
    CatalogQueryError,
    NetworkError,
)
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BindingFinder:
    """Finds every app binding and service key of a service offering."""

    def __init__(self, catalog: CatalogClient):
        self.catalog = catalog

    async def find_bindings(self, label: str) -> list[BindingRecord]:
        """Find the bindings and keys of every instance of a service.

        Records are ordered by plan, then instance, then app bindings before
        service keys, each in API order.

        Args:
            label: Service offering label (e.g. ``p.mysql``)

        Returns:
            Binding records; empty when no service carries the label

        Raises:
            CatalogQueryError: If a list request fails
            ReferenceResolutionError: If an app, space or org lookup fails
            AmbiguousServiceClassError: If several services carry the label
        """
        service = await self._find_service_class(label)
        if service is None:
            logger.info("service_not_found", label=label)
            return []

        plans = await self._query(
            "service_plans",
            f"service {service.guid}",
            self.catalog.list_service_plans(service.guid),
        )

        correlator = BindingCorrelator(self.catalog)
        records: list[BindingRecord] = []

        for plan in plans:
            for instance in await self._list_instances(plan):
                bindings = await self._query(
                    "service_bindings",
                    f"service instance {instance.guid}",
                    self.catalog.list_service_bindings(instance.guid),
                )
                keys = await self._query(
                    "service_keys",
                    f"service instance {instance.guid}",
                    self.catalog.list_service_keys(instance.guid),
                )

                records.extend(await correlator.correlate(instance, bindings, keys))

        logger.info("bindings_found", label=label, plans=len(plans), records=len(records))

        return records

    async def _find_service_class(self, label: str) -> ServiceClass | None:
        services = await self._query(
            "services", f"label {label}", self.catalog.list_service_classes(label)
        )

        if not services:
            return None
        if len(services) > 1:
            raise AmbiguousServiceClassError(label, [s.guid for s in services])

        return services[0]

    async def _list_instances(self, plan: Plan) -> list[Instance]:
        instances = await self._query(
            "service_instances",
            f"plan {plan.guid}",
            self.catalog.list_service_instances(plan.guid),
        )
        logger.debug("plan_instances_listed", plan=plan.name, instances=len(instances))
        return instances

    async def _query(self, level: str, parent: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except (APIError, NetworkError) as e:
            logger.error("catalog_query_failed", level=level, parent=parent, error=str(e))
            raise CatalogQueryError(level=level, parent=parent, reason=str(e)) from e
