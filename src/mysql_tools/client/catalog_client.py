"""Cloud Controller v2 client for catalog queries.

This client provides the filtered-list and get-by-guid operations used by
binding discovery. List endpoints are paginated; every page is fetched by
following ``next_url`` until the API reports no further page.
"""

from typing import Any

import httpx

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
from mysql_tools.client.base_client import BaseAPIClient
from mysql_tools.config import CloudFoundryConfig
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)


def query_filter(field: str, value: str) -> dict[str, str]:
    """Build the single equality predicate used by v2 list endpoints."""
    return {"q": f"{field}:{value}"}


class CloudControllerClient(BaseAPIClient):
    """Client for the Cloud Controller v2 API."""

    def __init__(
        self,
        config: CloudFoundryConfig,
        rate_limit: int = 20,
        results_per_page: int = 100,
        log_payloads: bool = False,
        max_payload_size: int = 10000,
        max_connections: int | None = None,
        max_keepalive_connections: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Cloud Controller client.

        Args:
            config: Cloud Controller connection settings
            rate_limit: Maximum requests per second
            results_per_page: Page size for list requests
            log_payloads: Enable response payload logging
            max_payload_size: Maximum payload size to log before truncation
            max_connections: Maximum number of connections in pool
            max_keepalive_connections: Maximum keep-alive connections
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(
            base_url=config.api_url,
            token=config.token,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            rate_limit=rate_limit,
            log_payloads=log_payloads,
            max_payload_size=max_payload_size,
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
            transport=transport,
        )
        self.results_per_page = results_per_page

    async def list_resources(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Fetch every resource of a paginated list endpoint.

        Args:
            endpoint: API endpoint path (e.g. ``/v2/service_plans``)
            params: Query parameters for the first page

        Returns:
            List of raw resources from all pages, in API order
        """
        query_params = dict(params or {})
        query_params["results-per-page"] = self.results_per_page

        resources: list[dict[str, Any]] = []
        next_endpoint: str | None = endpoint
        next_params: dict[str, Any] | None = query_params
        page = 0

        while next_endpoint:
            page += 1
            response = await self.get(next_endpoint, params=next_params)
            resources.extend(response.get("resources") or [])

            # next_url already carries the query string
            next_endpoint = response.get("next_url")
            next_params = None

        logger.debug(
            "pagination_complete",
            endpoint=endpoint,
            params=params,
            total_pages=page,
            total_items=len(resources),
        )

        return resources

    async def get_info(self) -> dict[str, Any]:
        """Fetch the Cloud Controller info document (used as a connectivity check)."""
        return await self.get("/v2/info")

    async def list_service_classes(self, label: str) -> list[ServiceClass]:
        resources = await self.list_resources("/v2/services", query_filter("label", label))
        return [ServiceClass.from_resource(r) for r in resources]

    async def list_service_plans(self, service_guid: str) -> list[Plan]:
        resources = await self.list_resources(
            "/v2/service_plans", query_filter("service_guid", service_guid)
        )
        return [Plan.from_resource(r) for r in resources]

    async def list_service_instances(self, service_plan_guid: str) -> list[Instance]:
        resources = await self.list_resources(
            "/v2/service_instances", query_filter("service_plan_guid", service_plan_guid)
        )
        return [Instance.from_resource(r) for r in resources]

    async def list_service_bindings(self, service_instance_guid: str) -> list[Binding]:
        resources = await self.list_resources(
            "/v2/service_bindings",
            query_filter("service_instance_guid", service_instance_guid),
        )
        return [Binding.from_resource(r) for r in resources]

    async def list_service_keys(self, service_instance_guid: str) -> list[Key]:
        resources = await self.list_resources(
            "/v2/service_keys",
            query_filter("service_instance_guid", service_instance_guid),
        )
        return [Key.from_resource(r) for r in resources]

    async def get_app(self, guid: str) -> App:
        return App.from_resource(await self.get(f"/v2/apps/{guid}"))

    async def get_space(self, guid: str) -> Space:
        return Space.from_resource(await self.get(f"/v2/spaces/{guid}"))

    async def get_org(self, guid: str) -> Org:
        return Org.from_resource(await self.get(f"/v2/organizations/{guid}"))
