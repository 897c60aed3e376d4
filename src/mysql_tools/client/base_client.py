"""Async HTTP session shared by the Cloud Controller client.

Wraps a pooled ``httpx.AsyncClient`` that sends the OAuth bearer token on
every request, spaces requests out to respect a per-second budget, and
turns Cloud Controller error documents into typed exceptions.
"""

import asyncio
import time
from typing import Any

import httpx

from mysql_tools.client.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
)
from mysql_tools.utils.logging import (
    get_logger,
    log_api_request,
    sanitize_payload,
    should_log_payloads,
    truncate_payload,
)

logger = get_logger(__name__)

# Status code -> (exception, fixed message); other codes fall through to APIError/ServerError
_STATUS_ERRORS: dict[int, tuple[type[APIError], str]] = {
    401: (AuthenticationError, "Token rejected by Cloud Controller"),
    403: (AuthorizationError, "Token lacks permission for this resource"),
    404: (NotFoundError, "Resource not found"),
}


class BaseAPIClient:
    """Pooled async HTTP client for one API endpoint.

    Requests are never retried here; the first failure reaches the caller
    as an exception from :mod:`mysql_tools.client.exceptions`.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        verify_ssl: bool = True,
        timeout: int = 30,
        rate_limit: int = 20,
        max_connections: int | None = None,
        max_keepalive_connections: int | None = None,
        log_payloads: bool = False,
        max_payload_size: int = 10000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Open the HTTP session.

        Args:
            base_url: API root, e.g. ``https://api.sys.example.com``
            token: OAuth access token (without the ``bearer`` prefix)
            verify_ssl: Verify the server certificate
            timeout: Read timeout in seconds
            rate_limit: Requests per second; 0 turns throttling off
            max_connections: Connection pool size (10 when unset)
            max_keepalive_connections: Idle connections kept open (5 when unset)
            log_payloads: Log response bodies at DEBUG
            max_payload_size: Characters of a logged body kept before truncating
            transport: Replacement httpx transport, for tests
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.log_payloads = log_payloads
        self.max_payload_size = max_payload_size

        self._interval = 1.0 / rate_limit if rate_limit > 0 else 0.0
        self._throttle_lock = asyncio.Lock()
        self._next_slot = 0.0

        pool = httpx.Limits(
            max_connections=max_connections or 10,
            max_keepalive_connections=max_keepalive_connections or 5,
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            timeout=httpx.Timeout(timeout, connect=10.0),
            limits=pool,
            verify=verify_ssl,
            follow_redirects=True,
            transport=transport,
        )

        logger.debug(
            "http_session_opened",
            base_url=self.base_url,
            rate_limit=rate_limit,
            max_connections=pool.max_connections,
        )

    async def _throttle(self) -> None:
        """Wait for the next free request slot."""
        if not self._interval:
            return
        async with self._throttle_lock:
            delay = self._next_slot - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._next_slot = time.monotonic() + self._interval

    @staticmethod
    def _error_document(response: httpx.Response) -> dict[str, Any]:
        try:
            document = response.json()
        except ValueError:
            return {"description": response.text}
        return document if isinstance(document, dict) else {"description": str(document)}

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise the typed exception for an error response.

        Cloud Controller v2 error bodies look like
        ``{"code": 10000, "description": "...", "error_code": "CF-..."}``.
        """
        status = response.status_code
        document = self._error_document(response)
        description = (
            document.get("description") or document.get("error_code") or "no description"
        )

        if status in _STATUS_ERRORS:
            error_type, message = _STATUS_ERRORS[status]
            raise error_type(message=message, status_code=status, response=document)
        if status == 429:
            retry_after = response.headers.get("Retry-After", "")
            raise RateLimitError(
                message="Cloud Controller rate limit exceeded",
                status_code=status,
                response=document,
                retry_after=int(retry_after) if retry_after.isdigit() else None,
            )
        if status >= 500:
            raise ServerError(
                message=f"Server error: {description}", status_code=status, response=document
            )
        raise APIError(message=f"API error: {description}", status_code=status, response=document)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send one request and decode the JSON body.

        ``endpoint`` is either a path (``/v2/apps/<guid>``) or a ``next_url``
        returned by a list response, which already carries its query.

        Raises:
            NetworkError: If the server cannot be reached or does not answer in time
            APIError: If the response is an error (see ``_raise_for_status``)
        """
        await self._throttle()
        started = time.monotonic()

        try:
            response = await self.client.request(method, endpoint, params=params, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("request_timed_out", method=method, endpoint=endpoint, error=str(e))
            raise NetworkError(f"Timed out calling {endpoint}: {e}") from e
        except httpx.TransportError as e:
            logger.error("request_unreachable", method=method, endpoint=endpoint, error=str(e))
            raise NetworkError(f"Could not reach {self.base_url}: {e}") from e

        url = str(response.request.url)
        log_api_request(
            logger,
            method=method,
            url=url,
            status_code=response.status_code,
            duration_ms=(time.monotonic() - started) * 1000,
        )

        if response.is_error:
            self._raise_for_status(response)
        if not response.content:
            return {}

        try:
            body = response.json()
        except ValueError as e:
            raise APIError(
                message=f"Response from {url} is not JSON", status_code=response.status_code
            ) from e

        if should_log_payloads(logger, self.log_payloads):
            logger.debug(
                "response_body",
                url=url,
                body=truncate_payload(sanitize_payload(body), self.max_payload_size),
                size=len(response.content),
            )

        return body

    async def get(
        self, endpoint: str, params: dict[str, Any] | None = None, **kwargs: Any
    ) -> dict[str, Any]:
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def close(self) -> None:
        await self.client.aclose()
        logger.debug("http_session_closed", base_url=self.base_url)

    async def __aenter__(self) -> "BaseAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
