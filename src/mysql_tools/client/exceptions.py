"""Custom exceptions for MySQL Tools.

This module defines exception classes for the error conditions that can occur
while talking to the Cloud Controller, correlating bindings, and driving a
migration through the cf CLI.
"""


class MySQLToolsError(Exception):
    """Base exception for all MySQL Tools errors."""

    pass


class APIError(MySQLToolsError):
    """Base class for API-related errors."""

    def __init__(self, message: str, status_code: int | None = None, response: dict | None = None):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response: API response body
        """
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with status code and response."""
        msg = self.message
        if self.status_code:
            msg = f"[{self.status_code}] {msg}"
        if self.response:
            msg = f"{msg}: {self.response}"
        return msg


class AuthenticationError(APIError):
    """Raised when authentication fails (401 Unauthorized)."""

    pass


class AuthorizationError(APIError):
    """Raised when authorization fails (403 Forbidden)."""

    pass


class NotFoundError(APIError):
    """Raised when a resource is not found (404 Not Found)."""

    pass


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded (429 Too Many Requests)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message, status_code, response)
        self.retry_after = retry_after


class ServerError(APIError):
    """Raised when server returns 5xx error."""

    pass


class NetworkError(MySQLToolsError):
    """Raised when network-related errors occur (timeouts, connection failures)."""

    pass


class ConfigurationError(MySQLToolsError):
    """Raised when configuration is invalid or missing."""

    pass


class DiscoveryError(MySQLToolsError):
    """Base class for binding discovery errors."""

    pass


class CatalogQueryError(DiscoveryError):
    """Raised when a catalog list or lookup call fails during discovery.

    Attributes:
        level: Catalog level being queried (e.g. ``service_instances``)
        parent: Identifier of the parent entity the query was filtered by
    """

    def __init__(self, level: str, parent: str, reason: str):
        self.level = level
        self.parent = parent
        self.reason = reason
        super().__init__(f"failed listing {level} for {parent}: {reason}")


class ReferenceResolutionError(DiscoveryError):
    """Raised when an app, space or org referenced by a binding cannot be resolved.

    Attributes:
        kind: Referenced entity kind (``app``, ``space`` or ``organization``)
        guid: Identifier that failed to resolve
        instance_guid: Service instance being correlated
    """

    def __init__(self, kind: str, guid: str, instance_guid: str, reason: str):
        self.kind = kind
        self.guid = guid
        self.instance_guid = instance_guid
        self.reason = reason
        super().__init__(
            f"failed resolving {kind} {guid} for service instance {instance_guid}: {reason}"
        )


class AmbiguousServiceClassError(DiscoveryError):
    """Raised when more than one service offering matches a label."""

    def __init__(self, label: str, guids: list[str]):
        self.label = label
        self.guids = guids
        super().__init__(
            f"label {label!r} matches {len(guids)} services ({', '.join(guids)}); "
            "expected exactly one"
        )


class MigrationError(MySQLToolsError):
    """Raised when a migration step fails."""

    pass


class CommandError(MigrationError):
    """Raised when a cf CLI invocation exits with a non-zero status.

    Attributes:
        command: The argument vector that was executed
        returncode: Process exit status
        output: Combined stdout/stderr of the process
    """

    def __init__(self, command: list[str], returncode: int, output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output
        message = f"'{' '.join(command)}' exited with status {returncode}"
        if output.strip():
            message = f"{message}: {output.strip()}"
        super().__init__(message)
