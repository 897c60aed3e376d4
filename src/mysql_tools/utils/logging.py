"""Structured logging for MySQL Tools.

structlog renders every event once; stdlib logging then fans the rendered
line out to a Rich handler on stderr and, optionally, to a log file that
stores one JSON object per line.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.typing import EventDict, WrappedLogger

from mysql_tools import __version__

APP_NAME = "mysql-tools"

DEFAULT_LOG_LEVEL = "WARNING"

_ANSI = re.compile(r"\x1b\[[0-9;]*m")

# Substrings of payload keys whose values are never logged (service key
# credentials, tokens, connection strings)
SENSITIVE_FIELDS = frozenset(
    {
        "token",
        "password",
        "secret",
        "credential",
        "authorization",
        "private_key",
        "ca_certificate",
        "uri",
        "jdbcurl",
    }
)

REDACTED = "[REDACTED]"


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("app", APP_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


class JSONFileFormatter(logging.Formatter):
    """Writes each record as a single JSON line.

    The record message is the line structlog already rendered, minus any
    colour codes.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": _ANSI.sub("", record.getMessage()),
            "app": APP_NAME,
            "version": __version__,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _level(name: str | None, default: int) -> int:
    return logging.getLevelName(name.upper()) if name else default


def configure_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_format: str = "json",
    log_file: str | None = None,
    file_level: str | None = None,
) -> None:
    """Set up structlog and the stdlib handlers.

    May be called again (e.g. once the configuration file is loaded); the
    previous handlers are replaced.

    Args:
        level: Threshold for console output
        log_format: ``json`` for JSON lines in the log file, ``console`` for plain text
        log_file: Path of the log file; no file is written when None
        file_level: Threshold for the log file (DEBUG when unset)
    """
    console_level = _level(level, logging.WARNING)
    file_log_level = _level(file_level, logging.DEBUG)

    handlers: list[logging.Handler] = []

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(console_level)
    handlers.append(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setLevel(file_log_level)
        file_handler.setFormatter(
            JSONFileFormatter() if log_format == "json" else logging.Formatter("%(message)s")
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            add_app_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        # Drop events below every handler's threshold before rendering them
        wrapper_class=structlog.make_filtering_bound_logger(
            min(handler.level for handler in handlers)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_api_request(
    logger: structlog.stdlib.BoundLogger,
    method: str,
    url: str,
    status_code: int | None = None,
    duration_ms: float | None = None,
    **extra: Any,
) -> None:
    """Log a finished HTTP call.

    Successful calls are DEBUG noise; client errors are warnings and
    server errors are errors.
    """
    fields: dict[str, Any] = {"method": method, "url": url, **extra}
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)

    if status_code is None:
        logger.debug("api_request", **fields)
        return

    fields["status_code"] = status_code
    if status_code >= 500:
        logger.error("api_request_server_error", **fields)
    elif status_code >= 400:
        logger.warning("api_request_client_error", **fields)
    else:
        logger.debug("api_request_ok", **fields)


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(field in lowered for field in SENSITIVE_FIELDS)


def sanitize_payload(payload: Any, max_depth: int = 10) -> Any:
    """Return a copy of ``payload`` with sensitive values replaced by ``[REDACTED]``.

    A whole subtree is redacted when its key is sensitive, so service key
    ``credentials`` never reach the logs. Nesting deeper than ``max_depth``
    is cut off.
    """
    if max_depth <= 0:
        return "[MAX_DEPTH_EXCEEDED]"
    if isinstance(payload, dict):
        return {
            key: REDACTED if _is_sensitive(key) else sanitize_payload(value, max_depth - 1)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [sanitize_payload(item, max_depth - 1) for item in payload]
    return payload


def truncate_payload(payload: Any, max_size: int = 10000) -> str:
    """Serialize ``payload`` for a log line, keeping at most ``max_size`` characters."""
    try:
        text = json.dumps(payload, indent=2, default=str)
    except (TypeError, ValueError):
        text = str(payload)

    if len(text) <= max_size:
        return text
    return f"{text[:max_size]}\n... [TRUNCATED - {len(text)} total chars]"


def should_log_payloads(logger: structlog.stdlib.BoundLogger, log_payloads_enabled: bool) -> bool:
    """Payloads are logged only when enabled and DEBUG output is wanted somewhere."""
    if not log_payloads_enabled:
        return False
    return any(handler.level <= logging.DEBUG for handler in logging.getLogger().handlers)
