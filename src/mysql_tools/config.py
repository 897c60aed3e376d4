"""Configuration management for MySQL Tools using Pydantic.

This module provides type-safe configuration models for the Cloud Controller
connection, HTTP tuning, logging, and the migration workflow.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PRODUCT_NAME = "p.mysql"


class CloudFoundryConfig(BaseModel):
    """Connection settings for the Cloud Controller API."""

    api_url: str = Field(..., description="Cloud Controller API URL")
    token: str = Field(..., description="OAuth bearer token (see `cf oauth-token`)")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    timeout: int = Field(default=30, ge=1, le=600, description="API request timeout in seconds")

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate and normalize URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API URL must start with http:// or https://")
        if not v.startswith("https://"):
            raise ValueError("API URL should use HTTPS for security")
        return v.rstrip("/")

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate token is not empty and strip a leading 'bearer'."""
        parts = v.split(maxsplit=1)
        if parts and parts[0].lower() == "bearer":
            v = parts[1] if len(parts) > 1 else ""
        v = v.strip()
        if not v:
            raise ValueError("Token cannot be empty")
        return v


class PerformanceConfig(BaseModel):
    """HTTP tuning."""

    rate_limit: int = Field(default=20, ge=0, le=100, description="Requests per second (0 = off)")
    results_per_page: int = Field(
        default=100, ge=1, le=100, description="Page size for list requests (v2 max is 100)"
    )
    http_max_connections: int = Field(default=10, ge=1, le=100)
    http_max_keepalive_connections: int = Field(default=5, ge=1, le=50)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "console")


class LoggingConfig(BaseModel):
    """Where log output goes and how much of it."""

    level: str = Field(default="WARNING", description="Console log level")
    file_level: str = Field(default="DEBUG", description="File log level")
    format: str = Field(default="json", description="Log file format (json or console)")
    file: str | None = Field(default=None, description="Log file path")
    log_payloads: bool = Field(
        default=False,
        description="Log response bodies at DEBUG level (credentials are redacted)",
    )
    max_payload_size: int = Field(default=10000, ge=100, le=1000000)

    @field_validator("level", "file_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}; choose from {', '.join(LOG_LEVELS)}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def normalize_format(cls, v: str) -> str:
        if v.lower() not in LOG_FORMATS:
            raise ValueError(f"unknown log format {v!r}; choose from {', '.join(LOG_FORMATS)}")
        return v.lower()


class MigrationSettings(BaseModel):
    """Settings for the service instance migration workflow."""

    recipient_product_name: str = Field(
        default_factory=lambda: os.environ.get("RECIPIENT_PRODUCT_NAME") or DEFAULT_PRODUCT_NAME,
        description="Service offering used for the recipient instance",
    )
    app_assets_dir: str | None = Field(
        default=None, description="Directory holding the migration app to push"
    )
    cf_binary: str = Field(default="cf", description="cf CLI executable")
    provision_timeout: int = Field(
        default=3600, ge=60, le=14400, description="Seconds to wait for an instance to provision"
    )
    poll_interval: int = Field(
        default=10, ge=1, le=300, description="Seconds between provisioning status checks"
    )
    log_dump_delay: float = Field(
        default=5.0, ge=0, le=60, description="Seconds to wait before fetching failed task logs"
    )


class ToolsConfig(BaseSettings):
    """Main configuration for MySQL Tools."""

    model_config = SettingsConfigDict(
        env_prefix="MYSQL_TOOLS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    cf: CloudFoundryConfig | None = Field(default=None, description="Cloud Controller connection")
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    migration: MigrationSettings = Field(default_factory=MigrationSettings)


def load_config_from_yaml(config_path: str | Path) -> ToolsConfig:
    """Build the configuration from a YAML file.

    String values may reference environment variables as ``${NAME}``;
    references are substituted before validation.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist
        ValueError: If the file is empty or references an unset variable
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if not raw:
        raise ValueError(f"Empty configuration file: {path}")

    return ToolsConfig(**_expand_env_vars(raw))


def load_config(config_path: str | Path | None = None) -> ToolsConfig:
    """Load configuration from a YAML file, or from the environment alone."""
    if config_path is not None:
        return load_config_from_yaml(config_path)
    return ToolsConfig()


_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _substitute(match: re.Match) -> str:
    name = match.group(1)
    value = os.environ.get(name)
    if value is None:
        raise ValueError(
            f"Environment variable '{name}' is referenced in the configuration but not set "
            "(export it or add it to .env)"
        )
    return value


def _expand_env_vars(data: Any) -> Any:
    """Replace ``${NAME}`` references in every string of a parsed YAML document."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    if isinstance(data, str):
        return _ENV_REFERENCE.sub(_substitute, data)
    return data
