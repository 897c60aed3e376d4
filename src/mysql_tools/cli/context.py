"""
CLI context for MySQL Tools.

This module provides the context object that is passed to all CLI commands,
containing configuration and factories for the platform clients.
"""

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from mysql_tools.client.catalog_client import CloudControllerClient
from mysql_tools.client.cf_cli import CfCliClient
from mysql_tools.client.exceptions import ConfigurationError
from mysql_tools.config import ToolsConfig, load_config
from mysql_tools.migration.migrator import Migrator
from mysql_tools.migration.unpack import AssetUnpacker
from mysql_tools.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class ToolsContext:
    """
    Context object for CLI commands.

    Attributes:
        config_path: Path to configuration file (optional; environment otherwise)
        log_level: Console logging level; logging.level from the configuration when None
        log_file: Optional log file path
    """

    config_path: Path | None = None
    log_level: str | None = None
    log_file: Path | None = None

    _config: ToolsConfig | None = field(default=None, init=False, repr=False)

    @property
    def config(self) -> ToolsConfig:
        """Get or load configuration."""
        if self._config is None:
            logger.debug("Loading configuration", config_path=str(self.config_path))
            try:
                self._config = load_config(self.config_path)
            except (OSError, ValueError, ValidationError) as e:
                raise ConfigurationError(str(e)) from e

            self._apply_logging_config(self._config)

        return self._config

    def _apply_logging_config(self, config: ToolsConfig) -> None:
        """Reconfigure logging with the settings of the loaded configuration.

        ``--log-level`` and ``--log-file`` take precedence over ``logging.level``
        and ``logging.file``.
        """
        log_file = self.log_file or config.logging.file

        configure_logging(
            level=self.log_level or config.logging.level,
            log_format=config.logging.format,
            log_file=str(log_file) if log_file else None,
            file_level=config.logging.file_level,
        )

    def create_catalog_client(self) -> CloudControllerClient:
        """Create a Cloud Controller client.

        A new client is created per call so that it belongs to the running
        event loop; use it as an async context manager.
        """
        config = self.config
        if config.cf is None:
            raise ConfigurationError(
                "Cloud Controller connection not configured. Set cf.api_url and cf.token "
                "in the configuration file or MYSQL_TOOLS_CF__API_URL and MYSQL_TOOLS_CF__TOKEN."
            )

        logger.debug("Creating catalog client", url=config.cf.api_url)
        return CloudControllerClient(
            config=config.cf,
            rate_limit=config.performance.rate_limit,
            results_per_page=config.performance.results_per_page,
            log_payloads=config.logging.log_payloads,
            max_payload_size=config.logging.max_payload_size,
            max_connections=config.performance.http_max_connections,
            max_keepalive_connections=config.performance.http_max_keepalive_connections,
        )

    def create_migrator(self) -> Migrator:
        """Create a migrator driving the cf CLI."""
        settings = self.config.migration
        client = CfCliClient(
            product_name=settings.recipient_product_name,
            cf_binary=settings.cf_binary,
            provision_timeout=settings.provision_timeout,
            poll_interval=settings.poll_interval,
        )
        return Migrator(
            client=client,
            unpacker=AssetUnpacker(settings.app_assets_dir),
            log_dump_delay=settings.log_dump_delay,
        )
