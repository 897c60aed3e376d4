"""Staging of the migration app assets."""

import shutil
from pathlib import Path

from mysql_tools.client.exceptions import MigrationError
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)


class AssetUnpacker:
    """Copies the migration app from its assets directory into a push directory."""

    def __init__(self, assets_dir: str | Path | None):
        self.assets_dir = Path(assets_dir) if assets_dir else None

    def unpack(self, dest_dir: str | Path) -> None:
        """Copy the migration app into ``dest_dir``.

        Raises:
            MigrationError: If no assets directory is configured or it is missing
        """
        if self.assets_dir is None:
            raise MigrationError(
                "No migration app assets configured (set migration.app_assets_dir)"
            )
        if not self.assets_dir.is_dir():
            raise MigrationError(f"Migration app assets not found: {self.assets_dir}")

        shutil.copytree(self.assets_dir, dest_dir, dirs_exist_ok=True)
        logger.debug("assets_unpacked", source=str(self.assets_dir), destination=str(dest_dir))
