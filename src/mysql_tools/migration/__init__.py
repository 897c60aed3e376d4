"""Service instance migration workflow."""

from mysql_tools.migration.migrator import Migrator
from mysql_tools.migration.unpack import AssetUnpacker
from mysql_tools.migration.workflow import recipient_name, run_migration

__all__ = ["AssetUnpacker", "Migrator", "recipient_name", "run_migration"]
