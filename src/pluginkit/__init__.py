"""
PluginKit - lifecycle management for single-file plugins.

Plugins are fetched from a remote JSON catalog, written into a local plugin
directory, tracked in a small version database, backed up before every
overwrite, and reloaded once per batch.

Example:
    from pluginkit import PluginKitConfig, PluginManager

    async with PluginManager(PluginKitConfig(plugin_dir=Path("plugins"))) as manager:
        report = await manager.search()
        await manager.install(["weather"])
        await manager.update_all()
"""

from pluginkit.backup import BackupManager
from pluginkit.config import PluginKitConfig, load_config
from pluginkit.context import PluginContext
from pluginkit.database import VersionDatabase
from pluginkit.errors import (
    CatalogParseError,
    DatabaseReadError,
    DatabaseWriteError,
    FileSystemError,
    MissingSourceError,
    NetworkError,
    NotFoundError,
    PluginKitError,
)
from pluginkit.installer import InstallOrchestrator
from pluginkit.loader import LoadedPlugin, PluginLoader
from pluginkit.logging import get_logger, setup_logging
from pluginkit.manager import PluginManager
from pluginkit.models import (
    BatchReport,
    CatalogEntry,
    ItemFailure,
    ItemResult,
    ListingReport,
    LocalEntry,
    PluginRecord,
    PluginStatus,
    SearchEntry,
    SearchReport,
    UninstallAllReport,
    UpdateReport,
)
from pluginkit.progress import ProgressReporter, ProgressSink
from pluginkit.registry import RegistryClient
from pluginkit.status import StatusEngine
from pluginkit.store import LocalPluginStore
from pluginkit.uninstaller import UninstallOrchestrator
from pluginkit.updater import UpdateOrchestrator

__version__ = "0.1.0"

__all__ = [
    # Facade
    "PluginManager",
    "PluginContext",
    # Config
    "PluginKitConfig",
    "load_config",
    # Components
    "RegistryClient",
    "LocalPluginStore",
    "BackupManager",
    "VersionDatabase",
    "ProgressReporter",
    "ProgressSink",
    "StatusEngine",
    "PluginLoader",
    "LoadedPlugin",
    # Orchestrators
    "InstallOrchestrator",
    "UninstallOrchestrator",
    "UpdateOrchestrator",
    # Models
    "CatalogEntry",
    "PluginRecord",
    "PluginStatus",
    "ItemFailure",
    "ItemResult",
    "BatchReport",
    "UpdateReport",
    "UninstallAllReport",
    "SearchEntry",
    "SearchReport",
    "LocalEntry",
    "ListingReport",
    # Errors
    "PluginKitError",
    "NetworkError",
    "CatalogParseError",
    "NotFoundError",
    "MissingSourceError",
    "FileSystemError",
    "DatabaseReadError",
    "DatabaseWriteError",
    # Logging
    "setup_logging",
    "get_logger",
]
