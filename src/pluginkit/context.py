"""
Shared state handed to every orchestrator.

One :class:`PluginContext` owns the plugin directory, the version database,
the backup area and the catalog client for a single managed installation.
Nothing here is global, so tests can point a context at fixture directories.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from pluginkit.backup import BackupManager
from pluginkit.config import PluginKitConfig
from pluginkit.database import VersionDatabase
from pluginkit.errors import DatabaseWriteError
from pluginkit.logging import get_logger
from pluginkit.progress import ProgressReporter, ProgressSink
from pluginkit.registry import RegistryClient
from pluginkit.store import LocalPluginStore

logger = get_logger("context")

# Re-activates the plugin set after files changed on disk.
ReloadHook = Callable[[], "Awaitable[object] | object"]


@dataclass
class PluginContext:
    config: PluginKitConfig
    store: LocalPluginStore
    database: VersionDatabase
    backups: BackupManager
    registry: RegistryClient
    reload_hook: ReloadHook | None = None
    progress_sink: ProgressSink | None = None

    @classmethod
    def from_config(
        cls,
        config: PluginKitConfig,
        reload_hook: ReloadHook | None = None,
        progress_sink: ProgressSink | None = None,
        registry: RegistryClient | None = None,
    ) -> PluginContext:
        store = LocalPluginStore(
            config.plugin_dir,
            suffix=config.extension_suffix,
            declaration_suffix=config.declaration_suffix,
            backup_marker=config.backup_marker,
            private_prefix=config.private_prefix,
        )
        return cls(
            config=config,
            store=store,
            database=VersionDatabase(config.database_path).load(),
            backups=BackupManager(store, config.backup_dir),
            registry=registry
            or RegistryClient(
                config.catalog_url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                retry_backoff=config.retry_backoff,
            ),
            reload_hook=reload_hook,
            progress_sink=progress_sink,
        )

    def reporter(self, sink: ProgressSink | None = None) -> ProgressReporter:
        """A fresh reporter for one operation, using *sink* or the default sink."""
        return ProgressReporter(
            sink if sink is not None else self.progress_sink,
            max_message_length=self.config.max_message_length,
        )

    def replace_file(self, name: str, data: bytes, prune_legacy: bool = True) -> Path | None:
        """
        Write *data* as the plugin file for *name*, backing up any current file first.

        Every path that overwrites a plugin file goes through here.
        Returns the backup path, if a backup was taken.
        """
        backup = self.backups.backup_before_overwrite(name)
        if prune_legacy:
            self.backups.prune_legacy_marker(name)
        self.store.write(name, data)
        return backup

    def flush_database(self) -> bool:
        """Flush the version database; failures are logged, not raised."""
        try:
            self.database.flush()
        except DatabaseWriteError as exc:
            logger.error("Version database flush failed: %s", exc)
            return False
        return True

    async def reload_plugins(self) -> str | None:
        """Invoke the reload hook. Returns an error message if it failed."""
        if self.reload_hook is None:
            return None
        try:
            result = self.reload_hook()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.error("Reloading plugins failed: %s", exc, exc_info=True)
            return str(exc) or type(exc).__name__
        return None
