"""
Plugin manager: one entry point for every lifecycle operation.

Example:
    from pluginkit import PluginKitConfig, PluginManager

    async with PluginManager(PluginKitConfig(plugin_dir=Path("plugins"))) as manager:
        await manager.install(["weather", "translate"])
        report = await manager.update_all()
        print(report.updated_count)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pluginkit.config import PluginKitConfig
from pluginkit.context import PluginContext, ReloadHook
from pluginkit.errors import NotFoundError
from pluginkit.installer import InstallOrchestrator
from pluginkit.models import (
    BatchReport,
    CatalogEntry,
    ItemResult,
    ListingReport,
    PluginStatus,
    SearchReport,
    UninstallAllReport,
    UpdateReport,
)
from pluginkit.progress import ProgressSink
from pluginkit.registry import RegistryClient
from pluginkit.status import StatusEngine
from pluginkit.uninstaller import UninstallOrchestrator
from pluginkit.updater import UpdateOrchestrator

ALL = "all"


class PluginManager:
    """
    Owns a :class:`PluginContext` and exposes the orchestrators over it.

    Callers must not run two operations concurrently against the same
    plugin directory and database; operations are sequential by design.
    """

    def __init__(
        self,
        config: PluginKitConfig | None = None,
        reload: ReloadHook | None = None,
        progress: ProgressSink | None = None,
        registry: RegistryClient | None = None,
        context: PluginContext | None = None,
    ) -> None:
        self.config = config or PluginKitConfig()
        self.context = context or PluginContext.from_config(
            self.config,
            reload_hook=reload,
            progress_sink=progress,
            registry=registry,
        )
        self.installer = InstallOrchestrator(self.context)
        self.uninstaller = UninstallOrchestrator(self.context)
        self.updater = UpdateOrchestrator(self.context)
        self.status = StatusEngine(self.context)

    async def __aenter__(self) -> PluginManager:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.context.registry.close()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def classify(self, name: str, entry: CatalogEntry | None = None) -> PluginStatus:
        return self.status.classify(name, entry)

    async def search(self, progress: ProgressSink | None = None) -> SearchReport:
        return await self.status.search(progress)

    async def list_records(
        self, verbose: bool = False, progress: ProgressSink | None = None
    ) -> ListingReport:
        return await self.status.list_records(verbose, progress)

    def locate(self, name: str) -> Path:
        """Path of an installed plugin file, e.g. to share it."""
        path = self.context.store.path_for(name)
        if not path.is_file():
            raise NotFoundError(f"Plugin {name} is not installed", name=name)
        return path

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    async def install(
        self, names: list[str], progress: ProgressSink | None = None
    ) -> ItemResult | BatchReport:
        """Install ``all``, a single plugin, or several plugins."""
        if len(names) == 1 and names[0] == ALL:
            return await self.install_all(progress)
        if len(names) == 1:
            return await self.install_from_catalog(names[0], progress)
        return await self.install_batch(names, progress)

    async def install_from_catalog(
        self, name: str, progress: ProgressSink | None = None
    ) -> ItemResult:
        return await self.installer.install_from_catalog(name, progress)

    async def install_batch(
        self, names: list[str], progress: ProgressSink | None = None
    ) -> BatchReport:
        return await self.installer.install_batch(names, progress)

    async def install_all(self, progress: ProgressSink | None = None) -> BatchReport:
        return await self.installer.install_all(progress)

    async def install_from_attachment(
        self, name: str, data: bytes | None, progress: ProgressSink | None = None
    ) -> ItemResult:
        return await self.installer.install_from_attachment(name, data, progress)

    # ------------------------------------------------------------------
    # Uninstall
    # ------------------------------------------------------------------

    async def uninstall(
        self, names: list[str], progress: ProgressSink | None = None
    ) -> ItemResult | BatchReport | UninstallAllReport:
        """Uninstall ``all``, a single plugin, or several plugins."""
        if len(names) == 1 and names[0].strip().lower() == ALL:
            return await self.uninstall_all(progress)
        if len(names) == 1:
            return await self.uninstall_one(names[0], progress)
        return await self.uninstall_batch(names, progress)

    async def uninstall_one(self, name: str, progress: ProgressSink | None = None) -> ItemResult:
        return await self.uninstaller.uninstall_one(name, progress)

    async def uninstall_batch(
        self, names: list[str], progress: ProgressSink | None = None
    ) -> BatchReport:
        return await self.uninstaller.uninstall_batch(names, progress)

    async def uninstall_all(self, progress: ProgressSink | None = None) -> UninstallAllReport:
        return await self.uninstaller.uninstall_all(progress)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_all(self, progress: ProgressSink | None = None) -> UpdateReport:
        return await self.updater.update_all(progress)
