"""
Installation orchestrator.

Installs plugins from the remote catalog (one, several, or all of them) or
from a file supplied directly by the user.
"""

from __future__ import annotations

import asyncio

from pluginkit.context import PluginContext
from pluginkit.errors import MissingSourceError, NetworkError, NotFoundError, PluginKitError
from pluginkit.logging import get_logger
from pluginkit.models import BatchReport, CatalogEntry, ItemFailure, ItemResult, PluginRecord
from pluginkit.progress import (
    ProgressReporter,
    ProgressSink,
    format_capped_list,
    percent,
    progress_bar,
    should_report,
)

logger = get_logger("installer")


class InstallOrchestrator:
    """Sequences fetch, backup, write, record and reload for installs."""

    def __init__(self, context: PluginContext) -> None:
        self.ctx = context

    # ------------------------------------------------------------------
    # Catalog installs
    # ------------------------------------------------------------------

    async def install_from_catalog(
        self, name: str, progress: ProgressSink | None = None
    ) -> ItemResult:
        """Install a single plugin from a freshly fetched catalog."""
        reporter = self.ctx.reporter(progress)
        await reporter.update(f"Installing plugin {name}...")

        try:
            catalog = await self.ctx.registry.fetch_catalog()
        except NetworkError as exc:
            logger.error("Cannot fetch plugin catalog: %s", exc)
            await reporter.final(f"❌ Cannot fetch the remote plugin catalog: {exc}")
            return ItemResult(name, ok=False, reason=f"catalog unavailable: {exc}", kind=exc.kind)

        try:
            await self._install_entry(name, catalog)
        except PluginKitError as exc:
            logger.warning("Installing %s failed: %s", name, exc)
            await reporter.final(f"❌ {exc}")
            return ItemResult(name, ok=False, reason=str(exc), kind=exc.kind)

        reload_error = await self.ctx.reload_plugins()
        text = f"✅ Plugin {name} installed and loaded"
        if reload_error:
            text = f"⚠️ Plugin {name} installed, but reloading failed: {reload_error}"
        await reporter.final(text)
        return ItemResult(name, ok=True, note=reload_error or "")

    async def install_batch(
        self, names: list[str], progress: ProgressSink | None = None
    ) -> BatchReport:
        """Install several plugins, continuing past per-item failures."""
        reporter = self.ctx.reporter(progress)
        if not names:
            report = BatchReport(aborted="no plugin names given")
            await reporter.final("❌ No plugin names given")
            return report

        await reporter.update("🔍 Fetching remote plugin catalog...")
        try:
            catalog = await self.ctx.registry.fetch_catalog()
        except NetworkError as exc:
            return await self._abort(reporter, len(names), exc)
        return await self._run_batch(names, catalog, reporter)

    async def install_all(self, progress: ProgressSink | None = None) -> BatchReport:
        """Install every plugin the catalog lists."""
        reporter = self.ctx.reporter(progress)
        await reporter.update("🔍 Fetching remote plugin catalog...")
        try:
            catalog = await self.ctx.registry.fetch_catalog()
        except NetworkError as exc:
            return await self._abort(reporter, 0, exc)

        if not catalog:
            await reporter.final("📦 The remote plugin catalog is empty")
            return BatchReport(total=0)
        return await self._run_batch(list(catalog), catalog, reporter)

    async def _abort(self, reporter: ProgressReporter, total: int, exc: NetworkError) -> BatchReport:
        logger.error("Cannot fetch plugin catalog: %s", exc)
        await reporter.final(f"❌ Cannot fetch the remote plugin catalog: {exc}")
        return BatchReport(total=total, aborted=f"catalog unavailable: {exc}")

    async def _run_batch(
        self,
        names: list[str],
        catalog: dict[str, CatalogEntry],
        reporter: ProgressReporter,
    ) -> BatchReport:
        total = len(names)
        report = BatchReport(total=total)
        await reporter.update(f"📦 Installing {total} plugins...\n\n🔄 Progress: 0/{total} (0%)")

        for index, name in enumerate(names):
            if should_report(index, total):
                done = percent(index + 1, total)
                await reporter.update(
                    f"📦 Installing plugin: {name}\n\n"
                    f"{progress_bar(done)}\n"
                    f"🔄 Progress: {index + 1}/{total} ({done}%)\n"
                    f"✅ Succeeded: {report.succeeded_count}\n"
                    f"❌ Failed: {report.failed_count}"
                )

            try:
                await self._install_entry(name, catalog)
            except PluginKitError as exc:
                logger.warning("Installing %s failed: %s", name, exc)
                report.failed.append(ItemFailure(name, str(exc), exc.kind))
                continue
            except Exception as exc:
                logger.exception("Unexpected error installing %s", name)
                report.failed.append(ItemFailure(name, str(exc) or type(exc).__name__))
                continue

            report.succeeded.append(name)
            if self.ctx.config.batch_delay > 0:
                await asyncio.sleep(self.ctx.config.batch_delay)

        report.reload_error = await self.ctx.reload_plugins()
        await reporter.final(self._batch_summary(report))
        return report

    async def _install_entry(self, name: str, catalog: dict[str, CatalogEntry]) -> PluginRecord:
        entry = catalog.get(name)
        if entry is None:
            raise NotFoundError(f"Plugin {name} is not in the remote catalog", name=name)
        if not entry.url:
            raise MissingSourceError(f"Plugin {name} has no source URL", name=name)

        try:
            data = await self.ctx.registry.download(entry.url)
        except NetworkError as exc:
            raise NetworkError(
                f"Download of {name} failed: {exc}", url=exc.url, status_code=exc.status_code
            ) from exc

        self.ctx.replace_file(name, data)

        record = PluginRecord.from_catalog(entry)
        self.ctx.database.upsert(record)
        if self.ctx.flush_database():
            logger.info("Recorded plugin %s from %s", name, entry.url)
        return record

    def _batch_summary(self, report: BatchReport) -> str:
        limit = self.ctx.config.max_failures_shown
        lines = [
            "🎉 Batch install finished!",
            "",
            progress_bar(100),
            "",
            "📊 Results:",
            f"✅ Installed: {report.succeeded_count}/{report.total}",
            f"❌ Failed: {report.failed_count}/{report.total}",
        ]
        if report.not_found:
            lines += ["", "🔍 Not in catalog:", format_capped_list(report.not_found, limit, "not found")]
        if report.other_failures:
            lines += ["", "❌ Other failures:", format_capped_list(report.other_failures, limit, "failed")]
        lines.append("")
        if report.reload_error:
            lines.append(f"⚠️ Reloading plugins failed: {report.reload_error}")
        else:
            lines.append("🔄 Plugins reloaded and ready to use!")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Direct file installs
    # ------------------------------------------------------------------

    async def install_from_attachment(
        self,
        name: str,
        data: bytes | None,
        progress: ProgressSink | None = None,
    ) -> ItemResult:
        """
        Install a plugin file supplied by the user, bypassing the catalog.

        An existing version record for the name is dropped, turning the plugin
        into a local-only one that updates will skip. An existing file is
        backed up first, exactly like a catalog install.
        """
        reporter = self.ctx.reporter(progress)
        name = self.ctx.store.strip_suffix(name.strip())
        if not name:
            await reporter.final("❌ Attachment has no usable file name")
            return ItemResult(name, ok=False, reason="empty name", kind="invalid")
        if data is None:
            await reporter.final("❌ Reply to a plugin file to install it")
            return ItemResult(name, ok=False, reason="no attachment", kind="invalid")

        await reporter.update(f"Installing plugin {name}...")

        note = ""
        if self.ctx.database.remove(name):
            self.ctx.flush_database()
            logger.info("Dropped catalog record for %s, now local-only", name)
            note = (
                "Replaced a plugin previously installed from the catalog; "
                f"run `install {name}` to keep receiving updates"
            )

        try:
            self.ctx.replace_file(name, data)
        except PluginKitError as exc:
            logger.warning("Installing attachment %s failed: %s", name, exc)
            await reporter.final(f"❌ {exc}")
            return ItemResult(name, ok=False, reason=str(exc), note=note, kind=exc.kind)

        reload_error = await self.ctx.reload_plugins()
        text = f"✅ Plugin {name} installed and loaded"
        if reload_error:
            text = f"⚠️ Plugin {name} installed, but reloading failed: {reload_error}"
        if note:
            text += f"\n⚠️ {note}"
        await reporter.final(text)
        return ItemResult(name, ok=True, note=note)
