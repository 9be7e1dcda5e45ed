"""Uninstall orchestrator."""

from __future__ import annotations

from pluginkit.context import PluginContext
from pluginkit.errors import NotFoundError, PluginKitError
from pluginkit.logging import get_logger
from pluginkit.models import BatchReport, ItemFailure, ItemResult, UninstallAllReport
from pluginkit.progress import ProgressSink, format_capped_list, percent, progress_bar

logger = get_logger("uninstaller")


class UninstallOrchestrator:
    """Removes plugin files together with their version records."""

    def __init__(self, context: PluginContext) -> None:
        self.ctx = context

    async def uninstall_one(self, name: str, progress: ProgressSink | None = None) -> ItemResult:
        reporter = self.ctx.reporter(progress)
        name = name.strip()
        if not name:
            await reporter.final("❌ Give the name of the plugin to uninstall")
            return ItemResult(name, ok=False, reason="empty name", kind="invalid")

        await reporter.update(f"Uninstalling plugin {name}...")
        try:
            self.ctx.store.delete(name)
        except NotFoundError as exc:
            await reporter.final(f"❌ Plugin {name} not found")
            return ItemResult(name, ok=False, reason="not installed", kind=exc.kind)
        except PluginKitError as exc:
            logger.warning("Uninstalling %s failed: %s", name, exc)
            await reporter.final(f"❌ {exc}")
            return ItemResult(name, ok=False, reason=str(exc), kind=exc.kind)

        if self.ctx.database.remove(name):
            self.ctx.flush_database()
            logger.info("Removed version record for %s", name)

        reload_error = await self.ctx.reload_plugins()
        text = f"✅ Plugin {name} uninstalled"
        if reload_error:
            text += f"\n⚠️ Reloading plugins failed: {reload_error}"
        await reporter.final(text)
        return ItemResult(name, ok=True, note=reload_error or "")

    async def uninstall_batch(
        self, names: list[str], progress: ProgressSink | None = None
    ) -> BatchReport:
        """
        Uninstall several plugins.

        Records are removed in memory as files are deleted and the database
        is flushed once at the end, and only if a record actually changed.
        """
        reporter = self.ctx.reporter(progress)
        if not names:
            await reporter.final("❌ Give the names of the plugins to uninstall")
            return BatchReport(aborted="no plugin names given")

        total = len(names)
        report = BatchReport(total=total)
        records_changed = False
        await reporter.update(f"Uninstalling {total} plugins...\n{progress_bar(0)} 0/{total}")

        for index, raw_name in enumerate(names):
            name = raw_name.strip()
            if not name:
                report.failed.append(ItemFailure(raw_name, "empty name", "invalid"))
            else:
                try:
                    self.ctx.store.delete(name)
                except NotFoundError as exc:
                    report.failed.append(ItemFailure(name, "not installed", exc.kind))
                except PluginKitError as exc:
                    logger.warning("Uninstalling %s failed: %s", name, exc)
                    report.failed.append(ItemFailure(name, f"delete failed: {exc}", exc.kind))
                else:
                    if self.ctx.database.remove(name):
                        records_changed = True
                        logger.info("Removed version record for %s", name)
                    report.succeeded.append(name)

            done = index + 1
            await reporter.update(
                f"Uninstalling plugins...\n{progress_bar(percent(done, total))} "
                f"{done}/{total}\nCurrent: {name or raw_name!r}"
            )

        if records_changed:
            self.ctx.flush_database()

        report.reload_error = await self.ctx.reload_plugins()
        await reporter.final(self._batch_summary(report))
        return report

    def _batch_summary(self, report: BatchReport) -> str:
        lines = [
            "📊 Uninstall finished",
            "",
            f"✅ Succeeded: {report.succeeded_count}",
            f"❌ Failed: {report.failed_count}",
        ]
        if report.succeeded:
            lines += ["", "✅ Uninstalled:"] + [f"  • {name}" for name in report.succeeded]
        if report.failed:
            lines += ["", "❌ Not uninstalled:"] + [
                f"  • {failure.name}: {failure.reason}" for failure in report.failed
            ]
        if report.reload_error:
            lines += ["", f"⚠️ Reloading plugins failed: {report.reload_error}"]
        return "\n".join(lines)

    async def uninstall_all(self, progress: ProgressSink | None = None) -> UninstallAllReport:
        """Delete every managed plugin file and clear the version database."""
        reporter = self.ctx.reporter(progress)
        await reporter.update("⚠️ Clearing the plugin directory...")
        report = UninstallAllReport()

        try:
            files = self.ctx.store.files()
        except PluginKitError as exc:
            logger.error("Scanning plugin directory failed: %s", exc)
            files = []

        for path in files:
            try:
                path.unlink()
            except OSError as exc:
                logger.warning("Cannot delete %s: %s", path, exc)
                report.failed.append(path.name)
            else:
                report.removed.append(path.name)

        self.ctx.database.clear()
        report.database_cleared = self.ctx.flush_database()
        report.reload_error = await self.ctx.reload_plugins()

        lines = [f"✅ Plugin directory cleared\n\n🗑 Files removed: {len(report.removed)}"]
        if report.failed:
            limit = self.ctx.config.max_uninstall_failures_shown
            lines.append(f"❌ Failed to remove: {len(report.failed)}")
            lines.append(format_capped_list(report.failed, limit, "failed"))
        if not report.database_cleared:
            lines.append("⚠️ The version database could not be cleared")
        if report.reload_error:
            lines.append(f"⚠️ Reloading plugins failed: {report.reload_error}")
        await reporter.final("\n".join(lines))
        return report
