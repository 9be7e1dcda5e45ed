"""
Update orchestrator.

Re-downloads every recorded plugin from its source URL and rewrites the
local file only when the content changed, so running an update twice in a
row against an unchanged catalog updates nothing the second time.
"""

from __future__ import annotations

import asyncio

from pluginkit.context import PluginContext
from pluginkit.errors import PluginKitError
from pluginkit.logging import get_logger
from pluginkit.models import ItemFailure, PluginRecord, UpdateReport, now_ms
from pluginkit.progress import (
    ProgressSink,
    format_capped_list,
    percent,
    progress_bar,
    should_report,
)

logger = get_logger("updater")

SKIP_NO_SOURCE = "no source URL"
SKIP_NOT_INSTALLED = "not installed locally"
SKIP_UNCHANGED = "unchanged"


class UpdateOrchestrator:
    def __init__(self, context: PluginContext) -> None:
        self.ctx = context

    async def update_all(self, progress: ProgressSink | None = None) -> UpdateReport:
        """Update every plugin that has a version record, in database order."""
        reporter = self.ctx.reporter(progress)
        await reporter.update("🔍 Checking plugins for updates...")

        names = self.ctx.database.names()
        report = UpdateReport(total=len(names))
        if not names:
            await reporter.final("📦 No plugins installed from the catalog")
            return report

        total = len(names)
        await reporter.update(f"📦 Updating {total} plugins...\n\n🔄 Progress: 0/{total} (0%)")

        for index, name in enumerate(names):
            if should_report(index, total):
                done = percent(index + 1, total)
                await reporter.update(
                    f"📦 Updating plugin: {name}\n\n"
                    f"{progress_bar(done)}\n"
                    f"🔄 Progress: {index + 1}/{total} ({done}%)\n"
                    f"✅ Updated: {report.updated_count}\n"
                    f"⏭️ Skipped: {report.skipped_count}\n"
                    f"❌ Failed: {report.failed_count}"
                )

            try:
                skipped = await self._update_one(self.ctx.database.get(name))
            except PluginKitError as exc:
                logger.warning("Updating %s failed: %s", name, exc)
                report.failed.append(ItemFailure(name, str(exc), exc.kind))
                continue
            except Exception as exc:
                logger.exception("Unexpected error updating %s", name)
                report.failed.append(ItemFailure(name, str(exc) or type(exc).__name__))
                continue

            if skipped:
                logger.info("Skipping %s: %s", name, skipped)
                report.skipped.append((name, skipped))
                continue

            report.updated.append(name)
            if self.ctx.config.batch_delay > 0:
                await asyncio.sleep(self.ctx.config.batch_delay)

        report.reload_error = await self.ctx.reload_plugins()
        logger.info(
            "Update finished: %d updated, %d skipped, %d failed",
            report.updated_count,
            report.skipped_count,
            report.failed_count,
        )
        await reporter.final(self._summary(report))
        return report

    async def _update_one(self, record: PluginRecord) -> str | None:
        """Update one plugin. Returns a skip reason, or ``None`` if it was rewritten."""
        name = record.name
        if not record.url:
            return SKIP_NO_SOURCE
        if not self.ctx.store.exists(name):
            return SKIP_NOT_INSTALLED

        data = await self.ctx.registry.download(record.url)
        if data == self.ctx.store.read(name):
            return SKIP_UNCHANGED

        self.ctx.replace_file(name, data, prune_legacy=False)
        record.updated_at = now_ms()
        self.ctx.database.upsert(record)
        if self.ctx.flush_database():
            logger.info("Updated plugin %s from %s", name, record.url)
        return None

    def _summary(self, report: UpdateReport) -> str:
        text = (
            f"✅ Update finished (updated {report.updated_count}, "
            f"skipped {report.skipped_count}, failed {report.failed_count})"
        )
        if report.failed:
            text += "\n\n❌ Failures:\n" + format_capped_list(
                report.failed, self.ctx.config.max_failures_shown, "failed"
            )
        if report.reload_error:
            text += f"\n\n⚠️ Reloading plugins failed: {report.reload_error}"
        return text
