"""
Status/diff engine: compares the catalog, the plugin directory and the
version database.

A catalog name is *installed* only when its file exists, a version record
exists, and the record's URL still matches the catalog. A file without a
record is *local-only* (uploaded by hand, or written just before a crash
that prevented the record from being flushed). Everything else, including
a catalog entry that was re-pointed to a new URL, is *not installed*.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime

from pluginkit.context import PluginContext
from pluginkit.errors import NetworkError
from pluginkit.logging import get_logger
from pluginkit.models import (
    CatalogEntry,
    ListingReport,
    LocalEntry,
    PluginStatus,
    SearchEntry,
    SearchReport,
)
from pluginkit.progress import ProgressSink

logger = get_logger("status")


class StatusEngine:
    def __init__(self, context: PluginContext) -> None:
        self.ctx = context

    def classify(
        self,
        name: str,
        entry: CatalogEntry | None = None,
        local_names: Collection[str] | None = None,
    ) -> PluginStatus:
        """Status of *name* given its current catalog entry (if any)."""
        if local_names is None:
            has_file = self.ctx.store.exists(name)
        else:
            has_file = name in local_names
        record = self.ctx.database.get(name)

        if has_file and record is not None and entry is not None and record.url == entry.url:
            return PluginStatus.INSTALLED
        if has_file and record is None:
            return PluginStatus.LOCAL_ONLY
        return PluginStatus.NOT_INSTALLED

    async def search(self, progress: ProgressSink | None = None) -> SearchReport:
        """Classify every catalog entry, keeping the catalog's order."""
        reporter = self.ctx.reporter(progress)
        await reporter.update("🔍 Fetching plugin list...")
        try:
            catalog = await self.ctx.registry.fetch_catalog()
        except NetworkError as exc:
            logger.error("Cannot fetch plugin catalog: %s", exc)
            await reporter.final(f"❌ Cannot fetch the remote plugin catalog: {exc}")
            return SearchReport(error=str(exc))

        local_names = set(self.ctx.store.list())
        report = SearchReport(
            entries=[
                SearchEntry(
                    name=name,
                    status=self.classify(name, entry, local_names),
                    description=entry.description,
                )
                for name, entry in catalog.items()
            ]
        )
        await reporter.final(render_search(report))
        return report

    async def list_records(
        self, verbose: bool = False, progress: ProgressSink | None = None
    ) -> ListingReport:
        """Recorded plugins, newest first, plus files on disk without a record."""
        reporter = self.ctx.reporter(progress)
        records = sorted(self.ctx.database.records(), key=lambda r: r.updated_at, reverse=True)
        untracked = [name for name in self.ctx.store.list() if name not in self.ctx.database]
        report = ListingReport(
            records=records,
            local=[
                LocalEntry(name, self.ctx.store.modified_at(name) if verbose else None)
                for name in untracked
            ],
            verbose=verbose,
        )
        await reporter.final(render_listing(report))
        return report


def render_search(report: SearchReport) -> str:
    lines = [
        "🔍 Remote plugins",
        "",
        "📊 Summary:",
        f"• Total: {report.total}",
        f"• {PluginStatus.INSTALLED.icon} Installed: {report.count(PluginStatus.INSTALLED)}",
        f"• {PluginStatus.LOCAL_ONLY.icon} Local copy: {report.count(PluginStatus.LOCAL_ONLY)}",
        f"• {PluginStatus.NOT_INSTALLED.icon} Not installed: "
        f"{report.count(PluginStatus.NOT_INSTALLED)}",
        "",
    ]
    lines += [
        f"{e.status.icon} {e.name} - {e.description or 'No description'}" for e in report.entries
    ]
    return "\n".join(lines)


def _format_time(timestamp: float | None) -> str:
    if timestamp is None:
        return "unknown"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def render_listing(report: ListingReport) -> str:
    lines = ["📚 Plugin records"]
    if not report.verbose:
        lines += ["", "💡 Use `list -v` for details"]

    if report.records:
        lines += ["", f"📦 Installed from catalog ({len(report.records)}):"]
        for record in report.records:
            if report.verbose:
                lines.append(f"{record.name} 🕒 {_format_time(record.updated_at / 1000)}")
                if record.description:
                    lines.append(f"📝 {record.description}")
                lines.append(f"🔗 {record.url}")
            else:
                desc = f" - {record.description}" if record.description else ""
                lines.append(f"{record.name}{desc}")
    else:
        lines += ["", "📦 Installed from catalog: (none)"]

    if report.local:
        lines += ["", f"🗂 Local plugins ({len(report.local)}):"]
        for entry in report.local:
            if report.verbose:
                lines.append(f"{entry.name} 🗄 {_format_time(entry.modified_at)}")
            else:
                lines.append(entry.name)

    lines += ["", f"📊 Total: {report.total} plugins"]
    return "\n".join(lines)
