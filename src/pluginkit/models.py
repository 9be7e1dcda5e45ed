"""
Data models for the plugin lifecycle manager.

Catalog entries come from the remote catalog document, plugin records from
the local version database. Reports are what the orchestrators return.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PluginStatus(str, Enum):
    """Derived installation status of a catalog name."""

    INSTALLED = "installed"
    LOCAL_ONLY = "local_only"
    NOT_INSTALLED = "not_installed"

    @property
    def icon(self) -> str:
        return _STATUS_ICONS[self]

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_ICONS = {
    PluginStatus.INSTALLED: "✅",
    PluginStatus.LOCAL_ONLY: "🔶",
    PluginStatus.NOT_INSTALLED: "❌",
}

_STATUS_LABELS = {
    PluginStatus.INSTALLED: "installed",
    PluginStatus.LOCAL_ONLY: "local copy",
    PluginStatus.NOT_INSTALLED: "not installed",
}


def now_ms() -> int:
    """Current time as milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass
class CatalogEntry:
    """One installable plugin advertised by the remote catalog."""

    name: str
    url: str = ""
    description: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> CatalogEntry:
        """Create from one value of the catalog document."""
        url = data.get("url")
        return cls(
            name=name,
            url=url if isinstance(url, str) else "",
            description=data.get("desc"),
        )


@dataclass
class PluginRecord:
    """Proof that a plugin was installed from the catalog."""

    name: str
    url: str = ""
    description: str | None = None
    updated_at: int = field(default_factory=now_ms)  # ms since epoch

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> PluginRecord:
        """Create from one value of the database document."""
        return cls(
            name=name,
            url=data.get("url") or "",
            description=data.get("desc"),
            updated_at=int(data.get("_updatedAt", 0) or 0),
        )

    @classmethod
    def from_catalog(cls, entry: CatalogEntry) -> PluginRecord:
        return cls(name=entry.name, url=entry.url, description=entry.description)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk record layout."""
        data: dict[str, Any] = {"url": self.url}
        if self.description is not None:
            data["desc"] = self.description
        data["_updatedAt"] = self.updated_at
        return data


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@dataclass
class ItemFailure:
    """A single failed item inside a batch."""

    name: str
    reason: str
    kind: str = "error"

    def __str__(self) -> str:
        return f"{self.name} ({self.reason})"


@dataclass
class ItemResult:
    """Outcome of a single-item operation."""

    name: str
    ok: bool
    reason: str = ""
    note: str = ""
    kind: str = ""


@dataclass
class BatchReport:
    """Outcome of a batch install or uninstall."""

    total: int = 0
    succeeded: list[str] = field(default_factory=list)
    failed: list[ItemFailure] = field(default_factory=list)
    aborted: str | None = None  # set when the batch never started
    reload_error: str | None = None

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def not_found(self) -> list[str]:
        return [f.name for f in self.failed if f.kind == "not_found"]

    @property
    def other_failures(self) -> list[ItemFailure]:
        return [f for f in self.failed if f.kind != "not_found"]

    @property
    def ok(self) -> bool:
        return self.aborted is None and not self.failed


@dataclass
class UpdateReport:
    """Outcome of an update run over every plugin record."""

    total: int = 0
    updated: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    failed: list[ItemFailure] = field(default_factory=list)
    aborted: str | None = None
    reload_error: str | None = None

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return self.aborted is None and not self.failed


@dataclass
class UninstallAllReport:
    """Outcome of clearing the plugin directory."""

    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    database_cleared: bool = True
    reload_error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class SearchEntry:
    name: str
    status: PluginStatus
    description: str | None = None


@dataclass
class SearchReport:
    """Every catalog entry with its local status."""

    entries: list[SearchEntry] = field(default_factory=list)
    error: str | None = None  # set when the catalog could not be fetched

    def count(self, status: PluginStatus) -> int:
        return sum(1 for e in self.entries if e.status is status)

    @property
    def total(self) -> int:
        return len(self.entries)


@dataclass
class LocalEntry:
    """A plugin file present on disk with no version record."""

    name: str
    modified_at: float | None = None  # seconds since epoch, verbose listings only


@dataclass
class ListingReport:
    """Recorded plugins (newest first) plus untracked local files."""

    records: list[PluginRecord] = field(default_factory=list)
    local: list[LocalEntry] = field(default_factory=list)
    verbose: bool = False

    @property
    def total(self) -> int:
        return len(self.records) + len(self.local)
