"""Backups of plugin files taken before they are overwritten."""

from __future__ import annotations

import re
import shutil
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pluginkit.errors import FileSystemError
from pluginkit.logging import get_logger
from pluginkit.store import LocalPluginStore

logger = get_logger("backup")

_TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with ``:`` and ``.`` replaced, e.g. ``2026-10-19T08-30-00-123Z``."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


class BackupManager:
    """
    Copies plugin files into a separate backup area.

    Backups are named ``<name>_<timestamp><suffix>`` and are never removed
    automatically. Timestamps have millisecond resolution and are forced to
    be strictly increasing per plugin, so two overwrites within the same
    millisecond still produce two distinct backups.
    """

    def __init__(
        self,
        store: LocalPluginStore,
        backup_dir: Path,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.backup_dir = Path(backup_dir)
        self._clock = clock
        self._last_stamp: dict[str, datetime] = {}

    def backup_before_overwrite(self, name: str) -> Path | None:
        """
        Copy the current file for *name* into the backup area.

        Returns the backup path, or ``None`` when there is nothing to back up.
        """
        source = self.store.path_for(name)
        if not source.is_file():
            return None

        moment = self._next_moment(name)
        target = self._backup_path(name, moment)
        # A backup from another process may already hold this stamp.
        while target.exists():
            moment += timedelta(milliseconds=1)
            self._last_stamp[name] = moment
            target = self._backup_path(name, moment)
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as exc:
            raise FileSystemError(f"Cannot back up {source} to {target}: {exc}") from exc

        logger.info("Backed up %s to %s", source.name, target)
        return target

    def prune_legacy_marker(self, name: str) -> bool:
        """Delete a stale ``<name><suffix>.backup`` sibling if present."""
        legacy = self.legacy_marker_path(name)
        if not legacy.is_file():
            return False
        try:
            legacy.unlink()
        except OSError as exc:
            raise FileSystemError(f"Cannot remove legacy backup {legacy}: {exc}") from exc
        logger.info("Removed legacy backup %s", legacy)
        return True

    def legacy_marker_path(self, name: str) -> Path:
        path = self.store.path_for(name)
        return path.with_name(f"{path.name}.{self.store.backup_marker}")

    def list_backups(self, name: str) -> list[Path]:
        """Backups of *name*, oldest first."""
        if not self.backup_dir.is_dir():
            return []
        pattern = re.compile(
            rf"{re.escape(name)}_{_TIMESTAMP_PATTERN}{re.escape(self.store.suffix)}"
        )
        return sorted(p for p in self.backup_dir.iterdir() if pattern.fullmatch(p.name))

    def _backup_path(self, name: str, moment: datetime) -> Path:
        return self.backup_dir / f"{name}_{format_timestamp(moment)}{self.store.suffix}"

    def _next_moment(self, name: str) -> datetime:
        moment = self._clock().astimezone(timezone.utc)
        moment = moment.replace(microsecond=(moment.microsecond // 1000) * 1000)
        last = self._last_stamp.get(name)
        if last is not None and moment <= last:
            moment = last + timedelta(milliseconds=1)
        self._last_stamp[name] = moment
        return moment
