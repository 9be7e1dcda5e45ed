"""
Version database: the persisted record of catalog-installed plugins.

The document is a flat JSON object keyed by plugin name::

    {"foo": {"url": "https://...", "desc": "Does foo", "_updatedAt": 1760000000000}}

Files written by older releases nest the records under a ``"plugins"`` key;
those are flattened on load and rewritten flat on the next flush.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pluginkit.errors import DatabaseReadError, DatabaseWriteError
from pluginkit.logging import get_logger
from pluginkit.models import PluginRecord

logger = get_logger("database")


class VersionDatabase:
    """In-memory mapping of name to :class:`PluginRecord`, flushed as one document.

    Mutations only touch memory; callers decide when to :meth:`flush`.
    Iteration order is insertion order, which is also the on-disk order.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._records: dict[str, PluginRecord] = {}
        self._loaded = False

    def load(self) -> VersionDatabase:
        """Read the document from disk. A missing file is an empty database."""
        self._records = {}
        self._loaded = True
        if not self.path.exists():
            return self

        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DatabaseReadError(f"Cannot read version database {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DatabaseReadError(f"Version database {self.path} is not a JSON object")

        data = _migrate_legacy_layout(data)
        for name, value in data.items():
            if not isinstance(value, dict):
                logger.warning("Dropping malformed database record %r", name)
                continue
            try:
                self._records[name] = PluginRecord.from_dict(name, value)
            except (TypeError, ValueError) as exc:
                logger.warning("Dropping malformed database record %r: %s", name, exc)
        return self

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> PluginRecord | None:
        self._ensure_loaded()
        return self._records.get(name)

    def __contains__(self, name: object) -> bool:
        self._ensure_loaded()
        return name in self._records

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        self._ensure_loaded()
        return iter(list(self._records))

    def names(self) -> list[str]:
        self._ensure_loaded()
        return list(self._records)

    def records(self) -> list[PluginRecord]:
        self._ensure_loaded()
        return list(self._records.values())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(self, record: PluginRecord) -> None:
        self._ensure_loaded()
        self._records[record.name] = record

    def remove(self, name: str) -> bool:
        """Remove the record for *name*; returns whether one existed."""
        self._ensure_loaded()
        return self._records.pop(name, None) is not None

    def clear(self) -> None:
        self._ensure_loaded()
        self._records.clear()

    def to_dict(self) -> dict[str, Any]:
        self._ensure_loaded()
        return {name: record.to_dict() for name, record in self._records.items()}

    def flush(self) -> None:
        """Write the whole document atomically (temp file + rename)."""
        self._ensure_loaded()
        payload = json.dumps(self.to_dict(), ensure_ascii=False, indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise DatabaseWriteError(f"Cannot write version database {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug("Flushed %d records to %s", len(self._records), self.path)


def _migrate_legacy_layout(data: dict[str, Any]) -> dict[str, Any]:
    nested = data.get("plugins")
    if set(data) == {"plugins"} and isinstance(nested, dict):
        if all(isinstance(v, dict) and "url" in v for v in nested.values()):
            logger.info("Migrating nested version database layout")
            return nested
    return data
