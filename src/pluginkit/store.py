"""Local plugin store: the managed directory of plugin files."""

from __future__ import annotations

from pathlib import Path

from pluginkit.errors import FileSystemError, NotFoundError
from pluginkit.logging import get_logger

logger = get_logger("store")


class LocalPluginStore:
    """
    Reads, writes and enumerates plugin files in one directory.

    A plugin named ``foo`` lives in ``<directory>/foo<suffix>``. Files whose
    name contains the backup marker, ends with the declaration suffix, or
    starts with the private prefix are never treated as plugins.
    """

    def __init__(
        self,
        directory: Path,
        suffix: str = ".py",
        declaration_suffix: str = ".pyi",
        backup_marker: str = "backup",
        private_prefix: str = "_",
    ) -> None:
        self.directory = Path(directory)
        self.suffix = suffix
        self.declaration_suffix = declaration_suffix
        self.backup_marker = backup_marker
        self.private_prefix = private_prefix

    def is_manageable(self, filename: str) -> bool:
        """Check whether *filename* names a managed plugin file."""
        return (
            filename.endswith(self.suffix)
            and self.backup_marker not in filename
            and not filename.endswith(self.declaration_suffix)
            and not filename.startswith(self.private_prefix)
        )

    def path_for(self, name: str) -> Path:
        """Path of the plugin file for *name* (which may not exist)."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise FileSystemError(f"Invalid plugin name: {name!r}")
        return self.directory / f"{name}{self.suffix}"

    def strip_suffix(self, filename: str) -> str:
        """Turn ``foo.py`` into ``foo``; other names are returned unchanged."""
        if filename.endswith(self.suffix):
            return filename[: -len(self.suffix)]
        return filename

    def files(self) -> list[Path]:
        """All manageable plugin files, sorted by name."""
        if not self.directory.is_dir():
            return []
        try:
            entries = sorted(self.directory.iterdir())
        except OSError as exc:
            raise FileSystemError(f"Cannot read {self.directory}: {exc}") from exc
        return [p for p in entries if p.is_file() and self.is_manageable(p.name)]

    def list(self) -> list[str]:
        """Names of all manageable plugins."""
        return [self.strip_suffix(p.name) for p in self.files()]

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def read(self, name: str) -> bytes:
        path = self.path_for(name)
        if not path.is_file():
            raise NotFoundError(f"Plugin {name} is not installed", name=name)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileSystemError(f"Cannot read {path}: {exc}") from exc

    def write(self, name: str, data: bytes) -> Path:
        path = self.path_for(name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise FileSystemError(f"Cannot write {path}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return path

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        if not path.is_file():
            raise NotFoundError(f"Plugin {name} is not installed", name=name)
        try:
            path.unlink()
        except OSError as exc:
            raise FileSystemError(f"Cannot delete {path}: {exc}") from exc
        logger.debug("Deleted %s", path)

    def modified_at(self, name: str) -> float | None:
        """Modification time of the plugin file, or ``None`` if unreadable."""
        try:
            return self.path_for(name).stat().st_mtime
        except OSError:
            return None
