"""
Error taxonomy for plugin lifecycle operations.

Leaf components (registry, store, backup, database) raise these; the
orchestrators catch them per item and fold them into their reports.
"""

from __future__ import annotations


class PluginKitError(Exception):
    """Base class for all pluginkit errors."""

    #: Short machine-friendly label used in reports.
    kind: str = "error"


class NetworkError(PluginKitError):
    """Catalog or plugin source unreachable, or a non-success HTTP status."""

    kind = "network"

    def __init__(self, message: str, url: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class CatalogParseError(NetworkError):
    """The catalog document is not valid JSON or not a flat name-keyed object."""

    kind = "parse"


class NotFoundError(PluginKitError):
    """Name absent from the catalog, or plugin file absent on disk."""

    kind = "not_found"

    def __init__(self, message: str, name: str = "") -> None:
        super().__init__(message)
        self.name = name


class FileSystemError(PluginKitError):
    """A write, delete or copy in the plugin or backup area failed."""

    kind = "filesystem"


class DatabaseReadError(PluginKitError):
    """The version database file exists but cannot be parsed."""

    kind = "database"


class DatabaseWriteError(PluginKitError):
    """The version database could not be flushed to disk."""

    kind = "database"


class MissingSourceError(NotFoundError):
    """A catalog entry or plugin record carries no source URL."""

    kind = "no_source"
