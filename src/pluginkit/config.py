"""
Configuration for the plugin lifecycle manager.

Can be loaded from YAML files, plain dictionaries, or constructed
programmatically. Environment variables override file values.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CATALOG_URL = (
    "https://raw.githubusercontent.com/pluginkit/plugin-catalog/main/plugins.json"
)

# Config file search paths, highest priority first.
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "pluginkit.yaml",
    Path.cwd() / "pluginkit-config.yaml",
    Path.home() / ".config" / "pluginkit" / "config.yaml",
]


def _default_backup_dir() -> Path:
    return Path(tempfile.gettempdir()) / "pluginkit" / "plugin_backups"


@dataclass
class PluginKitConfig:
    """
    Main configuration for the plugin manager.

    Example YAML:
        plugin_dir: ./plugins
        database_path: ./assets/pluginkit/plugins.json
        catalog_url: https://example.org/plugins.json
        timeout: 30
        max_retries: 2
    """

    # Locations
    plugin_dir: Path = field(default_factory=lambda: Path("plugins"))
    database_path: Path = field(
        default_factory=lambda: Path("assets") / "pluginkit" / "plugins.json"
    )
    backup_dir: Path = field(default_factory=_default_backup_dir)

    # Remote catalog
    catalog_url: str = DEFAULT_CATALOG_URL
    timeout: float = 30.0  # Per-request timeout in seconds
    max_retries: int = 0  # 0 = single attempt
    retry_backoff: float = 0.5  # First retry delay, doubled each attempt

    # File naming
    extension_suffix: str = ".py"
    declaration_suffix: str = ".pyi"
    backup_marker: str = "backup"
    private_prefix: str = "_"

    # Batch behaviour and presentation
    batch_delay: float = 0.1  # Pause after each successful batch item
    max_failures_shown: int = 5
    max_uninstall_failures_shown: int = 10
    max_message_length: int = 4000

    # Reload
    verify_imports: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PluginKitConfig:
        """Create config from a dictionary."""
        defaults = cls()
        return cls(
            plugin_dir=Path(data["plugin_dir"]) if data.get("plugin_dir") else defaults.plugin_dir,
            database_path=(
                Path(data["database_path"]) if data.get("database_path") else defaults.database_path
            ),
            backup_dir=Path(data["backup_dir"]) if data.get("backup_dir") else defaults.backup_dir,
            catalog_url=data.get("catalog_url", defaults.catalog_url),
            timeout=float(data.get("timeout", defaults.timeout)),
            max_retries=int(data.get("max_retries", defaults.max_retries)),
            retry_backoff=float(data.get("retry_backoff", defaults.retry_backoff)),
            extension_suffix=data.get("extension_suffix", defaults.extension_suffix),
            declaration_suffix=data.get("declaration_suffix", defaults.declaration_suffix),
            backup_marker=data.get("backup_marker", defaults.backup_marker),
            private_prefix=data.get("private_prefix", defaults.private_prefix),
            batch_delay=float(data.get("batch_delay", defaults.batch_delay)),
            max_failures_shown=int(data.get("max_failures_shown", defaults.max_failures_shown)),
            max_uninstall_failures_shown=int(
                data.get("max_uninstall_failures_shown", defaults.max_uninstall_failures_shown)
            ),
            max_message_length=int(data.get("max_message_length", defaults.max_message_length)),
            verify_imports=bool(data.get("verify_imports", defaults.verify_imports)),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> PluginKitConfig:
        """Load config from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_yaml_string(cls, content: str) -> PluginKitConfig:
        """Load config from a YAML string."""
        data = yaml.safe_load(content)
        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "plugin_dir": str(self.plugin_dir),
            "database_path": str(self.database_path),
            "backup_dir": str(self.backup_dir),
            "catalog_url": self.catalog_url,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "retry_backoff": self.retry_backoff,
            "extension_suffix": self.extension_suffix,
            "declaration_suffix": self.declaration_suffix,
            "backup_marker": self.backup_marker,
            "private_prefix": self.private_prefix,
            "batch_delay": self.batch_delay,
            "max_failures_shown": self.max_failures_shown,
            "max_uninstall_failures_shown": self.max_uninstall_failures_shown,
            "max_message_length": self.max_message_length,
            "verify_imports": self.verify_imports,
        }

    def with_env_overrides(self, environ: dict[str, str] | None = None) -> PluginKitConfig:
        """Return a copy with ``PLUGINKIT_*`` environment variables applied."""
        env = os.environ if environ is None else environ
        data = self.to_dict()
        for var, key in _ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                data[key] = value
        return PluginKitConfig.from_dict(data)


_ENV_OVERRIDES = {
    "PLUGINKIT_PLUGIN_DIR": "plugin_dir",
    "PLUGINKIT_DATABASE": "database_path",
    "PLUGINKIT_BACKUP_DIR": "backup_dir",
    "PLUGINKIT_CATALOG_URL": "catalog_url",
    "PLUGINKIT_TIMEOUT": "timeout",
    "PLUGINKIT_MAX_RETRIES": "max_retries",
}


def load_config(path: Path | None = None) -> tuple[PluginKitConfig, Path | None]:
    """
    Load configuration from *path* or the first existing search path.

    Returns the config (with environment overrides applied) and the file it
    was read from, or ``None`` when defaults were used.
    """
    candidates = [path] if path is not None else CONFIG_SEARCH_PATHS
    for candidate in candidates:
        if candidate.exists():
            return PluginKitConfig.from_yaml(candidate).with_env_overrides(), candidate
    return PluginKitConfig().with_env_overrides(), None
