"""Tests for configuration loading."""

from pathlib import Path
from textwrap import dedent

from pluginkit.config import DEFAULT_CATALOG_URL, PluginKitConfig, load_config


class TestPluginKitConfig:
    """Tests for PluginKitConfig."""

    def test_default_values(self) -> None:
        """Should have sensible defaults."""
        config = PluginKitConfig()

        assert config.plugin_dir == Path("plugins")
        assert config.database_path == Path("assets") / "pluginkit" / "plugins.json"
        assert config.catalog_url == DEFAULT_CATALOG_URL
        assert config.timeout == 30.0
        assert config.max_retries == 0
        assert config.extension_suffix == ".py"
        assert config.max_failures_shown == 5
        assert config.max_uninstall_failures_shown == 10
        assert config.max_message_length == 4000
        assert config.verify_imports is False

    def test_from_dict(self) -> None:
        """Should create config from a dictionary."""
        config = PluginKitConfig.from_dict(
            {
                "plugin_dir": "./my-plugins",
                "catalog_url": "https://example.org/catalog.json",
                "timeout": "10",
                "max_retries": 2,
            }
        )

        assert config.plugin_dir == Path("./my-plugins")
        assert config.catalog_url == "https://example.org/catalog.json"
        assert config.timeout == 10.0
        assert config.max_retries == 2
        assert config.database_path == PluginKitConfig().database_path

    def test_from_yaml_string(self) -> None:
        """Should parse YAML content."""
        config = PluginKitConfig.from_yaml_string(
            dedent("""
                plugin_dir: /srv/bot/plugins
                batch_delay: 0
                verify_imports: true
            """)
        )

        assert config.plugin_dir == Path("/srv/bot/plugins")
        assert config.batch_delay == 0.0
        assert config.verify_imports is True

    def test_empty_yaml(self) -> None:
        """Should fall back to defaults for an empty document."""
        assert PluginKitConfig.from_yaml_string("").to_dict() == PluginKitConfig().to_dict()

    def test_to_dict_round_trip(self, tmp_path: Path) -> None:
        """Should survive a dict round trip."""
        config = PluginKitConfig(plugin_dir=tmp_path / "p", max_retries=3)

        assert PluginKitConfig.from_dict(config.to_dict()) == config

    def test_env_overrides(self) -> None:
        """Should apply PLUGINKIT_* variables."""
        config = PluginKitConfig().with_env_overrides(
            {
                "PLUGINKIT_PLUGIN_DIR": "/tmp/plugins",
                "PLUGINKIT_CATALOG_URL": "https://mirror.test/plugins.json",
                "PLUGINKIT_MAX_RETRIES": "4",
                "UNRELATED": "x",
            }
        )

        assert config.plugin_dir == Path("/tmp/plugins")
        assert config.catalog_url == "https://mirror.test/plugins.json"
        assert config.max_retries == 4


class TestLoadConfig:
    """Tests for load_config."""

    def test_explicit_path(self, tmp_path: Path, monkeypatch) -> None:
        """Should read the given file."""
        monkeypatch.delenv("PLUGINKIT_PLUGIN_DIR", raising=False)
        path = tmp_path / "pluginkit.yaml"
        path.write_text("plugin_dir: ./custom\n")

        config, loaded_from = load_config(path)

        assert loaded_from == path
        assert config.plugin_dir == Path("./custom")

    def test_missing_path_uses_defaults(self, tmp_path: Path) -> None:
        """Should fall back to defaults when the file does not exist."""
        config, loaded_from = load_config(tmp_path / "missing.yaml")

        assert loaded_from is None
        assert config.extension_suffix == ".py"

    def test_env_wins_over_file(self, tmp_path: Path, monkeypatch) -> None:
        """Should let the environment override the file."""
        path = tmp_path / "pluginkit.yaml"
        path.write_text("timeout: 5\n")
        monkeypatch.setenv("PLUGINKIT_TIMEOUT", "12")

        config, _ = load_config(path)

        assert config.timeout == 12.0
