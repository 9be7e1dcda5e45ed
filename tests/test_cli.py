"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
import yaml

from pluginkit.cli import build_parser, main


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config file pointing every managed area into tmp_path."""
    path = tmp_path / "pluginkit.yaml"
    path.write_text(
        yaml.dump(
            {
                "plugin_dir": str(tmp_path / "plugins"),
                "database_path": str(tmp_path / "data" / "plugins.json"),
                "backup_dir": str(tmp_path / "backups"),
                "catalog_url": "https://catalog.test/plugins.json",
                "batch_delay": 0,
            }
        )
    )
    return path


@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "plugins"
    directory.mkdir()
    return directory


class TestParser:
    """Tests for argument parsing."""

    @pytest.mark.parametrize("alias", ["uninstall", "rm", "un", "remove"])
    def test_uninstall_aliases(self, alias: str) -> None:
        """Should accept every uninstall alias."""
        args = build_parser().parse_args([alias, "a", "b"])

        assert args.command == alias
        assert args.names == ["a", "b"]

    def test_list_verbose_is_separate_from_global_verbose(self) -> None:
        """Should keep `list -v` apart from the global -v flag."""
        args = build_parser().parse_args(["list", "-v"])

        assert args.details is True
        assert args.verbose is False

    def test_install_file(self) -> None:
        """Should parse --file and --name."""
        args = build_parser().parse_args(["i", "--file", "x.py", "--name", "hello"])

        assert args.file == Path("x.py")
        assert args.name == "hello"
        assert args.names == []


class TestCommands:
    """End-to-end command tests that never touch the network."""

    def test_install_from_file(self, config_file: Path, tmp_path: Path, capsys) -> None:
        """Should install a local file as a plugin."""
        source = tmp_path / "hello.py"
        source.write_text("print('hi')\n")

        main(["-c", str(config_file), "install", "--file", str(source)])

        assert (tmp_path / "plugins" / "hello.py").read_text() == "print('hi')\n"
        assert "✅ Plugin hello installed and loaded" in capsys.readouterr().out

    def test_install_missing_file(self, config_file: Path, tmp_path: Path) -> None:
        """Should fail when the file does not exist."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "install", "--file", str(tmp_path / "nope.py")])
        assert exc_info.value.code == 1

    def test_install_without_names(self, config_file: Path) -> None:
        """Should refuse an empty install."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "install"])
        assert exc_info.value.code == 1

    def test_uninstall(self, config_file: Path, plugin_dir: Path, capsys) -> None:
        """Should remove a plugin file."""
        (plugin_dir / "weather.py").write_text("x")

        main(["-c", str(config_file), "rm", "weather"])

        assert not (plugin_dir / "weather.py").exists()
        assert "✅ Plugin weather uninstalled" in capsys.readouterr().out

    def test_uninstall_missing_exits_nonzero(self, config_file: Path, plugin_dir: Path) -> None:
        """Should exit 1 when nothing was uninstalled."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "uninstall", "ghost"])
        assert exc_info.value.code == 1

    def test_list_json(self, config_file: Path, plugin_dir: Path, capsys) -> None:
        """Should list local plugins as JSON."""
        (plugin_dir / "handmade.py").write_text("x")

        main(["-c", str(config_file), "ls", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["records"] == []
        assert [e["name"] for e in data["local"]] == ["handmade"]

    def test_locate(self, config_file: Path, plugin_dir: Path, capsys) -> None:
        """Should print the plugin path."""
        (plugin_dir / "weather.py").write_text("x")

        main(["-c", str(config_file), "locate", "weather"])

        assert capsys.readouterr().out.strip() == str(plugin_dir / "weather.py")

    def test_locate_missing(self, config_file: Path) -> None:
        """Should exit 1 for an unknown plugin."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "locate", "ghost"])
        assert exc_info.value.code == 1

    def test_corrupt_database(self, config_file: Path, tmp_path: Path, capsys) -> None:
        """Should report an unreadable version database."""
        db = tmp_path / "data" / "plugins.json"
        db.parent.mkdir()
        db.write_text("{broken")

        with pytest.raises(SystemExit):
            main(["-c", str(config_file), "ls"])
        assert "Cannot read version database" in capsys.readouterr().out


class TestConfigCommands:
    """Tests for `pluginkit config`."""

    def test_init(self, tmp_path: Path) -> None:
        """Should write a starter config file."""
        output = tmp_path / "new.yaml"

        main(["config", "init", "-o", str(output)])

        data = yaml.safe_load(output.read_text())
        assert data["plugin_dir"] == "plugins"
        assert data["verify_imports"] is False

    def test_init_refuses_overwrite(self, config_file: Path) -> None:
        """Should not overwrite an existing file."""
        with pytest.raises(SystemExit):
            main(["config", "init", "-o", str(config_file)])

    def test_show(self, config_file: Path, capsys) -> None:
        """Should show the loaded configuration."""
        main(["-c", str(config_file), "config", "show"])

        out = capsys.readouterr().out
        assert "Loaded from:" in out
        assert "catalog.test" in out

    def test_path(self, capsys) -> None:
        """Should list the search paths."""
        main(["config", "path"])

        assert "pluginkit.yaml" in capsys.readouterr().out
