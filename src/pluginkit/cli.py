"""
Command-line interface for the plugin manager.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from pluginkit.config import CONFIG_SEARCH_PATHS, PluginKitConfig, load_config
from pluginkit.errors import NotFoundError, PluginKitError
from pluginkit.loader import PluginLoader
from pluginkit.logging import get_logger, setup_logging
from pluginkit.manager import PluginManager
from pluginkit.models import BatchReport, ItemResult, PluginStatus, UninstallAllReport

console = Console()
logger = get_logger("cli")

_STATUS_STYLES = {
    PluginStatus.INSTALLED: "green",
    PluginStatus.LOCAL_ONLY: "yellow",
    PluginStatus.NOT_INSTALLED: "dim",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Plugin manager: install, update and remove plugins from a remote catalog",
        prog="pluginkit",
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (debug logging)",
    )
    parser.add_argument("-c", "--config", type=Path, help="Config file path")
    parser.add_argument("--plugin-dir", type=Path, help="Override the plugin directory")
    parser.add_argument("--catalog-url", help="Override the catalog URL")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    search_parser = subparsers.add_parser(
        "search", aliases=["s"], help="Show the remote catalog with local status"
    )
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")

    list_parser = subparsers.add_parser(
        "list", aliases=["ls", "lv"], help="Show installed plugin records"
    )
    list_parser.add_argument(
        "-v", "--verbose", action="store_true", dest="details", help="Show timestamps and URLs"
    )
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    install_parser = subparsers.add_parser(
        "install", aliases=["i"], help="Install plugins from the catalog or a file"
    )
    install_parser.add_argument("names", nargs="*", help="Plugin names, or 'all'")
    install_parser.add_argument("-f", "--file", type=Path, help="Install this plugin file")
    install_parser.add_argument("--name", help="Plugin name for --file (default: file stem)")

    uninstall_parser = subparsers.add_parser(
        "uninstall", aliases=["rm", "un", "remove"], help="Uninstall plugins"
    )
    uninstall_parser.add_argument("names", nargs="+", help="Plugin names, or 'all'")

    subparsers.add_parser(
        "update", aliases=["ua", "update-all"], help="Update every plugin installed from the catalog"
    )

    locate_parser = subparsers.add_parser("locate", help="Print the path of a plugin file")
    locate_parser.add_argument("name", help="Plugin name")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command", help="Config commands")
    config_subparsers.add_parser("show", help="Show current configuration")
    config_init_parser = config_subparsers.add_parser("init", help="Initialize a new config file")
    config_init_parser.add_argument(
        "-o",
        "--output",
        default="pluginkit.yaml",
        help="Output file path",
    )
    config_subparsers.add_parser("path", help="Show config file paths")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        setup_logging("DEBUG")
    else:
        setup_logging("WARNING")

    command = args.command
    if command == "config":
        cmd_config(args)
        return
    if command is None:
        parser.print_help()
        return

    try:
        if command in ("search", "s"):
            exit_code = asyncio.run(cmd_search(args))
        elif command in ("list", "ls", "lv"):
            exit_code = asyncio.run(cmd_list(args))
        elif command in ("install", "i"):
            exit_code = asyncio.run(cmd_install(args))
        elif command in ("uninstall", "rm", "un", "remove"):
            exit_code = asyncio.run(cmd_uninstall(args))
        elif command in ("update", "ua", "update-all"):
            exit_code = asyncio.run(cmd_update(args))
        elif command == "locate":
            exit_code = asyncio.run(cmd_locate(args))
        else:
            parser.print_help()
            exit_code = 0
    except PluginKitError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        exit_code = 1

    if exit_code:
        sys.exit(exit_code)


def _load_config(args: argparse.Namespace) -> PluginKitConfig:
    config, _ = load_config(getattr(args, "config", None))
    if getattr(args, "plugin_dir", None):
        config.plugin_dir = args.plugin_dir
    if getattr(args, "catalog_url", None):
        config.catalog_url = args.catalog_url
    return config


def _log_reload() -> None:
    logger.info("Plugin files changed; reload the host application to apply them")


def _create_manager(args: argparse.Namespace) -> PluginManager:
    """Create a plugin manager from CLI args."""
    config = _load_config(args)
    manager = PluginManager(config, reload=_log_reload)
    if config.verify_imports:
        manager.context.reload_hook = PluginLoader(manager.context.store)
    return manager


async def _print_progress(text: str) -> bool:
    console.print(text, markup=False, highlight=False, soft_wrap=True)
    return True


async def cmd_search(args: argparse.Namespace) -> int:
    """Show the remote catalog with local status."""
    async with _create_manager(args) as manager:
        report = await manager.search()

    if report.error:
        console.print(f"[red]Cannot fetch the remote plugin catalog:[/red] {report.error}")
        return 1

    if args.json:
        data = [
            {"name": e.name, "status": e.status.value, "description": e.description}
            for e in report.entries
        ]
        console.print_json(json.dumps(data, indent=2))
        return 0

    table = Table(title="Remote Plugins")
    table.add_column("", width=2)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Status")

    for entry in report.entries:
        style = _STATUS_STYLES[entry.status]
        table.add_row(
            entry.status.icon,
            entry.name,
            (entry.description or "No description")[:80],
            f"[{style}]{entry.status.label}[/{style}]",
        )

    console.print(table)
    console.print(
        f"\n[dim]Total: {report.total} | installed: {report.count(PluginStatus.INSTALLED)}"
        f" | local copy: {report.count(PluginStatus.LOCAL_ONLY)}"
        f" | not installed: {report.count(PluginStatus.NOT_INSTALLED)}[/dim]"
    )
    return 0


async def cmd_list(args: argparse.Namespace) -> int:
    """Show installed plugin records."""
    verbose = args.details or args.command == "lv"
    async with _create_manager(args) as manager:
        report = await manager.list_records(verbose=verbose)

    if args.json:
        data = {
            "records": [{"name": r.name, **r.to_dict()} for r in report.records],
            "local": [{"name": e.name, "modified_at": e.modified_at} for e in report.local],
        }
        console.print_json(json.dumps(data, indent=2))
        return 0

    table = Table(title="Installed from Catalog")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    if verbose:
        table.add_column("Updated", style="dim")
        table.add_column("URL", style="dim")
    for record in report.records:
        row = [record.name, record.description or ""]
        if verbose:
            row += [
                datetime.fromtimestamp(record.updated_at / 1000).strftime("%Y-%m-%d %H:%M"),
                record.url,
            ]
        table.add_row(*row)
    console.print(table)

    if report.local:
        console.print("\n[bold]Local plugins[/bold] [dim](no catalog record)[/dim]")
        for entry in report.local:
            console.print(f"  {entry.name}")
    if not verbose:
        console.print("\n[dim]Use `pluginkit list -v` for details[/dim]")
    console.print(f"\n[dim]Total: {report.total} plugins[/dim]")
    return 0


async def cmd_install(args: argparse.Namespace) -> int:
    """Install plugins from the catalog or from a local file."""
    if args.file is None and not args.names:
        console.print("[yellow]Give plugin names, 'all', or --file PATH[/yellow]")
        return 1

    async with _create_manager(args) as manager:
        if args.file is not None:
            data = args.file.read_bytes() if args.file.is_file() else None
            name = args.name or args.file.name
            result = await manager.install_from_attachment(name, data, progress=_print_progress)
        else:
            result = await manager.install(args.names, progress=_print_progress)
    return _exit_code(result)


async def cmd_uninstall(args: argparse.Namespace) -> int:
    """Uninstall plugins."""
    async with _create_manager(args) as manager:
        result = await manager.uninstall(args.names, progress=_print_progress)
    return _exit_code(result)


async def cmd_update(args: argparse.Namespace) -> int:
    """Update every plugin installed from the catalog."""
    async with _create_manager(args) as manager:
        report = await manager.update_all(progress=_print_progress)
    return 0 if report.ok else 1


async def cmd_locate(args: argparse.Namespace) -> int:
    async with _create_manager(args) as manager:
        try:
            path = manager.locate(args.name)
        except NotFoundError:
            console.print(f"[red]Plugin not found: {args.name}[/red]")
            return 1
    console.print(str(path), markup=False, highlight=False, soft_wrap=True)
    return 0


def _exit_code(result: ItemResult | BatchReport | UninstallAllReport) -> int:
    return 0 if result.ok else 1


def cmd_config(args: argparse.Namespace) -> None:
    """Configuration management commands."""
    if args.config_command == "show":
        _config_show(args)
    elif args.config_command == "init":
        _config_init(args.output)
    elif args.config_command == "path":
        _config_path()
    else:
        console.print("[yellow]Usage: pluginkit config <show|init|path>[/yellow]")


def _config_show(args: argparse.Namespace) -> None:
    """Show current configuration."""
    try:
        config, loaded_from = load_config(getattr(args, "config", None))
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[yellow]Failed to load config: {e}[/yellow]")
        config, loaded_from = PluginKitConfig().with_env_overrides(), None

    if loaded_from is None:
        console.print("[dim]No config file found. Using defaults.[/dim]")
    else:
        console.print(f"[dim]Loaded from: {loaded_from}[/dim]\n")

    console.print("[bold]Current Configuration:[/bold]\n")
    console.print(
        yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False),
        markup=False,
    )


def _config_init(output: str) -> None:
    """Initialize a new config file."""
    output_path = Path(output)

    if output_path.exists():
        console.print(f"[red]File already exists: {output_path}[/red]")
        sys.exit(1)

    defaults = PluginKitConfig().to_dict()
    default_config = {
        key: defaults[key]
        for key in ("plugin_dir", "database_path", "catalog_url", "timeout", "max_retries")
    }
    default_config["verify_imports"] = False

    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]Created config file: {output_path}[/green]")


def _config_path() -> None:
    """Show config file search paths."""
    console.print("[bold]Config file search paths:[/bold]\n")
    for path in CONFIG_SEARCH_PATHS:
        exists = "[green]✓[/green]" if path.exists() else "[dim]·[/dim]"
        console.print(f"  {exists} {path}")


if __name__ == "__main__":
    main()
