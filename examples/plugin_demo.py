#!/usr/bin/env python3
"""
PluginKit Demo

Installs a couple of plugins from a catalog, updates them and prints the
local status.

Usage:
    python examples/plugin_demo.py [CATALOG_URL]

Reads PLUGINKIT_* settings from a .env file in the current directory.
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from pluginkit import PluginKitConfig, PluginLoader, PluginManager, setup_logging


async def print_progress(text: str) -> bool:
    print(text)
    print("-" * 40)
    return True


async def demo(catalog_url: str | None) -> None:
    config = PluginKitConfig(plugin_dir=Path("demo_plugins")).with_env_overrides()
    if catalog_url:
        config.catalog_url = catalog_url

    async with PluginManager(config, progress=print_progress) as manager:
        manager.context.reload_hook = PluginLoader(manager.context.store)

        search = await manager.search()
        if search.error:
            return

        names = [entry.name for entry in search.entries[:2]]
        await manager.install(names)
        await manager.update_all()
        await manager.list_records(verbose=True)


if __name__ == "__main__":
    load_dotenv()
    setup_logging("INFO")
    asyncio.run(demo(sys.argv[1] if len(sys.argv) > 1 else None))
