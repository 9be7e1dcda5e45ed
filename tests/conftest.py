"""Shared pytest fixtures for pluginkit tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from pluginkit import PluginKitConfig, PluginManager, RegistryClient

CATALOG_URL = "https://catalog.test/plugins.json"
SOURCE_BASE = "https://src.test"


class FakeCatalogServer:
    """
    In-process stand-in for the catalog host and plugin sources.

    ``catalog`` is served as JSON at :data:`CATALOG_URL`; ``files`` maps
    source URLs to bytes. ``status`` overrides the response code per URL,
    and a list value is consumed one response at a time.
    """

    def __init__(self) -> None:
        self.catalog: dict = {}
        self.catalog_body: bytes | None = None
        self.files: dict[str, bytes] = {}
        self.status: dict[str, int | list[int]] = {}
        self.redirects: dict[str, str] = {}
        self.unreachable: set[str] = set()
        self.requests: list[httpx.Request] = []

    def add_plugin(self, name: str, content: bytes, desc: str | None = None) -> str:
        url = f"{SOURCE_BASE}/{name}.py"
        entry: dict = {"url": url}
        if desc is not None:
            entry["desc"] = desc
        self.catalog[name] = entry
        self.files[url] = content
        return url

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if url in self.redirects:
            return httpx.Response(302, headers={"Location": self.redirects[url]})

        status = self.status.get(url)
        if isinstance(status, list):
            status = status.pop(0) if status else None
        if status is not None and status != 200:
            return httpx.Response(status, content=b"error")

        if url == CATALOG_URL:
            body = self.catalog_body
            if body is None:
                body = json.dumps(self.catalog).encode()
            return httpx.Response(200, content=body)
        if url in self.files:
            return httpx.Response(200, content=self.files[url])
        return httpx.Response(404, content=b"not found")

    def requests_to(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url) == url)


@pytest.fixture
def server() -> FakeCatalogServer:
    return FakeCatalogServer()


@pytest.fixture
def config(tmp_path: Path) -> PluginKitConfig:
    """Config pointing every managed area at a temp directory."""
    return PluginKitConfig(
        plugin_dir=tmp_path / "plugins",
        database_path=tmp_path / "data" / "plugins.json",
        backup_dir=tmp_path / "backups",
        catalog_url=CATALOG_URL,
        batch_delay=0,
    )


@pytest.fixture
def make_registry(server: FakeCatalogServer):
    """Build a registry client talking to the fake server."""

    def _make(**kwargs) -> RegistryClient:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(server.handle),
            follow_redirects=True,
        )
        return RegistryClient(CATALOG_URL, client=client, **kwargs)

    return _make


@pytest.fixture
def registry(make_registry) -> RegistryClient:
    return make_registry()


@pytest.fixture
def reload_hook() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def manager(config, registry, reload_hook) -> PluginManager:
    return PluginManager(config, reload=reload_hook, registry=registry)


@pytest.fixture
def messages() -> list[str]:
    return []


@pytest.fixture
def sink(messages):
    """Progress sink that records every message it is given."""

    async def _sink(text: str) -> bool:
        messages.append(text)
        return True

    return _sink


@pytest.fixture
def write_plugin(config: PluginKitConfig):
    """Drop a plugin file straight into the plugin directory."""

    def _write(name: str, content: bytes = b"# plugin\n") -> Path:
        config.plugin_dir.mkdir(parents=True, exist_ok=True)
        path = config.plugin_dir / f"{name}.py"
        path.write_bytes(content)
        return path

    return _write
