"""Tests for RegistryClient."""

import json

import pytest

from pluginkit.errors import CatalogParseError, NetworkError


class TestFetchCatalog:
    @pytest.mark.asyncio
    async def test_preserves_document_order(self, server, registry):
        server.add_plugin("zeta", b"z", desc="Last letter")
        server.add_plugin("alpha", b"a")

        catalog = await registry.fetch_catalog()

        assert list(catalog) == ["zeta", "alpha"]
        assert catalog["zeta"].description == "Last letter"
        assert catalog["alpha"].description is None
        assert catalog["alpha"].url.endswith("/alpha.py")

    @pytest.mark.asyncio
    async def test_entry_without_url(self, server, registry):
        server.catalog = {"bare": {"desc": "No source"}}

        catalog = await registry.fetch_catalog()

        assert catalog["bare"].url == ""

    @pytest.mark.asyncio
    async def test_sends_no_cache_headers(self, server, registry, config):
        await registry.fetch_catalog()

        request = server.requests[0]
        assert str(request.url) == config.catalog_url
        assert request.headers["cache-control"] == "no-cache"
        assert request.headers["pragma"] == "no-cache"

    @pytest.mark.asyncio
    async def test_never_cached(self, server, registry, config):
        await registry.fetch_catalog()
        await registry.fetch_catalog()

        assert server.requests_to(config.catalog_url) == 2

    @pytest.mark.asyncio
    async def test_invalid_json(self, server, registry):
        server.catalog_body = b"{not json"

        with pytest.raises(CatalogParseError):
            await registry.fetch_catalog()

    @pytest.mark.asyncio
    async def test_non_object_document(self, server, registry):
        server.catalog_body = json.dumps(["a", "b"]).encode()

        with pytest.raises(CatalogParseError, match="JSON object"):
            await registry.fetch_catalog()

    @pytest.mark.asyncio
    async def test_skips_malformed_entries(self, server, registry):
        server.catalog = {"good": {"url": "https://src.test/good.py"}, "bad": "oops"}

        catalog = await registry.fetch_catalog()

        assert list(catalog) == ["good"]

    @pytest.mark.asyncio
    async def test_http_error_status(self, server, registry, config):
        server.status[config.catalog_url] = 500

        with pytest.raises(NetworkError) as exc_info:
            await registry.fetch_catalog()
        assert exc_info.value.status_code == 500
        assert exc_info.value.kind == "network"

    @pytest.mark.asyncio
    async def test_transport_error(self, server, registry, config):
        server.unreachable.add(config.catalog_url)

        with pytest.raises(NetworkError) as exc_info:
            await registry.fetch_catalog()
        assert exc_info.value.status_code is None


class TestDownload:
    @pytest.mark.asyncio
    async def test_returns_raw_bytes(self, server, registry):
        url = server.add_plugin("weather", b"print('sunny')\n")

        assert await registry.download(url) == b"print('sunny')\n"

    @pytest.mark.asyncio
    async def test_not_found(self, registry):
        with pytest.raises(NetworkError) as exc_info:
            await registry.download("https://src.test/missing.py")
        assert exc_info.value.status_code == 404
        assert exc_info.value.url == "https://src.test/missing.py"

    @pytest.mark.asyncio
    async def test_follows_redirects(self, server, registry):
        url = server.add_plugin("weather", b"moved")
        server.redirects["https://old.test/weather.py"] = url

        assert await registry.download("https://old.test/weather.py") == b"moved"


class TestRetries:
    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self, server, registry):
        url = server.add_plugin("weather", b"x")
        server.status[url] = [503, 200]

        with pytest.raises(NetworkError):
            await registry.download(url)
        assert server.requests_to(url) == 1

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, server, make_registry):
        registry = make_registry(max_retries=2, retry_backoff=0)
        url = server.add_plugin("weather", b"x")
        server.status[url] = [503, 429, 200]

        assert await registry.download(url) == b"x"
        assert server.requests_to(url) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, server, make_registry):
        registry = make_registry(max_retries=1, retry_backoff=0)
        url = server.add_plugin("weather", b"x")
        server.status[url] = [502, 502, 200]

        with pytest.raises(NetworkError) as exc_info:
            await registry.download(url)
        assert exc_info.value.status_code == 502
        assert server.requests_to(url) == 2

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(self, server, make_registry):
        registry = make_registry(max_retries=3, retry_backoff=0)

        with pytest.raises(NetworkError):
            await registry.download("https://src.test/missing.py")
        assert server.requests_to("https://src.test/missing.py") == 1


class TestInvalidUrls:
    @pytest.mark.asyncio
    async def test_unparseable_url(self, registry):
        with pytest.raises(NetworkError):
            await registry.download("https://exa mple\x00.com/w.py")

    @pytest.mark.asyncio
    async def test_non_string_url(self, registry):
        with pytest.raises(NetworkError):
            await registry.download(12345)

    @pytest.mark.asyncio
    async def test_non_string_catalog_url_is_missing(self, server, registry):
        server.catalog = {"weather": {"url": 12345}}

        catalog = await registry.fetch_catalog()

        assert catalog["weather"].url == ""
