"""Async HTTP client for the remote plugin catalog."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from pluginkit.errors import CatalogParseError, NetworkError
from pluginkit.logging import get_logger
from pluginkit.models import CatalogEntry

logger = get_logger("registry")

# The catalog is a static document; ask intermediaries not to serve stale copies.
_NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class RegistryClient:
    """Fetches the catalog document and plugin sources over HTTP.

    The catalog is re-read on every call and never cached. Any transport
    failure or non-success status raises :class:`NetworkError`; a body that
    is not a flat JSON object raises :class:`CatalogParseError`.

    With ``max_retries=0`` (the default) every request is a single attempt.
    Higher values retry transport errors and 5xx/429 responses with
    exponential backoff.
    """

    def __init__(
        self,
        catalog_url: str,
        timeout: float = 30.0,
        max_retries: int = 0,
        retry_backoff: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.catalog_url = catalog_url
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def fetch_catalog(self) -> dict[str, CatalogEntry]:
        """Fetch the catalog, preserving the document's key order."""
        response = await self._get(self.catalog_url, headers=_NO_CACHE_HEADERS)
        try:
            data = json.loads(response.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CatalogParseError(
                f"Catalog is not valid JSON: {exc}", url=self.catalog_url
            ) from exc

        if not isinstance(data, dict):
            raise CatalogParseError(
                f"Catalog must be a JSON object, got {type(data).__name__}",
                url=self.catalog_url,
            )

        catalog: dict[str, CatalogEntry] = {}
        for name, value in data.items():
            if not isinstance(value, dict):
                logger.warning("Ignoring malformed catalog entry %r", name)
                continue
            catalog[name] = CatalogEntry.from_dict(name, value)

        logger.debug("Fetched catalog with %d entries", len(catalog))
        return catalog

    # ------------------------------------------------------------------
    # Plugin sources
    # ------------------------------------------------------------------

    async def download(self, url: str) -> bytes:
        """Download the raw bytes of a plugin source file."""
        response = await self._get(url)
        return response.content

    async def _get(self, url: str, headers: dict[str, str] | None = None) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return await self._get_once(url, headers)
            except NetworkError as exc:
                if attempt >= self.max_retries or not _is_retryable(exc):
                    raise
                delay = self.retry_backoff * (2**attempt)
                attempt += 1
                logger.info(
                    "Retrying %s in %.2fs (attempt %d/%d): %s",
                    url,
                    delay,
                    attempt,
                    self.max_retries,
                    exc,
                )
                await asyncio.sleep(delay)

    async def _get_once(self, url: str, headers: dict[str, str] | None) -> httpx.Response:
        try:
            response = await self._client.get(url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, TypeError) as exc:
            raise NetworkError(f"Request to {url} failed: {exc}", url=url) from exc

        if response.status_code != 200:
            raise NetworkError(
                f"GET {url} returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response


def _is_retryable(exc: NetworkError) -> bool:
    if exc.status_code is None:
        return True
    return exc.status_code == 429 or exc.status_code >= 500
