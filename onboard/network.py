from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from . import settings
from .errors import TransportError

log = logging.getLogger(__name__)


class Transport:
    """
    One pooled HTTP client for the whole process. Every request is independent,
    so the client is shared without extra locking.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        if client is None:
            client = httpx.AsyncClient(
                timeout=timeout if timeout is not None else settings.http_timeout(),
                follow_redirects=True,
            )
        self._client = client

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e
        if response.is_error:
            raise TransportError(
                f"Request to {url} returned HTTP {response.status_code}",
                url=url,
                status=response.status_code,
            )
        return response

    async def request_json(self, url: str) -> Any:
        """Fetch `url` and decode the body as JSON."""
        log.debug("Requesting JSON from %s", url)
        response = await self._get(url)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Response from {url} is not valid JSON: {e}", url=url) from e

    async def request_bytes(self, url: str) -> bytes:
        """Fetch `url` as raw bytes."""
        log.debug("Requesting binary from %s", url)
        response = await self._get(url)
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()
