"""Shared plumbing for the resource clients."""

import logging
from typing import Any

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)


class BaseResource:
    """A group of endpoints below one base URL, sharing one HTTP client."""

    def __init__(self, url: str, http: httpx.AsyncClient) -> None:
        self.url = url
        self._http = http

    async def _request(
        self, method: str, path: str = "", **kwargs: Any
    ) -> httpx.Response:
        """Send a request and read the whole body."""
        url = f"{self.url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    async def _open_stream(
        self, method: str, path: str = "", **kwargs: Any
    ) -> httpx.Response:
        """Send a request and return as soon as the headers are in.

        The caller owns the returned response and must close it.
        """
        url = f"{self.url}{path}"
        logger.debug("%s %s (streaming)", method, url)
        request = self._http.build_request(method, url, **kwargs)
        try:
            return await self._http.send(request, stream=True)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
