"""Async HTTP client for the Dialoqbase API."""

import httpx

from .admin import AdminClient
from .bot import BotClient
from .config import ClientConfig


class DialoqbaseClient:
    """Async client for a Dialoqbase server.

    Example:
        >>> async with DialoqbaseClient("http://localhost:3000", "db_...") as client:
        ...     bots = (await client.bot.list_all()).unwrap()
        ...     print([bot.name for bot in bots])
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        *,
        timeout: float | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: The base URL of the server (e.g., "http://localhost:3000").
                Defaults to ``DIALOQBASE_URL``.
            api_key: The API key sent as ``Authorization``. Defaults to
                ``DIALOQBASE_API_KEY``.
            timeout: Request timeout in seconds. Defaults to
                ``DIALOQBASE_TIMEOUT`` or 30.
            http: An existing ``httpx.AsyncClient`` to use instead of
                creating one. Its own ``Authorization`` header is kept.
        """
        self.config = ClientConfig.from_env(url=url, api_key=api_key, timeout=timeout)
        if http is None:
            http = httpx.AsyncClient(timeout=self.config.timeout)
        if "Authorization" not in http.headers:
            http.headers["Authorization"] = self.config.api_key
        self._http = http

    async def __aenter__(self) -> "DialoqbaseClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._http.aclose()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def admin(self) -> AdminClient:
        """Admin operations."""
        return AdminClient(self.config.admin_url, self._http)

    @property
    def bot(self) -> BotClient:
        """Bot, source and chat operations."""
        return BotClient(self.config.bot_url, self._http)


def create_client(
    url: str,
    api_key: str,
    *,
    timeout: float | None = None,
    http: httpx.AsyncClient | None = None,
) -> DialoqbaseClient:
    """Create a Dialoqbase client.

    Args:
        url: The URL of the Dialoqbase server.
        api_key: The API key for authentication.
        timeout: Request timeout in seconds.
        http: An existing ``httpx.AsyncClient`` to use.
    """
    return DialoqbaseClient(url, api_key, timeout=timeout, http=http)
