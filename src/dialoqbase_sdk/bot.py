"""Bot endpoints, including chat."""

import logging
from typing import Any, Literal, overload

import httpx

from .errors import (
    DialoqbaseFetchError,
    MissingStreamBodyError,
    classify_error,
    error_response,
)
from .resource import BaseResource
from .sources import BotSourceClient
from .streaming import ChatStream
from .types import (
    Bot,
    ChatHistoryItem,
    ChatRequest,
    ChatResponse,
    CreateBot,
    Result,
    UpdateBot,
)

logger = logging.getLogger(__name__)


def _has_stream_body(response: httpx.Response) -> bool:
    if response.status_code == 204 or response.headers.get("content-length") == "0":
        return False
    if response.is_closed or response.is_stream_consumed:
        return False
    return isinstance(response.stream, httpx.AsyncByteStream)


class BotClient(BaseResource):
    """Operations on ``/api/v1/bot``."""

    # ─────────────────────────────────────────────────────────────────────────
    # Bots
    # ─────────────────────────────────────────────────────────────────────────

    async def create(self, bot: CreateBot) -> Result[str]:
        """Create a bot.

        Args:
            bot: The bot to create.

        Returns:
            The ID of the created bot.
        """
        res = await self._request(
            "POST", "/api", json=bot.model_dump(exclude_none=True)
        )
        if not res.is_success:
            return error_response(res)
        return Result.ok(res.json()["id"])

    async def list_all(self) -> Result[list[Bot]]:
        """List all bots visible to the API key."""
        res = await self._request("GET")
        if not res.is_success:
            return error_response(res)
        return Result.ok([Bot.model_validate(b) for b in res.json()])

    async def get(self, bot_id: str) -> Result[Bot]:
        """Get a bot by ID."""
        res = await self._request("GET", f"/{bot_id}")
        if not res.is_success:
            return error_response(res)
        return Result.ok(Bot.model_validate(res.json()["data"]))

    async def update(self, bot_id: str, bot: UpdateBot) -> Result[bool]:
        """Update a bot. Fields left unset on ``bot`` are not sent."""
        res = await self._request(
            "PUT",
            f"/{bot_id}/update",
            json=bot.model_dump(by_alias=True, exclude_none=True),
        )
        if not res.is_success:
            return error_response(res)
        return Result.ok(True)

    async def delete(self, bot_id: str) -> Result[bool]:
        """Delete a bot."""
        res = await self._request("DELETE", f"/{bot_id}")
        if not res.is_success:
            return error_response(res)
        return Result.ok(True)

    async def is_ready(self, bot_id: str) -> Result[bool]:
        """Check whether a bot has finished ingesting and can chat."""
        res = await self._request("GET", f"/{bot_id}/is-ready")
        if not res.is_success:
            return error_response(res)
        return Result.ok(bool(res.json()["is_ready"]))

    @property
    def source(self) -> BotSourceClient:
        """Source operations for bots."""
        return BotSourceClient(self.url, self._http)

    # ─────────────────────────────────────────────────────────────────────────
    # Chat
    # ─────────────────────────────────────────────────────────────────────────

    @overload
    async def chat(
        self,
        bot_id: str,
        message: str,
        *,
        stream: Literal[True],
        history: list[ChatHistoryItem] | None = None,
        history_id: str | None = None,
    ) -> ChatStream: ...

    @overload
    async def chat(
        self,
        bot_id: str,
        message: str,
        *,
        stream: Literal[False] = False,
        history: list[ChatHistoryItem] | None = None,
        history_id: str | None = None,
    ) -> Result[ChatResponse]: ...

    async def chat(
        self,
        bot_id: str,
        message: str,
        *,
        stream: bool = False,
        history: list[ChatHistoryItem] | None = None,
        history_id: str | None = None,
    ) -> ChatStream | Result[ChatResponse]:
        """Send a chat message to a bot.

        Args:
            bot_id: The bot ID.
            message: The user's message.
            stream: Return a ``ChatStream`` of incremental messages instead
                of a buffered ``Result``.
            history: Previous turns of the conversation.
            history_id: ID of a server-side conversation to continue.

        Returns:
            ``Result[ChatResponse]`` when ``stream`` is false. Otherwise a
            ``ChatStream``, returned before any message has been read.

        Raises:
            DialoqbaseFetchError: Streaming only, the server answered with
                an error status.
            MissingStreamBodyError: Streaming only, the response has no body.
            TransportError: The request could not be sent.
        """
        request = ChatRequest(
            message=message, stream=stream, history=history, history_id=history_id
        )
        return await self._process_chat_request(
            f"/{bot_id}/chat", request.model_dump(exclude_none=True)
        )

    async def _process_chat_request(
        self, path: str, body: dict[str, Any]
    ) -> ChatStream | Result[ChatResponse]:
        if not body.get("stream"):
            res = await self._request("POST", path, json=body)
            if not res.is_success:
                return error_response(res)
            return Result.ok(ChatResponse.model_validate(res.json()))

        res = await self._open_stream("POST", path, json=body)
        if not res.is_success:
            try:
                await res.aread()
                error = classify_error(res)
            finally:
                await res.aclose()
            raise DialoqbaseFetchError(error.status, error.message)

        if not _has_stream_body(res):
            await res.aclose()
            raise MissingStreamBodyError(res.status_code, "No response body")

        logger.debug("Streaming chat response from %s%s", self.url, path)
        return ChatStream(res)
