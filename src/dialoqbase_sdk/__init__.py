"""Dialoqbase Python SDK.

Provides a typed async HTTP client for a Dialoqbase server.

Example:
    >>> import asyncio
    >>> from dialoqbase_sdk import create_client
    >>>
    >>> async def main():
    ...     async with create_client("http://localhost:3000", "db_...") as client:
    ...         # Buffered chat
    ...         result = await client.bot.chat(bot_id, "Hello!")
    ...         if result.error:
    ...             print(result.error.status, result.error.message)
    ...         else:
    ...             print(result.data.bot.text)
    ...
    ...         # Streaming chat
    ...         stream = await client.bot.chat(bot_id, "Tell me a joke", stream=True)
    ...         async with stream:
    ...             async for message in stream:
    ...                 print(message)
    >>>
    >>> asyncio.run(main())
"""

from .admin import AdminClient
from .bot import BotClient
from .client import DialoqbaseClient, create_client
from .config import ClientConfig
from .errors import (
    DialoqbaseError,
    DialoqbaseFetchError,
    MalformedFramePayloadError,
    MissingStreamBodyError,
    TransportError,
)
from .sources import BotSourceClient
from .streaming import ChatStream, EventFrame
from .types import (
    Bot,
    ChatHistoryItem,
    ChatResponse,
    CoreSettings,
    CreateBot,
    ErrorInfo,
    Model,
    Result,
    Source,
    SourceData,
    UpdateBot,
    User,
)

__version__ = "0.1.0"
__all__ = [
    "create_client",
    "DialoqbaseClient",
    "AdminClient",
    "BotClient",
    "BotSourceClient",
    "ClientConfig",
    "ChatStream",
    "EventFrame",
    "DialoqbaseError",
    "DialoqbaseFetchError",
    "MalformedFramePayloadError",
    "MissingStreamBodyError",
    "TransportError",
    "Bot",
    "ChatHistoryItem",
    "ChatResponse",
    "CoreSettings",
    "CreateBot",
    "ErrorInfo",
    "Model",
    "Result",
    "Source",
    "SourceData",
    "UpdateBot",
    "User",
]
