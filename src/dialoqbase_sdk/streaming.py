"""Decoding of streamed chat responses.

A streamed chat body is line-oriented text made of two-line frames::

    event: <event type>
    data: <single-line JSON>

Bytes arrive in arbitrary chunks, so both the UTF-8 decoding and the frame
parsing carry state from one chunk to the next. The pipeline is::

    httpx.Response.aiter_bytes()
        -> ChunkDecoder      (bytes -> text, multi-byte safe)
        -> EventFrameParser  (text -> EventFrame, line-break safe)
        -> MessageSequencer  (async iterator, owns the response)
        -> ChatStream        (yields payloads, stops at the "result" frame)

Example:
    >>> stream = await client.bot.chat(bot_id, "Hello!", stream=True)
    >>> async with stream:
    ...     async for message in stream:
    ...         print(message)
"""

import codecs
import json
import logging
import re
from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import MalformedFramePayloadError, TransportError

logger = logging.getLogger(__name__)

RESULT_EVENT = "result"

_FRAME_RE = re.compile(
    r"^event: ?(?P<event>[^\r\n]*)\r?\ndata: ?(?P<data>[^\r\n]*)\r?\n",
    re.MULTILINE,
)


@dataclass(frozen=True)
class EventFrame:
    """One decoded ``event:``/``data:`` pair."""

    event_type: str
    payload: Any


# ─────────────────────────────────────────────────────────────────────────────
# Chunk Decoder
# ─────────────────────────────────────────────────────────────────────────────


class ChunkDecoder:
    """Incremental UTF-8 decoder for raw body chunks.

    A character whose bytes straddle two chunks is held back until the
    second chunk arrives. Invalid bytes become U+FFFD instead of raising.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)("replace")

    def decode(self, chunk: bytes) -> str:
        return self._decoder.decode(chunk)

    def flush(self) -> str:
        """Decode whatever bytes are still pending at end of input."""
        return self._decoder.decode(b"", final=True)


# ─────────────────────────────────────────────────────────────────────────────
# Event Frame Parser
# ─────────────────────────────────────────────────────────────────────────────


class EventFrameParser:
    """Extracts complete frames from cumulative decoded text.

    A frame is complete once its ``data:`` line is terminated by ``\\n``
    (optionally preceded by ``\\r``). Anything after the last complete frame
    is kept as the remainder and prefixed to the next ``feed``. Lines that
    cannot belong to a frame are skipped.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._deferred: MalformedFramePayloadError | None = None

    @property
    def remainder(self) -> str:
        return self._buffer

    def check(self) -> None:
        """Raise a payload error found after frames already returned."""
        if self._deferred is not None:
            error, self._deferred = self._deferred, None
            raise error

    def feed(self, text: str) -> list[EventFrame]:
        """Append ``text`` and return every frame it completes, in order.

        Raises:
            MalformedFramePayloadError: A complete ``data:`` line is not JSON.
                When frames precede the bad one in the same call, they are
                returned first and the error is raised by the next
                ``feed`` or ``check``.
        """
        self.check()
        buffer = self._buffer + text
        frames: list[EventFrame] = []
        end = 0

        for match in _FRAME_RE.finditer(buffer):
            end = match.end()
            event_type, data = match.group("event"), match.group("data")
            try:
                payload = json.loads(data)
            except ValueError:
                error = MalformedFramePayloadError(event_type, data)
                self._buffer = _trim_tail(buffer[end:])
                if not frames:
                    raise error from None
                self._deferred = error
                return frames
            frames.append(EventFrame(event_type, payload))

        self._buffer = _trim_tail(buffer[end:])
        return frames

    def finish(self, text: str = "") -> list[EventFrame]:
        """Parse the last text of the body; end of input ends the last line.

        A final ``data:`` line without a line break still completes its
        frame. If that line is not valid JSON the frame was cut off in
        transit and is dropped. Anything else left over is dropped too.
        """
        frames = self.feed(text)
        if self._deferred is None and self._buffer and not self._buffer.endswith("\n"):
            try:
                frames.extend(self.feed("\n"))
            except MalformedFramePayloadError as exc:
                logger.debug("Discarding truncated final frame: %r", exc.data)
        if self._buffer.strip():
            logger.debug("Discarding incomplete trailing frame: %r", self._buffer)
        self._buffer = ""
        return frames


def _trim_tail(tail: str) -> str:
    """Drop complete lines of ``tail`` that can no longer start a frame.

    Only the trailing partial line can still grow into anything, plus the
    last complete line when it is an ``event:`` line waiting for its data.
    """
    last_break = tail.rfind("\n")
    if last_break == -1:
        return tail
    partial = tail[last_break + 1 :]
    line_start = tail.rfind("\n", 0, last_break) + 1
    last_line = tail[line_start : last_break + 1]
    if last_line.startswith("event:"):
        return last_line + partial
    return partial


# ─────────────────────────────────────────────────────────────────────────────
# Message Sequencer
# ─────────────────────────────────────────────────────────────────────────────


class MessageSequencer:
    """Lazy, single-pass sequence of ``EventFrame`` read from one response.

    The sequencer exclusively owns the response and its decode state. The
    response is released exactly once: when the body is exhausted, when
    reading or parsing fails, or when ``aclose()`` is called (``async with``
    does this on exit). A trailing incomplete frame at end of body is
    discarded.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._decoder = ChunkDecoder()
        self._parser = EventFrameParser()
        self._pending: deque[EventFrame] = deque()
        self._chunks: AsyncIterator[bytes] | None = None
        self._exhausted = False
        self._released = False
        self.frame_count = 0

    @property
    def released(self) -> bool:
        return self._released

    def __aiter__(self) -> "MessageSequencer":
        return self

    async def __aenter__(self) -> "MessageSequencer":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def __anext__(self) -> EventFrame:
        while not self._pending:
            if self._released:
                raise StopAsyncIteration
            try:
                self._parser.check()
                if self._exhausted:
                    break
                await self._read_chunk()
            except BaseException:
                await self.aclose()
                raise

        if not self._pending:
            await self.aclose()
            raise StopAsyncIteration

        self.frame_count += 1
        return self._pending.popleft()

    async def _read_chunk(self) -> None:
        if self._chunks is None:
            self._chunks = self._response.aiter_bytes()

        try:
            chunk = await self._chunks.__anext__()
        except StopAsyncIteration:
            self._exhausted = True
            self._pending.extend(self._parser.finish(self._decoder.flush()))
            return
        except httpx.TransportError as exc:
            raise TransportError(f"Stream read failed: {exc}") from exc

        self._pending.extend(self._parser.feed(self._decoder.decode(chunk)))

    async def aclose(self) -> None:
        """Release the response; later calls are no-ops."""
        if self._released:
            return
        self._released = True
        self._pending.clear()
        try:
            if self._chunks is not None:
                await self._chunks.aclose()  # type: ignore[attr-defined]
        finally:
            await self._response.aclose()
            logger.debug("Released stream reader after %d frames", self.frame_count)


# ─────────────────────────────────────────────────────────────────────────────
# Chat Stream Adapter
# ─────────────────────────────────────────────────────────────────────────────


class ChatStream:
    """Async iterator over the messages of a streamed chat response.

    Every frame payload is yielded in arrival order. The payload of the
    ``result`` frame is yielded last, also kept on ``result``, and the
    response is released before it is handed out; nothing after it is read.
    A body that ends without a ``result`` frame simply ends the iteration.

    Leaving iteration early does not release the connection by itself, so
    consume the stream inside ``async with`` (or call ``aclose()``). Iterating
    a stream that was never entered logs a warning.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._frames = MessageSequencer(response)
        self._done = False
        self._entered = False
        self._warned = False
        self.result: Any = None

    @property
    def released(self) -> bool:
        return self._frames.released

    def __aiter__(self) -> "ChatStream":
        return self

    async def __aenter__(self) -> "ChatStream":
        self._entered = True
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def __anext__(self) -> Any:
        if self._done:
            raise StopAsyncIteration
        if not self._entered and not self._warned:
            self._warned = True
            logger.warning(
                "ChatStream iterated outside 'async with'; call aclose() if you "
                "stop early or the connection stays open"
            )
        try:
            frame = await self._frames.__anext__()
        except BaseException:
            self._done = True
            raise

        if frame.event_type == RESULT_EVENT:
            self._done = True
            self.result = frame.payload
            await self._frames.aclose()
        return frame.payload

    async def aclose(self) -> None:
        self._done = True
        await self._frames.aclose()

    async def collect(self) -> list[Any]:
        """Drain the stream into a list, releasing it afterwards."""
        async with self:
            return [message async for message in self]
