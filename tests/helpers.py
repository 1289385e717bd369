"""Helpers for streaming tests.

Defines a RecordingStream that stands in for a live response body, counting
how many chunks were pulled and how many times it was closed.
"""

import json
from collections.abc import Iterable
from typing import Any

import httpx

BASE_URL = "http://dialoqbase.test"
API_KEY = "db_test_key"


class RecordingStream(httpx.AsyncByteStream):
    """Async body that yields fixed chunks and counts reads and closes."""

    def __init__(self, chunks: Iterable[bytes], fail_after: int | None = None) -> None:
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.reads = 0
        self.close_count = 0

    async def __aiter__(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise httpx.ReadError("connection reset")
            self.reads += 1
            yield chunk

    async def aclose(self) -> None:
        self.close_count += 1


def frame(event_type: str, payload: Any, newline: str = "\n") -> str:
    """Encode one wire frame."""
    return f"event: {event_type}{newline}data: {json.dumps(payload, ensure_ascii=False)}{newline}"


def streamed_response(stream: RecordingStream, status: int = 200) -> httpx.Response:
    return httpx.Response(
        status, headers={"Content-Type": "text/event-stream"}, stream=stream
    )
