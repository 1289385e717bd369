"""Exceptions and error classification for the Dialoqbase SDK."""

import logging
from typing import Any

import httpx

from .types import ErrorInfo, Result

logger = logging.getLogger(__name__)


class DialoqbaseError(Exception):
    """Base class for all SDK errors."""


class DialoqbaseFetchError(DialoqbaseError):
    """API error with status code."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def info(self) -> ErrorInfo:
        return ErrorInfo(status=self.status, message=self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "message": self.message}


class MissingStreamBodyError(DialoqbaseFetchError):
    """Streaming was requested but the response carries no readable body."""


class TransportError(DialoqbaseError):
    """The connection failed before a status was obtained, or mid-stream."""


class MalformedFramePayloadError(DialoqbaseError):
    """A complete ``data:`` line did not hold valid JSON."""

    def __init__(self, event_type: str, data: str) -> None:
        super().__init__(f"Malformed payload for event {event_type!r}: {data!r}")
        self.event_type = event_type
        self.data = data


def classify_error(response: httpx.Response) -> ErrorInfo:
    """Build an ``ErrorInfo`` from a non-success response.

    The body must already be read. The message comes from a ``message`` or
    ``error`` field of a JSON body, falling back to the status phrase.
    """
    message: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")

    if not message:
        message = response.reason_phrase or f"HTTP {response.status_code}"

    logger.debug("HTTP %s: %s", response.status_code, message)
    return ErrorInfo(status=response.status_code, message=str(message))


def error_response(response: httpx.Response) -> Result[Any]:
    """Wrap a non-success response into the ``error`` branch of a ``Result``."""
    return Result.fail(classify_error(response))
