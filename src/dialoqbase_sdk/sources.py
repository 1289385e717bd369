"""Bot source endpoints: ingestion, listing, refresh and removal."""

import os
from pathlib import Path
from typing import Union

from .errors import TransportError, error_response
from .resource import BaseResource
from .types import ErrorInfo, Result, Source, SourceData

FileBody = Union[
    str,
    os.PathLike,
    bytes,
    tuple[str, bytes],
    tuple[str, bytes, str],
]


def _file_part(file: FileBody) -> tuple:
    if isinstance(file, bytes):
        return ("file", file)
    if isinstance(file, tuple):
        return file
    path = Path(file)
    return (path.name, path.read_bytes())


class BotSourceClient(BaseResource):
    """Operations on the sources of a bot, below ``/api/v1/bot``."""

    async def add(self, bot_id: str, sources: list[Source]) -> Result[list[str]]:
        """Add text, website, sitemap, crawl, youtube, rest or github sources.

        Args:
            bot_id: The bot ID.
            sources: The sources to queue for ingestion.

        Returns:
            The IDs of the created sources.
        """
        res = await self._request(
            "POST",
            f"/{bot_id}/source/bulk",
            json=[s.model_dump(by_alias=True, exclude_none=True) for s in sources],
        )
        if not res.is_success:
            return error_response(res)
        return Result.ok(res.json()["source_ids"])

    async def add_file(self, bot_id: str, file: FileBody) -> Result[list[str]]:
        """Upload a file as a source.

        Args:
            bot_id: The bot ID.
            file: A path, raw bytes, or a ``(filename, content[, content_type])``
                tuple.

        Returns:
            The IDs of the created sources. A failed connection is reported
            as a 500 error instead of being raised.
        """
        try:
            res = await self._request(
                "POST",
                f"/{bot_id}/source/upload/bulk",
                files={"file": _file_part(file)},
            )
        except TransportError as exc:
            return Result.fail(ErrorInfo(status=500, message=str(exc)))
        if not res.is_success:
            return error_response(res)
        return Result.ok(res.json()["source_ids"])

    async def list_all(self, bot_id: str) -> Result[list[SourceData]]:
        """List the sources of a bot."""
        res = await self._request("GET", f"/{bot_id}/source")
        if not res.is_success:
            return error_response(res)
        return Result.ok([SourceData.model_validate(s) for s in res.json()["data"]])

    async def delete(self, bot_id: str, source_id: str) -> Result[bool]:
        """Remove a source from a bot."""
        res = await self._request("DELETE", f"/{bot_id}/source/{source_id}")
        if not res.is_success:
            return error_response(res)
        return Result.ok(True)

    async def refresh(self, bot_id: str, source_id: str) -> Result[bool]:
        """Re-ingest a source."""
        res = await self._request("POST", f"/{bot_id}/source/{source_id}/refresh")
        if not res.is_success:
            return error_response(res)
        return Result.ok(True)
