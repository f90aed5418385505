"""Streaming cached audio blobs to HTTP clients."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import aiofiles
from starlette.background import BackgroundTask
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from tunecache.exceptions import StreamError
from tunecache.models.metadata import DEFAULT_CONTENT_TYPE, CacheMetadata
from tunecache.utils.filename import clean_filename
from tunecache.utils.ranges import RangeNotSatisfiable, parse_range_header

logger = logging.getLogger(__name__)

CACHE_HIT_HEADER = "X-Cache-Hit"
DEFAULT_CHUNK_SIZE = 64 * 1024


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """Build the structured JSON error body used across the gateway."""
    return JSONResponse(
        status_code=status_code,
        content={"code": status_code, "error": error, "msg": message},
    )


class CachedAudioResponse(Response):
    """Response that streams a cache blob with headers from its metadata.

    The blob is opened before any header is sent: if that fails the client
    gets a 500 JSON body. Once headers are out, a read failure raises
    ``StreamError`` out of the ASGI callable so the server aborts the
    connection. The cache entry itself is never modified here.

    Single-range requests are answered with 206; unsatisfiable ranges
    with 416.
    """

    def __init__(
        self,
        path: Path,
        metadata: CacheMetadata | None,
        *,
        cache_hit: bool,
        range_header: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        background: BackgroundTask | None = None,
    ) -> None:
        self.path = path
        self.metadata = metadata
        self.cache_hit = cache_hit
        self.range_header = range_header
        self.chunk_size = chunk_size
        self.background = background
        self.status_code = 200
        self.media_type = DEFAULT_CONTENT_TYPE
        if metadata and metadata.content_type:
            self.media_type = metadata.content_type

        headers = {
            CACHE_HIT_HEADER: "1" if cache_hit else "0",
            "Accept-Ranges": "bytes",
        }
        if metadata and metadata.original_filename:
            filename = clean_filename(metadata.original_filename, ascii_filenames=True)
            if filename:
                headers["Content-Disposition"] = f'inline; filename="{filename}"'
        self.init_headers(headers)

    def _content_length(self, size: int) -> int:
        declared = self.metadata.content_length if self.metadata else None
        if declared is not None and declared != size:
            logger.warning(
                "Metadata length %d differs from blob size %d for %s",
                declared,
                size,
                self.path.name,
            )
        return size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        send_body = scope.get("method", "GET").upper() != "HEAD"

        try:
            file = await aiofiles.open(self.path, "rb")
        except OSError as e:
            logger.error("Cache stream error for %s: %s", self.path.name, e)
            await error_response(500, "cache_read_error", "Cache read error")(
                scope, receive, send
            )
            return

        try:
            await self._send_file(file, scope, receive, send, send_body=send_body)
        finally:
            await file.close()

        if self.background is not None:
            await self.background()

    async def _send_file(
        self,
        file: Any,
        scope: Scope,
        receive: Receive,
        send: Send,
        *,
        send_body: bool,
    ) -> None:
        try:
            size = os.fstat(file.fileno()).st_size
        except OSError as e:
            logger.error("Cache stream error for %s: %s", self.path.name, e)
            await error_response(500, "cache_read_error", "Cache read error")(
                scope, receive, send
            )
            return

        try:
            byte_range = parse_range_header(self.range_header, size)
        except RangeNotSatisfiable:
            self.status_code = 416
            self.headers["Content-Range"] = f"bytes */{size}"
            self.headers["Content-Length"] = "0"
            await self._send_start(send)
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            return

        if byte_range is None:
            start, remaining = 0, size
            self.headers["Content-Length"] = str(self._content_length(size))
        else:
            self.status_code = 206
            start, remaining = byte_range.start, byte_range.length
            self.headers["Content-Range"] = byte_range.content_range
            self.headers["Content-Length"] = str(byte_range.length)

        await self._send_start(send)

        if send_body:
            await self._send_blob(file, send, start, remaining)
        await send({"type": "http.response.body", "body": b"", "more_body": False})

    async def _send_start(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )

    async def _send_blob(
        self, file: Any, send: Send, start: int, remaining: int
    ) -> None:
        try:
            if start:
                await file.seek(start)
            while remaining > 0:
                chunk = await file.read(min(self.chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                await send({"type": "http.response.body", "body": chunk, "more_body": True})
        except OSError as e:
            logger.error("Cache stream error for %s: %s", self.path.name, e)
            raise StreamError(f"Failed while streaming {self.path.name}: {e}") from e

        if remaining > 0:
            logger.error("Cache blob %s ended %d bytes early", self.path.name, remaining)
            raise StreamError(f"Cache blob {self.path.name} is truncated")
