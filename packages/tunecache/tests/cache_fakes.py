"""Fakes and helpers shared by the tunecache tests."""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from starlette.responses import Response
from tunecache.models.resolver import ResolverResponse, SongUrlQuery

CDN = "https://cdn.test"


# =============================================================================
# Time Utilities
# =============================================================================


class MockClock:
    """Mock clock for deterministic time-based testing.

    Starts at the real current time so it lines up with file mtimes.

    Usage:
        clock = MockClock()
        clock.advance(60)  # Advance by 60 seconds
    """

    def __init__(self, initial: float | None = None) -> None:
        self._time = initial if initial is not None else time.time()

    def __call__(self) -> float:
        return self._time

    def advance(self, seconds: float) -> None:
        self._time += seconds


# =============================================================================
# Upstream Fakes
# =============================================================================


class FailingStream(httpx.AsyncByteStream):
    """Response body that breaks after the first chunk."""

    def __init__(self, first: bytes) -> None:
        self._first = first

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self._first
        raise httpx.ReadError("connection reset")


@dataclass
class FakeCDN:
    """Scriptable audio CDN served through httpx.MockTransport.

    Files are keyed by URL path. Every request is recorded.
    """

    files: dict[str, bytes] = field(default_factory=dict)
    content_types: dict[str, str] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    status_code: int = 200
    delay: float = 0.0
    error: Exception | None = None
    broken_paths: set[str] = field(default_factory=set)

    def add(self, path: str, body: bytes, content_type: str | None = None) -> str:
        """Publish a file and return its absolute URL."""
        self.files[path] = body
        if content_type:
            self.content_types[path] = content_type
        return f"{CDN}{path}"

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        path = request.url.path
        body = self.files.get(path)
        if body is None:
            return httpx.Response(404)
        if path in self.broken_paths:
            return httpx.Response(200, stream=FailingStream(body[:4]))

        headers = {}
        if content_type := self.content_types.get(path):
            headers["content-type"] = content_type
        return httpx.Response(self.status_code, content=body, headers=headers)


class FakeResolver:
    """SongUrlResolver returning a canned response and recording queries.

    ``delays`` holds per-call latencies, consumed in call order.
    """

    def __init__(self, response: ResolverResponse | None = None) -> None:
        self.response = response or ResolverResponse(status=200, body={"data": []})
        self.queries: list[SongUrlQuery] = []
        self.error: Exception | None = None
        self.delays: list[float] = []

    async def resolve(self, query: SongUrlQuery) -> ResolverResponse:
        self.queries.append(query)
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def calls(self) -> int:
        return len(self.queries)


def song_url_body(
    track_id: Any = 123, url: str | None = None, media_type: str | None = "mp3"
) -> dict[str, Any]:
    """Build a provider ``song/url`` body with a single entry."""
    return {
        "code": 200,
        "data": [{"id": track_id, "url": url, "type": media_type}],
    }


# =============================================================================
# Filesystem Helpers
# =============================================================================


def write_entry(
    root: Path, key: str, body: bytes, *, mtime: float | None = None
) -> Path:
    """Place a blob directly in the cache, optionally backdated."""
    root.mkdir(parents=True, exist_ok=True)
    blob = root / f"{key}.bin"
    blob.write_bytes(body)
    if mtime is not None:
        os.utime(blob, (mtime, mtime))
    return blob


def backdate(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


# =============================================================================
# ASGI Helpers
# =============================================================================


@dataclass
class Rendered:
    """Collected output of an ASGI response."""

    status: int
    headers: dict[str, str]
    body: bytes


async def render(response: Response, method: str = "GET") -> Rendered:
    """Run a Starlette response against an in-memory ASGI connection."""
    messages: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return {"type": "http.disconnect"}

    async def send(message: dict[str, Any]) -> None:
        messages.append(message)

    scope = {"type": "http", "method": method, "headers": []}
    await response(scope, receive, send)

    start = next(m for m in messages if m["type"] == "http.response.start")
    headers = {k.decode("latin-1"): v.decode("latin-1") for k, v in start["headers"]}
    body = b"".join(
        m.get("body", b"") for m in messages if m["type"] == "http.response.body"
    )
    return Rendered(status=start["status"], headers=headers, body=body)
