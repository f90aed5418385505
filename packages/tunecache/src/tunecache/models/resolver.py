"""Models exchanged with the song URL resolver.

The resolver speaks the provider's ``song/url`` shape:
``{"code": 200, "data": [{"id": 123, "url": "...", "type": "mp3"}, ...]}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class SongUrlQuery:
    """Query passed to the resolver.

    Attributes:
        id: Track identifier.
        br: Explicit bitrate, if requested.
        level: Quality tier, if requested.
        cookie: Caller's session cookies, forwarded untouched.
        ip: Client IP to present upstream.
    """

    id: str
    br: str | None = None
    level: str | None = None
    cookie: dict[str, str] = field(default_factory=dict)
    ip: str | None = None


@dataclass(frozen=True)
class ResolverResponse:
    """Raw resolver answer: HTTP-like status, JSON body and Set-Cookie values."""

    status: int
    body: Any = None
    cookies: list[str] = field(default_factory=list)


class SongUrl(BaseModel):
    """One entry of the resolver's ``data`` list."""

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    id: str | None = None
    url: str | None = None
    type: str | None = None
