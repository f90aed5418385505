"""Inbound audio request model."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AudioRequest:
    """One ``GET /custom/audio/{id}`` request as seen by the cache.

    Attributes:
        track_id: Provider track identifier.
        br: Explicit bitrate (wins over ``level`` for the cache key).
        level: Quality tier.
        cookies: Caller cookies forwarded to the resolver.
        client_ip: Client IP presented to the resolver.
        range_header: Raw Range header for partial responses.
    """

    track_id: str
    br: str | None = None
    level: str | None = None
    cookies: dict[str, str] = field(default_factory=dict)
    client_ip: str | None = None
    range_header: str | None = None
