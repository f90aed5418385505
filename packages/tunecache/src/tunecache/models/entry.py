"""Cache key and on-disk entry layout."""

from __future__ import annotations

import hashlib
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

from tunecache.models.enums import InvalidReason

DEFAULT_QUALITY = "default"

BLOB_SUFFIX = ".bin"
METADATA_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"

_SAFE_PART = re.compile(r"[A-Za-z0-9][A-Za-z0-9.-]*")


@dataclass(frozen=True)
class CacheKey:
    """Deterministic identifier of one cache entry.

    Readable keys look like ``123_320000`` or ``123_default``. Parts that are
    not plain ``[A-Za-z0-9.-]`` are hashed instead, which keeps keys safe as
    flat filenames. Readable keys contain exactly one underscore and hashed
    keys none, so two distinct (id, quality) pairs never share a key.
    """

    track_id: str
    quality: str
    value: str

    @classmethod
    def derive(
        cls,
        track_id: str,
        br: str | None = None,
        level: str | None = None,
    ) -> CacheKey:
        """Derive the key for a track and quality selector.

        Args:
            track_id: Provider track identifier.
            br: Explicit bitrate. Takes precedence over ``level``.
            level: Quality tier name (e.g. ``exhigh``, ``lossless``).

        Returns:
            The cache key. Without ``br`` and ``level`` the quality is
            the literal ``default``.
        """
        quality = br or level or DEFAULT_QUALITY
        if _SAFE_PART.fullmatch(track_id) and _SAFE_PART.fullmatch(quality):
            value = f"{track_id}_{quality}"
        else:
            digest = hashlib.sha256(f"{track_id}\0{quality}".encode()).hexdigest()
            value = f"x{digest[:40]}"
        return cls(track_id=track_id, quality=quality, value=value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CacheEntry:
    """File paths making up one cache entry."""

    root: Path
    key: str

    @property
    def base_path(self) -> Path:
        return self.root / self.key

    @property
    def blob_path(self) -> Path:
        return self.root / f"{self.key}{BLOB_SUFFIX}"

    @property
    def metadata_path(self) -> Path:
        return self.root / f"{self.key}{METADATA_SUFFIX}"

    def new_temp_path(self) -> Path:
        """Return a fresh, uniquely named temp path next to the blob."""
        return self.root / f"{self.key}.{uuid.uuid4().hex}{TEMP_SUFFIX}"


@dataclass(frozen=True)
class CacheValidity:
    """Result of a validity check on a cache entry."""

    valid: bool
    reason: InvalidReason | None = None

    @classmethod
    def ok(cls) -> CacheValidity:
        return cls(valid=True)

    @classmethod
    def missing(cls) -> CacheValidity:
        return cls(valid=False, reason=InvalidReason.MISSING)

    @classmethod
    def expired(cls) -> CacheValidity:
        return cls(valid=False, reason=InvalidReason.EXPIRED)
