"""Result models for cache operations."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tunecache.models.metadata import CacheMetadata


class FetchResult(BaseModel):
    """Outcome of a completed single-flight download.

    Attributes:
        path: Final blob path.
        metadata: Metadata record of the entry. For a fresh download this is
            the record built for it (also written to disk, unless that write
            failed); for an entry that was already cached it is whatever the
            store holds, possibly nothing.
        size: Blob size in bytes.
        cached: True when the entry was found complete on disk and nothing
            was downloaded.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    metadata: CacheMetadata | None
    size: int
    cached: bool = False


class EvictionResult(BaseModel):
    """Outcome of a size-budget enforcement pass.

    Attributes:
        removed: Keys of evicted entries, oldest first.
        freed_bytes: Blob bytes released by the removals.
        remaining_bytes: Blob bytes left after the pass.
    """

    model_config = ConfigDict(frozen=True)

    removed: list[str] = Field(default_factory=list)
    freed_bytes: int = 0
    remaining_bytes: int = 0

    @property
    def evicted(self) -> int:
        return len(self.removed)


class CacheStats(BaseModel):
    """Snapshot of the cache directory contents."""

    model_config = ConfigDict(frozen=True)

    entries: int = 0
    total_bytes: int = 0
    temp_files: int = 0
    max_bytes: int = 0
    ttl_seconds: float = 0

    @property
    def usage_ratio(self) -> float | None:
        """Fraction of the byte budget in use, or None without a budget."""
        if self.max_bytes <= 0:
            return None
        return self.total_bytes / self.max_bytes
