"""Cache administration schemas."""

from pydantic import BaseModel, Field
from tunecache import CacheStats, EvictionResult


class CacheStatsResponse(BaseModel):
    """Cache directory statistics."""

    entries: int = Field(..., description="Number of cached blobs")
    total_bytes: int = Field(..., description="Total size of cached blobs")
    temp_files: int = Field(..., description="Temp files from running or crashed downloads")
    max_bytes: int = Field(..., description="Size budget in bytes (0 = unlimited)")
    ttl_seconds: float = Field(..., description="Entry lifetime (0 = never expires)")
    usage_ratio: float | None = Field(
        default=None, description="Share of the size budget in use"
    )
    inflight: int = Field(..., description="Downloads currently in flight")

    @classmethod
    def from_stats(cls, stats: CacheStats, inflight: int) -> "CacheStatsResponse":
        return cls(
            entries=stats.entries,
            total_bytes=stats.total_bytes,
            temp_files=stats.temp_files,
            max_bytes=stats.max_bytes,
            ttl_seconds=stats.ttl_seconds,
            usage_ratio=stats.usage_ratio,
            inflight=inflight,
        )


class EvictionResponse(BaseModel):
    """Result of a manual size-budget pass."""

    evicted: int
    removed: list[str]
    freed_bytes: int
    remaining_bytes: int

    @classmethod
    def from_result(cls, result: EvictionResult) -> "EvictionResponse":
        return cls(
            evicted=result.evicted,
            removed=result.removed,
            freed_bytes=result.freed_bytes,
            remaining_bytes=result.remaining_bytes,
        )


class CleanupResponse(BaseModel):
    """Result of a stale file sweep."""

    removed: int
