"""Cache administration endpoints."""

from fastapi import APIRouter

from tunecache_api.api.deps import CacheDirectoryDep, FetcherDep
from tunecache_api.schemas.cache import (
    CacheStatsResponse,
    CleanupResponse,
    EvictionResponse,
)

router = APIRouter(prefix="/custom/audio-cache", tags=["cache"])


@router.get("/stats")
async def get_cache_stats(
    directory: CacheDirectoryDep, fetcher: FetcherDep
) -> CacheStatsResponse:
    """Get cache directory statistics."""
    stats = await directory.stats()
    return CacheStatsResponse.from_stats(stats, inflight=len(fetcher.registry))


@router.post("/evict")
async def evict_cache(directory: CacheDirectoryDep) -> EvictionResponse:
    """Enforce the size budget immediately."""
    result = await directory.enforce_size_budget()
    return EvictionResponse.from_result(result)


@router.post("/cleanup")
async def cleanup_cache(directory: CacheDirectoryDep) -> CleanupResponse:
    """Sweep leftover temp files and orphaned metadata."""
    removed = await directory.cleanup_stale_files()
    return CleanupResponse(removed=removed)
