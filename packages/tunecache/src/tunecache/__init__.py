"""tunecache - Disk cache for proxied music-provider audio.

This library sits in front of a song URL resolver and keeps downloaded
audio on local disk, so repeated requests for the same track and quality
are served from the cache instead of the provider's CDN.

Concurrent requests for an uncached track share one download. Entries
expire by age and the directory can be held under a byte budget.

Examples:
    Serve a request from an ASGI handler:
    ```python
    from pathlib import Path

    import httpx
    from tunecache import AudioRequest, CacheConfig, create_audio_cache

    config = CacheConfig.from_megabytes(Path("./audio-cache"), max_size_mb=512)
    async with httpx.AsyncClient() as client:
        service = create_audio_cache(config, client, resolver)
        response = await service.serve(AudioRequest(track_id="123", br="320000"))
    ```
"""

import httpx

from tunecache.config import CacheConfig
from tunecache.exceptions import (
    AudioProxyError,
    CacheIOError,
    FetchError,
    InvalidRequestError,
    NotPlayableError,
    StreamError,
    TrackNotFoundError,
    TuneCacheError,
    UpstreamResolutionError,
)
from tunecache.models import (
    AudioRequest,
    CacheKey,
    CacheMetadata,
    CacheStats,
    EvictionResult,
    FetchResult,
    InvalidReason,
    ResolverResponse,
    SongUrl,
    SongUrlQuery,
)
from tunecache.services import (
    AudioCacheService,
    CacheDirectory,
    CachedAudioResponse,
    MetadataStore,
    SingleFlightFetcher,
    SongUrlResolver,
)
from tunecache.services.audio import DEFAULT_REFERER


def create_audio_cache(
    config: CacheConfig,
    client: httpx.AsyncClient,
    resolver: SongUrlResolver,
    *,
    referer: str = DEFAULT_REFERER,
) -> AudioCacheService:
    """Create a fully wired audio cache service.

    This is the recommended way to build the service for library usage. The
    directory manager, metadata store and fetcher share the given config.

    Args:
        config: Cache configuration (root, TTL, byte budget, timeout).
        client: HTTP client used for audio downloads. The caller owns it.
        resolver: Song URL resolver queried on cache misses.
        referer: Referer header sent to the audio CDN.

    Returns:
        A configured AudioCacheService instance.
    """
    directory = CacheDirectory(config)
    metadata_store = MetadataStore(config.cache_dir)
    fetcher = SingleFlightFetcher(directory, metadata_store, client)
    return AudioCacheService(
        directory, metadata_store, fetcher, resolver, referer=referer
    )


__all__ = [
    "AudioCacheService",
    "AudioProxyError",
    "AudioRequest",
    "CacheConfig",
    "CacheDirectory",
    "CacheIOError",
    "CacheKey",
    "CacheMetadata",
    "CacheStats",
    "CachedAudioResponse",
    "EvictionResult",
    "FetchError",
    "FetchResult",
    "InvalidReason",
    "InvalidRequestError",
    "MetadataStore",
    "NotPlayableError",
    "ResolverResponse",
    "SingleFlightFetcher",
    "SongUrl",
    "SongUrlQuery",
    "SongUrlResolver",
    "StreamError",
    "TrackNotFoundError",
    "TuneCacheError",
    "UpstreamResolutionError",
    "create_audio_cache",
]
