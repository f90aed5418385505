"""Business logic services for tunecache.

Public API:
    AudioCacheService - Request orchestration: check, resolve, fetch, stream
    CacheDirectory - Validity checks, removal and size-budget eviction
    MetadataStore - Sidecar JSON metadata records
    SingleFlightFetcher - Deduplicated downloads with atomic publish
    DownloadSource - Upstream URL, headers and metadata extensions of an entry
    CachedAudioResponse - Streams a blob with headers from its metadata

Protocols (for dependency injection):
    SongUrlResolver - Resolves a track id to playable URLs

Internal (not exported):
    InflightRegistry - Key to in-flight download task map
"""

from tunecache.services.audio import AudioCacheService, SongUrlResolver
from tunecache.services.directory import CacheDirectory
from tunecache.services.fetcher import DownloadSource, SingleFlightFetcher
from tunecache.services.metadata import MetadataStore
from tunecache.services.responder import CachedAudioResponse

__all__ = [
    "AudioCacheService",
    "CacheDirectory",
    "CachedAudioResponse",
    "DownloadSource",
    "MetadataStore",
    "SingleFlightFetcher",
    "SongUrlResolver",
]
