"""Data models for tunecache.

Public API:
    AudioRequest - Inbound audio request
    CacheKey - Deterministic key for a (track, quality) pair
    CacheEntry - Blob / metadata / temp paths of one entry
    CacheValidity, InvalidReason - Result of a validity check
    CacheMetadata - Sidecar metadata record
    FetchResult, EvictionResult, CacheStats - Operation results
    SongUrlQuery, ResolverResponse, SongUrl - Resolver exchange
"""

from tunecache.models.entry import CacheEntry, CacheKey, CacheValidity
from tunecache.models.enums import InvalidReason
from tunecache.models.metadata import CacheMetadata
from tunecache.models.request import AudioRequest
from tunecache.models.resolver import ResolverResponse, SongUrl, SongUrlQuery
from tunecache.models.results import CacheStats, EvictionResult, FetchResult

__all__ = [
    "AudioRequest",
    "CacheEntry",
    "CacheKey",
    "CacheMetadata",
    "CacheStats",
    "CacheValidity",
    "EvictionResult",
    "FetchResult",
    "InvalidReason",
    "ResolverResponse",
    "SongUrl",
    "SongUrlQuery",
]
