"""Audio request orchestration: cache check, resolve, fetch, stream.

Each request walks a small state machine::

    CHECK_CACHE ─┬─ HIT ──────────────────────────────┐
                 └─ MISS ─ RESOLVE ─┬─ RESOLVE_FAILED  ├─ STREAM
                                    └─ FETCH ──────────┘

Expired entries are deleted during CHECK_CACHE and then handled as misses.
RESOLVE and FETCH run as one in-flight unit per key: concurrent misses share
a single resolver call and a single download.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from tunecache.exceptions import (
    AudioProxyError,
    InvalidRequestError,
    NotPlayableError,
    TrackNotFoundError,
    TuneCacheError,
    UpstreamResolutionError,
)
from tunecache.models.entry import CacheKey
from tunecache.models.enums import InvalidReason
from tunecache.models.metadata import CacheMetadata
from tunecache.models.request import AudioRequest
from tunecache.models.resolver import ResolverResponse, SongUrl, SongUrlQuery
from tunecache.services.directory import CacheDirectory
from tunecache.services.fetcher import DownloadSource, SingleFlightFetcher
from tunecache.services.metadata import MetadataStore
from tunecache.services.responder import CachedAudioResponse
from tunecache.utils.filename import track_filename

logger = logging.getLogger(__name__)

DEFAULT_REFERER = "https://music.163.com"


class SongUrlResolver(Protocol):
    """Protocol for the collaborator that turns a track into a playable URL.

    Implementations answer with the provider's raw status and body; the
    orchestrator interprets the ``data`` list itself.
    """

    async def resolve(self, query: SongUrlQuery) -> ResolverResponse:
        """Look up playable URLs for ``query``."""
        ...


class AudioCacheService:
    """Serves audio for a track from the disk cache, filling it on misses.

    Collaborators are passed in explicitly, including the fetcher that owns
    the in-flight registry, so several services can share one registry.
    """

    def __init__(
        self,
        directory: CacheDirectory,
        metadata_store: MetadataStore,
        fetcher: SingleFlightFetcher,
        resolver: SongUrlResolver,
        *,
        referer: str = DEFAULT_REFERER,
    ) -> None:
        self._directory = directory
        self._metadata = metadata_store
        self._fetcher = fetcher
        self._resolver = resolver
        self._referer = referer

    @property
    def directory(self) -> CacheDirectory:
        return self._directory

    @property
    def fetcher(self) -> SingleFlightFetcher:
        return self._fetcher

    async def serve(self, request: AudioRequest) -> CachedAudioResponse:
        """Answer an audio request.

        Args:
            request: Track id, quality selector, cookies and client details.

        Returns:
            A streaming response for the cached blob.

        Raises:
            InvalidRequestError: The track id is missing.
            UpstreamResolutionError: The resolver failed (status passthrough).
            TrackNotFoundError: The resolver returned no usable entry.
            NotPlayableError: The track has no playable URL.
            FetchError: Downloading the audio failed.
            AudioProxyError: Anything unexpected.
        """
        track_id = request.track_id.strip()
        if not track_id:
            raise InvalidRequestError("Missing song id")

        key = CacheKey.derive(track_id, request.br, request.level)
        try:
            return await self._serve(key, request)
        except TuneCacheError:
            raise
        except Exception as e:
            logger.exception("Audio proxy error for %s", key)
            raise AudioProxyError() from e

    async def remove(self, track_id: str, br: str | None = None, level: str | None = None) -> str:
        """Delete the cache entry for a track and quality selector.

        Returns:
            The cache key that was removed.
        """
        track_id = track_id.strip()
        if not track_id:
            raise InvalidRequestError("Missing song id")
        key = CacheKey.derive(track_id, br, level)
        await self._directory.remove(key.value)
        logger.info("Removed cache entry %s", key)
        return key.value

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    async def _serve(self, key: CacheKey, request: AudioRequest) -> CachedAudioResponse:
        validity = await self._directory.check_validity(key.value)
        if validity.valid:
            logger.debug("Cache hit for %s", key)
            metadata = await self._metadata.read(key.value)
            return self._respond(
                self._directory.entry(key.value).blob_path,
                metadata,
                cache_hit=True,
                request=request,
            )

        if validity.reason is InvalidReason.EXPIRED and not self._fetcher.pending(key.value):
            logger.info("Cache entry %s expired, refetching", key)
            await self._directory.remove(key.value)

        # Requests arriving while this key is resolving or downloading join it
        result = await self._fetcher.fetch_resolved(
            key.value, lambda: self._download_source(key, request)
        )
        return self._respond(
            result.path, result.metadata, cache_hit=result.cached, request=request
        )

    async def _download_source(
        self, key: CacheKey, request: AudioRequest
    ) -> DownloadSource:
        target, url = await self._resolve(key, request)
        return DownloadSource(
            url,
            headers={"Referer": self._referer},
            extra_metadata=self._extra_metadata(key.track_id, target),
        )

    async def _resolve(self, key: CacheKey, request: AudioRequest) -> tuple[SongUrl, str]:
        query = SongUrlQuery(
            id=key.track_id,
            br=request.br,
            level=request.level,
            cookie=dict(request.cookies),
            ip=request.client_ip,
        )
        response = await self._resolver.resolve(query)

        if response.status != 200:
            raise UpstreamResolutionError(
                f"Song url lookup failed with status {response.status}",
                status_code=response.status,
                body=response.body,
            )

        data = response.body.get("data") if isinstance(response.body, dict) else None
        if not isinstance(data, list) or not data:
            raise TrackNotFoundError("Song url not found")

        try:
            items = [SongUrl.model_validate(item) for item in data]
        except ValidationError as e:
            raise TrackNotFoundError("Song url not found") from e

        target = next((item for item in items if item.id == key.track_id), items[0])
        if not (url := target.url):
            raise NotPlayableError(
                "No playable URL returned (maybe VIP / region restricted)"
            )
        return target, url

    @staticmethod
    def _extra_metadata(track_id: str, target: SongUrl) -> dict[str, Any]:
        extra: dict[str, Any] = {}
        if filename := track_filename(track_id, target.type):
            extra["originalFilename"] = filename
        return extra

    def _respond(
        self,
        path: Path,
        metadata: CacheMetadata | None,
        *,
        cache_hit: bool,
        request: AudioRequest,
    ) -> CachedAudioResponse:
        return CachedAudioResponse(
            path,
            metadata,
            cache_hit=cache_hit,
            range_header=request.range_header,
            chunk_size=self._directory.config.chunk_size,
        )
