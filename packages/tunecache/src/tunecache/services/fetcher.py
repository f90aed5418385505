"""Single-flight audio downloads into the cache directory."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiofiles
import httpx

from tunecache.exceptions import CacheIOError, FetchError
from tunecache.models.metadata import CacheMetadata
from tunecache.models.results import FetchResult
from tunecache.services.directory import CacheDirectory
from tunecache.services.metadata import MetadataStore
from tunecache.utils.filename import guess_content_type

logger = logging.getLogger(__name__)

FetchTask = asyncio.Task[FetchResult]


@dataclass(frozen=True)
class DownloadSource:
    """Upstream location of an entry's audio.

    Attributes:
        url: Audio URL.
        headers: Extra request headers (e.g. Referer).
        extra_metadata: Caller extensions merged into the metadata record.
    """

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    extra_metadata: dict[str, Any] = field(default_factory=dict)


class InflightRegistry:
    """Map of cache key to the download currently filling it.

    Must only be used from the event loop thread. ``get_or_start`` performs
    its check and insert without yielding to the loop, which makes it an
    atomic test-and-set with respect to other requests.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, FetchTask] = {}

    def get(self, key: str) -> FetchTask | None:
        return self._tasks.get(key)

    def get_or_start(
        self,
        key: str,
        factory: Callable[[], Coroutine[Any, Any, FetchResult]],
    ) -> tuple[FetchTask, bool]:
        """Return the pending task for a key, starting one if there is none.

        Args:
            key: Cache key.
            factory: Builds the download coroutine; only called when no task
                is pending.

        Returns:
            Tuple of (task, started) where started is True for a new task.
        """
        if (task := self._tasks.get(key)) is not None:
            return task, False
        task = asyncio.get_running_loop().create_task(factory(), name=f"fetch:{key}")
        self._tasks[key] = task
        return task, True

    def discard(self, key: str, task: asyncio.Task[Any] | None) -> None:
        """Forget a key, but only if it still points at the given task."""
        if task is not None and self._tasks.get(key) is task:
            del self._tasks[key]

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)


def _retrieve_exception(task: FetchTask) -> None:
    # Mark failures as retrieved when every waiter went away
    if not task.cancelled():
        task.exception()


class SingleFlightFetcher:
    """Downloads audio into the cache exactly once per key at a time.

    Concurrent callers for the same key share one upstream request and
    observe the same outcome. The blob only appears under its final name
    after an atomic rename from a fully written temp file, then metadata is
    written and the size budget enforced.

    Waiters go through ``asyncio.shield`` so one client hanging up does not
    cancel a download other clients are waiting on.
    """

    def __init__(
        self,
        directory: CacheDirectory,
        metadata_store: MetadataStore,
        client: httpx.AsyncClient,
        registry: InflightRegistry | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            directory: Cache directory manager (paths, readiness, eviction).
            metadata_store: Store for the sidecar records.
            client: Shared HTTP client for upstream downloads.
            registry: In-flight registry; a private one is created if omitted.
        """
        self._directory = directory
        self._metadata = metadata_store
        self._client = client
        self._registry = registry if registry is not None else InflightRegistry()

    @property
    def registry(self) -> InflightRegistry:
        return self._registry

    def pending(self, key: str) -> bool:
        """Check whether a download for the key is in flight."""
        return key in self._registry

    async def join(self, key: str) -> FetchResult | None:
        """Wait for an in-flight download of the key, if any.

        Returns:
            The shared result, or None when nothing is in flight.

        Raises:
            FetchError: The in-flight download failed.
        """
        task = self._registry.get(key)
        if task is None:
            return None
        return await asyncio.shield(task)

    async def fetch(
        self,
        key: str,
        source_url: str,
        *,
        headers: dict[str, str] | None = None,
        extra_metadata: dict[str, Any] | None = None,
    ) -> FetchResult:
        """Download ``source_url`` into the cache entry for ``key``.

        Args:
            key: Cache key of the target entry.
            source_url: Upstream audio URL.
            headers: Extra request headers (e.g. Referer).
            extra_metadata: Caller extensions merged into the metadata record.

        Returns:
            Path, metadata and size of the stored blob.

        Raises:
            FetchError: Network, timeout, status or disk failure. No blob or
                metadata is left behind.
        """
        source = DownloadSource(source_url, headers or {}, extra_metadata or {})
        return await self._single_flight(key, lambda: self._download(key, source))

    async def fetch_resolved(
        self,
        key: str,
        resolve: Callable[[], Awaitable[DownloadSource]],
    ) -> FetchResult:
        """Resolve where to download ``key`` from, then download it.

        Resolving and downloading form one in-flight unit, so concurrent
        callers share a single ``resolve`` call as well as the download. The
        unit first looks at the cache again: when an earlier download for the
        key completed in the meantime, that entry is returned with
        ``cached=True`` and ``resolve`` is never called.

        Args:
            key: Cache key of the target entry.
            resolve: Coroutine function returning the download source.

        Returns:
            Path, metadata and size of the stored blob.

        Raises:
            FetchError: The download failed.
            Exception: Whatever ``resolve`` raised, shared by all waiters.
        """
        return await self._single_flight(
            key, lambda: self._resolve_and_download(key, resolve)
        )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def _single_flight(
        self,
        key: str,
        work: Callable[[], Coroutine[Any, Any, FetchResult]],
    ) -> FetchResult:
        task, started = self._registry.get_or_start(
            key, lambda: self._run(key, work())
        )
        if started:
            task.add_done_callback(_retrieve_exception)
        else:
            logger.debug("Joining in-flight download for %s", key)
        return await asyncio.shield(task)

    async def _run(
        self, key: str, work: Coroutine[Any, Any, FetchResult]
    ) -> FetchResult:
        try:
            return await work
        finally:
            # Leave the registry before waiters resume
            self._registry.discard(key, asyncio.current_task())

    async def _resolve_and_download(
        self,
        key: str,
        resolve: Callable[[], Awaitable[DownloadSource]],
    ) -> FetchResult:
        if (cached := await self._cached_result(key)) is not None:
            logger.debug("Entry %s was cached meanwhile, skipping download", key)
            return cached
        source = await resolve()
        return await self._download(key, source)

    async def _cached_result(self, key: str) -> FetchResult | None:
        validity = await self._directory.check_validity(key)
        if not validity.valid:
            return None
        path = self._directory.entry(key).blob_path
        try:
            st = await asyncio.to_thread(path.stat)
        except OSError:
            return None
        metadata = await self._metadata.read(key)
        return FetchResult(path=path, metadata=metadata, size=st.st_size, cached=True)

    async def _download(self, key: str, source: DownloadSource) -> FetchResult:
        config = self._directory.config
        entry = self._directory.entry(key)
        try:
            await self._directory.ensure_ready()
        except CacheIOError as e:
            raise FetchError(e.message) from e

        temp_path = entry.new_temp_path()
        logger.info("Fetching %s into cache", key)
        try:
            async with asyncio.timeout(config.download_timeout):
                content_type, size = await self._stream_to_file(
                    source.url, source.headers, temp_path, config.chunk_size
                )
            await asyncio.to_thread(temp_path.replace, entry.blob_path)
        except TimeoutError as e:
            raise FetchError(
                f"Download of {key} timed out after {config.download_timeout:g}s"
            ) from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Upstream returned {e.response.status_code} for {key}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Download of {key} failed: {e}") from e
        except OSError as e:
            raise FetchError(f"Cannot store {key}: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)  # Best effort cleanup

        metadata = CacheMetadata.build(
            content_type=content_type
            or guess_content_type(source.extra_metadata.get("originalFilename")),
            content_length=size,
            source_url=source.url,
            extra=source.extra_metadata,
        )
        await self._metadata.write(key, metadata)
        await self._directory.enforce_size_budget()

        logger.info("Cached %s (%d bytes)", key, size)
        return FetchResult(path=entry.blob_path, metadata=metadata, size=size)

    async def _stream_to_file(
        self,
        url: str,
        headers: dict[str, str],
        path: Path,
        chunk_size: int,
    ) -> tuple[str | None, int]:
        """Stream a GET response body into ``path``.

        Returns:
            Tuple of (upstream content type or None, bytes written).
        """
        written = 0
        async with self._client.stream("GET", url, headers=headers) as response:
            response.raise_for_status()
            content_type = response.headers.get("content-type")
            async with aiofiles.open(path, "wb") as f:
                async for chunk in response.aiter_bytes(chunk_size):
                    await f.write(chunk)
                    written += len(chunk)
        return content_type, written
