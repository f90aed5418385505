"""Cache directory management: validity, removal and size-budget eviction.

The directory listing is the index. There is no in-memory bookkeeping of
entries, so every eviction pass rescans ``*.bin`` files. Temp files
(``*.tmp``) are never considered entries, which keeps downloads in progress
invisible to both validity checks and eviction.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from tunecache.config import CacheConfig
from tunecache.exceptions import CacheIOError
from tunecache.models.entry import (
    BLOB_SUFFIX,
    METADATA_SUFFIX,
    TEMP_SUFFIX,
    CacheEntry,
    CacheValidity,
)
from tunecache.models.results import CacheStats, EvictionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _BlobInfo:
    key: str
    size: int
    mtime: float


class CacheDirectory:
    """Owns the flat cache directory and its on-disk entries.

    Responsibilities:
        - Creating the cache root
        - Lazy TTL checks by blob modification time
        - Best-effort entry removal
        - Oldest-first eviction under a byte budget

    All filesystem calls run in worker threads so the event loop keeps
    serving other requests.
    """

    def __init__(
        self,
        config: CacheConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the directory manager.

        Args:
            config: Cache configuration (root, TTL, byte budget).
            clock: Function returning the current epoch time in seconds.
        """
        self._config = config
        self._clock = clock

    @property
    def root(self) -> Path:
        return self._config.cache_dir

    @property
    def config(self) -> CacheConfig:
        return self._config

    def entry(self, key: str) -> CacheEntry:
        """Get the file layout for a cache key."""
        return CacheEntry(self.root, key)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def ensure_ready(self) -> None:
        """Create the cache root if needed.

        Raises:
            CacheIOError: The directory cannot be created or written to.
        """
        try:
            await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"Cannot create cache directory {self.root}: {e}") from e
        if not os.access(self.root, os.W_OK | os.X_OK):
            raise CacheIOError(f"Cache directory {self.root} is not writable")

    async def check_validity(self, key: str) -> CacheValidity:
        """Check whether the entry for a key can be served.

        Returns:
            ``valid`` when the blob exists and is within its TTL, otherwise
            the reason (missing or expired).
        """
        return await asyncio.to_thread(self._check_validity, key)

    async def remove(self, key: str) -> None:
        """Delete the blob and metadata of an entry.

        Already-absent files are fine; other failures are logged, never raised.
        """
        await asyncio.to_thread(self._remove, key)

    async def enforce_size_budget(self) -> EvictionResult:
        """Evict least-recently-modified entries until under the byte budget.

        No-op without a budget. A failed directory listing is treated as
        "nothing to evict".
        """
        return await asyncio.to_thread(self._enforce_size_budget)

    async def stats(self) -> CacheStats:
        """Summarize the current directory contents."""
        return await asyncio.to_thread(self._stats)

    async def cleanup_stale_files(self, older_than: float | None = None) -> int:
        """Remove leftover temp files and metadata whose blob is gone.

        Args:
            older_than: Minimum age in seconds for a file to be swept.
                Defaults to the download timeout, which no live download
                can outlast.

        Returns:
            Number of files removed.
        """
        if older_than is None:
            older_than = self._config.download_timeout
        return await asyncio.to_thread(self._cleanup_stale_files, older_than)

    # -------------------------------------------------------------------------
    # Internal: synchronous filesystem work (runs in worker threads)
    # -------------------------------------------------------------------------

    def _check_validity(self, key: str) -> CacheValidity:
        blob = self.entry(key).blob_path
        try:
            st = blob.stat()
        except FileNotFoundError:
            return CacheValidity.missing()
        except OSError as e:
            logger.warning("Cannot stat cache blob %s: %s", blob.name, e)
            return CacheValidity.missing()

        if self._config.expiry_enabled:
            age = self._clock() - st.st_mtime
            if age > self._config.ttl_seconds:
                logger.debug("Cache entry %s expired (age %.0fs)", key, age)
                return CacheValidity.expired()
        return CacheValidity.ok()

    def _remove(self, key: str) -> None:
        entry = self.entry(key)
        for path in (entry.blob_path, entry.metadata_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Failed to remove cache file %s: %s", path.name, e)

    def _scan_blobs(self) -> list[_BlobInfo] | None:
        """List blobs in directory enumeration order, or None if listing fails."""
        try:
            names = os.listdir(self.root)
        except OSError as e:
            logger.debug("Cannot list cache directory %s: %s", self.root, e)
            return None

        blobs: list[_BlobInfo] = []
        for name in names:
            if not name.endswith(BLOB_SUFFIX):
                continue
            try:
                st = (self.root / name).stat()
            except OSError:
                continue  # Removed concurrently
            blobs.append(
                _BlobInfo(
                    key=name[: -len(BLOB_SUFFIX)],
                    size=st.st_size,
                    mtime=st.st_mtime,
                )
            )
        return blobs

    def _enforce_size_budget(self) -> EvictionResult:
        max_bytes = self._config.max_bytes
        if max_bytes <= 0:
            return EvictionResult()

        blobs = self._scan_blobs()
        if blobs is None:
            return EvictionResult()

        # Stable sort: equal mtimes keep enumeration order
        blobs.sort(key=lambda blob: blob.mtime)
        total = sum(blob.size for blob in blobs)

        removed: list[str] = []
        freed = 0
        for blob in blobs:
            if total <= max_bytes:
                break
            self._remove(blob.key)
            total -= blob.size
            freed += blob.size
            removed.append(blob.key)

        if removed:
            logger.info(
                "Evicted %d cache entries (%d bytes) to stay within %d bytes",
                len(removed),
                freed,
                max_bytes,
            )
        return EvictionResult(removed=removed, freed_bytes=freed, remaining_bytes=total)

    def _stats(self) -> CacheStats:
        entries = 0
        total = 0
        temp_files = 0
        try:
            names = os.listdir(self.root)
        except OSError:
            names = []

        for name in names:
            if name.endswith(TEMP_SUFFIX):
                temp_files += 1
            elif name.endswith(BLOB_SUFFIX):
                try:
                    total += (self.root / name).stat().st_size
                except OSError:
                    continue
                entries += 1

        return CacheStats(
            entries=entries,
            total_bytes=total,
            temp_files=temp_files,
            max_bytes=self._config.max_bytes,
            ttl_seconds=self._config.ttl_seconds,
        )

    def _cleanup_stale_files(self, older_than: float) -> int:
        try:
            names = set(os.listdir(self.root))
        except OSError:
            return 0

        now = self._clock()
        cleaned = 0
        for name in names:
            if not self._is_stale_candidate(name, names):
                continue

            path = self.root / name
            try:
                if now - path.stat().st_mtime < older_than:
                    continue
                path.unlink(missing_ok=True)
                cleaned += 1
            except OSError:
                pass  # Best effort cleanup

        if cleaned:
            logger.info("Removed %d stale cache files", cleaned)
        return cleaned

    @staticmethod
    def _is_stale_candidate(name: str, names: set[str]) -> bool:
        """Temp files always qualify; metadata only when its blob is gone."""
        if name.endswith(TEMP_SUFFIX):
            return True
        if name.endswith(METADATA_SUFFIX):
            return name[: -len(METADATA_SUFFIX)] + BLOB_SUFFIX not in names
        return False
