"""Sidecar metadata persistence."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import ValidationError

from tunecache.models.entry import CacheEntry
from tunecache.models.metadata import CacheMetadata

logger = logging.getLogger(__name__)


class MetadataStore:
    """Reads and writes the ``<key>.json`` record of each cache entry.

    Both operations are best effort: the blob is the source of truth and a
    missing or unreadable record only means "serve with defaults". Failures
    show up in the return types (``None`` / ``False``) instead of raising.
    """

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    def _path(self, key: str) -> Path:
        return CacheEntry(self._cache_dir, key).metadata_path

    async def read(self, key: str) -> CacheMetadata | None:
        """Load the metadata record for a key.

        Returns:
            The record, or None if it is absent, unreadable or invalid.
        """
        path = self._path(key)
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read cache metadata %s: %s", path.name, e)
            return None

        try:
            return CacheMetadata.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring invalid cache metadata %s", path.name)
            return None

    async def write(self, key: str, metadata: CacheMetadata) -> bool:
        """Persist the metadata record for a key.

        The record is written in place (no temp + rename). A crash between
        the blob rename and this write leaves a blob without metadata, which
        readers tolerate.

        Returns:
            True on success, False if the write failed (logged).
        """
        path = self._path(key)
        try:
            await asyncio.to_thread(
                path.write_text, metadata.to_json(), encoding="utf-8"
            )
        except OSError:
            logger.warning("Failed to write cache metadata %s", path.name, exc_info=True)
            return False
        return True
