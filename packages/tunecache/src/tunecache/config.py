"""Configuration for tunecache."""

from dataclasses import dataclass
from pathlib import Path

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class CacheConfig:
    """Audio cache configuration.

    Attributes:
        cache_dir: Flat directory holding ``{key}.bin`` / ``{key}.json`` pairs.
        ttl_seconds: Entry lifetime by modification time. 0 disables expiry.
        max_bytes: Byte budget for all blobs. 0 disables eviction.
        download_timeout: Upper bound in seconds for one whole download.
        chunk_size: Read/write chunk size for downloads and streaming.
    """

    cache_dir: Path
    ttl_seconds: float = 3600
    max_bytes: int = 0
    download_timeout: float = 30.0
    chunk_size: int = 64 * 1024

    @classmethod
    def from_megabytes(
        cls,
        cache_dir: Path,
        *,
        ttl_seconds: float = 3600,
        max_size_mb: float = 0,
        download_timeout: float = 30.0,
    ) -> "CacheConfig":
        """Build a config from a size budget expressed in megabytes."""
        max_bytes = int(max_size_mb * BYTES_PER_MB) if max_size_mb > 0 else 0
        return cls(
            cache_dir=cache_dir,
            ttl_seconds=ttl_seconds,
            max_bytes=max_bytes,
            download_timeout=download_timeout,
        )

    @property
    def expiry_enabled(self) -> bool:
        return self.ttl_seconds > 0

    @property
    def budget_enabled(self) -> bool:
        return self.max_bytes > 0
