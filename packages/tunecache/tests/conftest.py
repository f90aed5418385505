"""Test fixtures and configuration for tunecache tests.

Fakes live in ``cache_fakes``; this module wires them into fixtures for the
directory manager, metadata store, fetcher and orchestrator.
"""

from pathlib import Path

import httpx
import pytest
from cache_fakes import FakeCDN, FakeResolver, MockClock
from tunecache.config import CacheConfig
from tunecache.services.audio import AudioCacheService
from tunecache.services.directory import CacheDirectory
from tunecache.services.fetcher import SingleFlightFetcher
from tunecache.services.metadata import MetadataStore


@pytest.fixture
def clock() -> MockClock:
    """Create a mock clock."""
    return MockClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Cache root (not created yet)."""
    return tmp_path / "audio-cache"


@pytest.fixture
def config(cache_dir: Path) -> CacheConfig:
    """Default cache config: one hour TTL, no budget, tiny chunks."""
    return CacheConfig(cache_dir=cache_dir, download_timeout=5.0, chunk_size=4)


@pytest.fixture
def directory(config: CacheConfig, clock: MockClock) -> CacheDirectory:
    """Cache directory manager on the mock clock."""
    return CacheDirectory(config, clock=clock)


@pytest.fixture
def metadata_store(cache_dir: Path) -> MetadataStore:
    """Metadata store for the cache root."""
    return MetadataStore(cache_dir)


@pytest.fixture
def cdn() -> FakeCDN:
    """Empty fake CDN."""
    return FakeCDN()


@pytest.fixture
def http_client(cdn: FakeCDN) -> httpx.AsyncClient:
    """HTTP client wired to the fake CDN."""
    return httpx.AsyncClient(transport=httpx.MockTransport(cdn.handler))


@pytest.fixture
def fetcher(
    directory: CacheDirectory,
    metadata_store: MetadataStore,
    http_client: httpx.AsyncClient,
) -> SingleFlightFetcher:
    """Single-flight fetcher with a private registry."""
    return SingleFlightFetcher(directory, metadata_store, http_client)


@pytest.fixture
def resolver() -> FakeResolver:
    """Fake resolver with an empty answer."""
    return FakeResolver()


@pytest.fixture
def service(
    directory: CacheDirectory,
    metadata_store: MetadataStore,
    fetcher: SingleFlightFetcher,
    resolver: FakeResolver,
) -> AudioCacheService:
    """Fully wired orchestrator."""
    return AudioCacheService(directory, metadata_store, fetcher, resolver)
