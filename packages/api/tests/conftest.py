"""Test fixtures and configuration for tunecache-api tests.

This module provides shared fixtures organized into:
- Environment isolation: No .env file or shell variables leak into Settings
- Upstream fakes: Resolver endpoint and CDN behind httpx.MockTransport
- App fixtures: FastAPI app with a running lifespan and a TestClient
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest
from api_fakes import RESOLVER_URL, FakeUpstream
from fastapi import FastAPI
from fastapi.testclient import TestClient
from tunecache_api.api.app import create_app, create_services
from tunecache_api.api.container import Services
from tunecache_api.services.resolver import create_http_client
from tunecache_api.settings import Settings

_SETTINGS_ENV = (
    "HOST",
    "PORT",
    "RELOAD",
    "DEBUG",
    "LOG_LEVEL",
    "AUDIO_CACHE_DIR",
    "AUDIO_CACHE_TTL_SECONDS",
    "AUDIO_CACHE_MAX_SIZE_MB",
    "AUDIO_DOWNLOAD_TIMEOUT_SECONDS",
    "UPSTREAM_REFERER",
    "SONG_URL_ENDPOINT",
    "FALLBACK_CLIENT_IP",
    "CORS_ORIGINS",
)


# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from .env file and shell environment."""
    for key in list(os.environ.keys()):
        if key.upper() in _SETTINGS_ENV:
            monkeypatch.delenv(key, raising=False)
    # Change to temp dir so Settings won't find .env file
    monkeypatch.chdir(tmp_path)


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "audio-cache"


@pytest.fixture
def settings(cache_dir: Path) -> Settings:
    """Settings pointing at a temp cache and the fake resolver."""
    return Settings(
        audio_cache_dir=cache_dir,
        song_url_endpoint=RESOLVER_URL,
        fallback_client_ip="198.51.100.1",
        audio_download_timeout_seconds=5,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    """Empty fake resolver endpoint and CDN."""
    return FakeUpstream()


@pytest.fixture
def app(settings: Settings, upstream: FakeUpstream) -> FastAPI:
    """App whose services talk to the fake upstream."""

    def services_factory(s: Settings) -> Services:
        transport = httpx.MockTransport(upstream.handler)
        client = create_http_client(s.audio_download_timeout_seconds, transport)
        return create_services(s, http_client=client)

    return create_app(settings, services_factory=services_factory)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
