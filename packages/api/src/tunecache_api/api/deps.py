"""FastAPI dependency injection factories.

This module provides type-safe dependency injection for FastAPI routes.
Dependencies are defined as Annotated types for clean, reusable injection.

Usage in routes:
    from tunecache_api.api.deps import AudioServiceDep, SettingsDep

    @router.get("/audio/{track_id}")
    async def get_audio(track_id: str, audio: AudioServiceDep) -> ...:
        ...
"""

from typing import Annotated

from fastapi import Depends
from tunecache import AudioCacheService, CacheDirectory, SingleFlightFetcher

from tunecache_api.api.container import Services, get_app_settings, get_services
from tunecache_api.settings import Settings

# -- Settings --

SettingsDep = Annotated[Settings, Depends(get_app_settings)]

# -- Service dependencies (request-scoped via app.state) --

ServicesDep = Annotated[Services, Depends(get_services)]


def _get_audio_service(services: ServicesDep) -> AudioCacheService:
    """Get audio cache service from services container."""
    return services.audio


def _get_cache_directory(services: ServicesDep) -> CacheDirectory:
    """Get cache directory manager from services container."""
    return services.directory


def _get_fetcher(services: ServicesDep) -> SingleFlightFetcher:
    """Get single-flight fetcher from services container."""
    return services.fetcher


AudioServiceDep = Annotated[AudioCacheService, Depends(_get_audio_service)]
CacheDirectoryDep = Annotated[CacheDirectory, Depends(_get_cache_directory)]
FetcherDep = Annotated[SingleFlightFetcher, Depends(_get_fetcher)]
