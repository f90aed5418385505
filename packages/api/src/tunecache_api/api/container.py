"""Services container for dependency injection.

This module provides the Services container and dependency injection
utilities for accessing services from FastAPI routes via app.state.
"""

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request
from tunecache import (
    AudioCacheService,
    CacheDirectory,
    MetadataStore,
    SingleFlightFetcher,
    SongUrlResolver,
)

from tunecache_api.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Container for application services with proper lifecycle management.

    All services are created at startup and cleaned up at shutdown.
    Stored in FastAPI's app.state for proper request scoping.
    """

    http_client: httpx.AsyncClient
    directory: CacheDirectory
    metadata_store: MetadataStore
    fetcher: SingleFlightFetcher
    resolver: SongUrlResolver
    audio: AudioCacheService

    async def aclose(self) -> None:
        """Clean up resources. Called at application shutdown."""
        await self.http_client.aclose()
        logger.info("Services cleaned up")


def get_services(request: Request) -> Services:
    """Get services from request's app state (dependency injection).

    Args:
        request: FastAPI request object.

    Returns:
        Services container.

    Raises:
        RuntimeError: If services not initialized (app not running).
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Is the app running?")
    return services


def get_app_settings(request: Request) -> Settings:
    """Get the settings the running app was created with."""
    return request.app.state.settings
