"""FastAPI application factory and configuration."""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from importlib.metadata import version

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console
from rich.logging import RichHandler
from tunecache import (
    AudioCacheService,
    CacheDirectory,
    CacheIOError,
    MetadataStore,
    SingleFlightFetcher,
)

from tunecache_api.api.container import Services
from tunecache_api.api.exceptions import register_exception_handlers
from tunecache_api.api.routes import audio, cache, health
from tunecache_api.services.resolver import HttpSongUrlResolver, create_http_client
from tunecache_api.settings import Settings, get_settings

ServicesFactory = Callable[[Settings], Services]

# Global reference for shutdown suppression
_rich_handler: RichHandler | None = None


def setup_logging(level: str) -> None:
    """Configure logging with Rich handler for all loggers including uvicorn."""
    global _rich_handler

    console = Console(force_terminal=True)
    handler = RichHandler(
        console=console, rich_tracebacks=True, show_path=False, markup=False
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))
    _rich_handler = handler  # Store for shutdown suppression

    # Configure root logger
    logging.root.handlers = [handler]
    logging.root.setLevel(level)

    # Configure uvicorn loggers to use Rich
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def suppress_logging() -> None:
    """Suppress most logging output during shutdown.

    Keeps ERROR level visible but suppresses INFO/WARNING to prevent
    routine messages from appearing after the shell prompt returns.
    """
    if _rich_handler is None:
        return
    _rich_handler.setLevel(logging.ERROR)
    _rich_handler.console.quiet = True


logger = logging.getLogger(__name__)


def create_services(
    settings: Settings, http_client: httpx.AsyncClient | None = None
) -> Services:
    """Create all application services with proper dependency wiring.

    Args:
        settings: Application settings.
        http_client: Upstream HTTP client. Created from settings if omitted;
            either way the container owns and closes it.

    Returns:
        Services container with all application services.
    """
    config = settings.cache_config
    if http_client is None:
        http_client = create_http_client(settings.audio_download_timeout_seconds)

    directory = CacheDirectory(config)
    metadata_store = MetadataStore(config.cache_dir)
    fetcher = SingleFlightFetcher(directory, metadata_store, http_client)
    resolver = HttpSongUrlResolver(http_client, settings.song_url_endpoint)
    audio_service = AudioCacheService(
        directory,
        metadata_store,
        fetcher,
        resolver,
        referer=settings.upstream_referer,
    )

    return Services(
        http_client=http_client,
        directory=directory,
        metadata_store=metadata_store,
        fetcher=fetcher,
        resolver=resolver,
        audio=audio_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    services_factory: ServicesFactory = app.state.services_factory
    logger.info("Starting application...")

    services = services_factory(settings)
    app.state.services = services

    # Downloads retry directory creation, so a failure here is not fatal
    try:
        await services.directory.ensure_ready()
    except CacheIOError as e:
        logger.warning("Audio cache not ready: %s", e.message)
    await services.directory.cleanup_stale_files()
    logger.info("Audio cache at %s", services.directory.root)

    yield

    # Suppress logging to prevent post-prompt messages
    suppress_logging()

    # Sweep temp files of downloads cut short by the shutdown
    await services.directory.cleanup_stale_files(older_than=0)

    await services.aclose()


def create_app(
    settings: Settings | None = None,
    services_factory: ServicesFactory = create_services,
) -> FastAPI:
    """Create and configure the main FastAPI application.

    Args:
        settings: Settings to use. Defaults to the environment.
        services_factory: Builds the services container at startup.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="tunecache",
        description="Music gateway with a disk-backed audio cache",
        version=version("tunecache"),
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.services_factory = services_factory

    # Register exception handlers
    register_exception_handlers(app)

    # CORS middleware (type ignore needed due to Starlette typing limitations)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Cache-Hit", "Content-Range", "Accept-Ranges"],
    )

    app.include_router(health.router)
    app.include_router(audio.router)
    app.include_router(cache.router)

    return app


# Create app instance for uvicorn
app = create_app()
