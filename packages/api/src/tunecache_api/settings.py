"""Application settings using pydantic-settings."""

from functools import cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from tunecache import CacheConfig
from tunecache.services.audio import DEFAULT_REFERER

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


def _blank_to_none(v: object) -> object:
    """Treat empty environment values as unset."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


OptionalIP = Annotated[str | None, BeforeValidator(_blank_to_none)]


class Settings(BaseSettings):
    # No prefix: the gateway keeps the plain variable names it has always used
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=3000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Log level")

    # Audio cache settings
    audio_cache_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "audio-cache",
        description="Audio cache directory",
    )
    audio_cache_ttl_seconds: float = Field(
        default=3600, description="Entry lifetime in seconds (0 disables expiry)"
    )
    audio_cache_max_size_mb: float = Field(
        default=0, description="Cache size budget in MB (0 disables eviction)"
    )
    audio_download_timeout_seconds: float = Field(
        default=30, gt=0, description="Upper bound for one whole audio download"
    )

    # Upstream settings
    upstream_referer: str = Field(
        default=DEFAULT_REFERER, description="Referer sent to the audio CDN"
    )
    song_url_endpoint: str = Field(
        default="http://127.0.0.1:3001/song/url",
        description="Song URL resolver endpoint",
    )
    fallback_client_ip: OptionalIP = Field(
        default=None, description="IP presented upstream for loopback clients"
    )

    # CORS settings
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @property
    def cache_config(self) -> CacheConfig:
        return CacheConfig.from_megabytes(
            self.audio_cache_dir,
            ttl_seconds=self.audio_cache_ttl_seconds,
            max_size_mb=self.audio_cache_max_size_mb,
            download_timeout=self.audio_download_timeout_seconds,
        )


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
