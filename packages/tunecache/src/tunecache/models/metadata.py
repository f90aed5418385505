"""Sidecar metadata stored next to each cached audio blob."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTENT_TYPE = "audio/mpeg"


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class CacheMetadata(BaseModel):
    """Metadata record persisted as ``<key>.json``.

    Serialized with camelCase keys. Unknown keys (caller extensions) are
    kept as extra fields and written back unchanged.

    Attributes:
        content_type: Media type reported by the upstream response.
        content_length: Size of the blob in bytes, if known.
        fetched_at: Fetch time in milliseconds since the epoch.
        source_url: URL the blob was downloaded from.
        original_filename: Filename offered to clients, if known.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    content_type: str = Field(default=DEFAULT_CONTENT_TYPE, alias="contentType")
    content_length: int | None = Field(default=None, alias="contentLength", ge=0)
    fetched_at: int = Field(default_factory=now_ms, alias="fetchedAt")
    source_url: str = Field(default="", alias="sourceUrl")
    original_filename: str | None = Field(default=None, alias="originalFilename")

    @classmethod
    def build(
        cls,
        *,
        content_type: str,
        content_length: int | None,
        source_url: str,
        extra: dict[str, Any] | None = None,
    ) -> CacheMetadata:
        """Build a record for a fresh download, merging caller extensions.

        Extensions may use either camelCase aliases or field names; they
        override the derived values, matching a plain dict merge.
        """
        data: dict[str, Any] = {
            "contentType": content_type,
            "contentLength": content_length,
            "fetchedAt": now_ms(),
            "sourceUrl": source_url,
        }
        data.update(extra or {})
        return cls.model_validate(data)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
