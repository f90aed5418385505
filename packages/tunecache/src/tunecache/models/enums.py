"""Enumerations for tunecache domain models."""

from enum import StrEnum


class InvalidReason(StrEnum):
    """Why a cache entry cannot be served."""

    MISSING = "missing"
    EXPIRED = "expired"
