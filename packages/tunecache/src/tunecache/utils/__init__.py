"""Utility functions for tunecache.

Available via `from tunecache.utils import ...` for power users.
Not re-exported at the top-level `tunecache` package.
"""

from tunecache.utils.filename import clean_filename, guess_content_type, track_filename
from tunecache.utils.ranges import ByteRange, RangeNotSatisfiable, parse_range_header

__all__ = [
    "ByteRange",
    "RangeNotSatisfiable",
    "clean_filename",
    "guess_content_type",
    "parse_range_header",
    "track_filename",
]
