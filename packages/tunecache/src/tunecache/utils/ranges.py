"""HTTP Range header parsing for cached blobs."""

from __future__ import annotations

import re
from dataclasses import dataclass

_RANGE_RE = re.compile(r"^\s*bytes\s*=\s*(\d*)\s*-\s*(\d*)\s*$", re.IGNORECASE)


class RangeNotSatisfiable(Exception):
    """The requested range lies entirely outside the blob."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Range not satisfiable for {size} bytes")


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range within a blob of known size."""

    start: int
    end: int
    size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.size}"


def parse_range_header(header: str | None, size: int) -> ByteRange | None:
    """Parse a single-range ``Range`` header.

    Multi-range and malformed headers return None so the caller serves the
    whole blob, which RFC 9110 allows.

    Args:
        header: Raw Range header value.
        size: Blob size in bytes.

    Returns:
        The satisfiable range, or None to serve the full blob.

    Raises:
        RangeNotSatisfiable: The range starts at or past the end of the blob.
    """
    if not header:
        return None
    match = _RANGE_RE.match(header)
    if match is None:
        return None

    first, last = match.groups()
    if not first and not last:
        return None

    if not first:
        # Suffix range: last N bytes
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise RangeNotSatisfiable(size)
        start = max(size - suffix, 0)
        return ByteRange(start=start, end=size - 1, size=size)

    start = int(first)
    if start >= size:
        raise RangeNotSatisfiable(size)
    end = min(int(last), size - 1) if last else size - 1
    if end < start:
        return None
    return ByteRange(start=start, end=end, size=size)
