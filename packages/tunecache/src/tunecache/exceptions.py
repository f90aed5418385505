"""Custom exceptions for tunecache.

All TuneCacheError subclasses include an HTTP status_code attribute and a
machine-readable error_code for easy integration with web frameworks like
FastAPI. StreamError stands apart because it is raised after the response
has started.
"""

from typing import Any


class TuneCacheError(Exception):
    """Base exception for tunecache.

    Attributes:
        status_code: HTTP status code for API error responses.
        error_code: Machine-readable error identifier.
    """

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(TuneCacheError):
    """Request parameters are missing or malformed."""

    status_code: int = 400  # Bad Request
    error_code: str = "invalid_request"


class UpstreamResolutionError(TuneCacheError):
    """The song URL resolver did not return a usable answer.

    When the resolver itself answered with a non-200 status, that status and
    its body are kept so the API can forward them verbatim.

    Attributes:
        body: Raw resolver response body, if any.
    """

    status_code: int = 502  # Bad Gateway (upstream failure)
    error_code: str = "upstream_resolution_failed"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        if status_code is not None:
            self.status_code = status_code
        self.body = body
        super().__init__(message)


class TrackNotFoundError(UpstreamResolutionError):
    """The resolver returned no entry for the requested track."""

    status_code: int = 404  # Not Found
    error_code: str = "track_not_found"


class NotPlayableError(TuneCacheError):
    """The track resolved but carries no playable URL.

    Typically VIP-only or region-restricted content.
    """

    status_code: int = 403  # Forbidden
    error_code: str = "not_playable"


class FetchError(TuneCacheError):
    """Downloading the audio into the cache failed.

    No cache entry is created when this is raised.
    """

    status_code: int = 500  # Internal Server Error
    error_code: str = "fetch_failed"


class CacheIOError(TuneCacheError):
    """The cache directory could not be prepared."""

    status_code: int = 500
    error_code: str = "cache_io_error"


class StreamError(Exception):
    """Sending cached bytes to the client failed after headers went out.

    Not a ``TuneCacheError``: the response has already started, so no error
    handler may turn it into an error response. It propagates out of the
    ASGI callable and the server aborts the connection. The cache entry is
    left untouched.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AudioProxyError(TuneCacheError):
    """Unexpected failure while serving an audio request."""

    status_code: int = 500
    error_code: str = "audio_proxy_failed"

    def __init__(self, message: str = "Audio proxy failed") -> None:
        super().__init__(message)
