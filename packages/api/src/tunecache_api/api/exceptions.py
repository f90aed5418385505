"""Error handlers for the API.

All API errors use a consistent response format:
{
    "code": <http status>,
    "error": "error_code",
    "msg": "Human-readable description"
}

The one exception is a resolver failure that carries the resolver's own
body, which is forwarded verbatim with the resolver's status.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel
from tunecache import TuneCacheError, UpstreamResolutionError
from tunecache.services.responder import error_response


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: int
    error: str
    msg: str


def upstream_passthrough(exc: UpstreamResolutionError) -> Response | None:
    """Replay a resolver's own error response, if it sent one."""
    body = exc.body
    if body is None:
        return None
    if isinstance(body, dict | list):
        return JSONResponse(status_code=exc.status_code, content=body)
    return PlainTextResponse(status_code=exc.status_code, content=str(body))


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""

    @app.exception_handler(TuneCacheError)
    async def tunecache_error_handler(request: Request, exc: TuneCacheError) -> Response:
        """Generic handler for all TuneCacheError subclasses."""
        if isinstance(exc, UpstreamResolutionError):
            passthrough = upstream_passthrough(exc)
            if passthrough is not None:
                return passthrough
        return error_response(exc.status_code, exc.error_code, exc.message)
