"""Cached audio endpoints."""

from fastapi import APIRouter, Request, Response, status
from tunecache import AudioRequest, InvalidRequestError

from tunecache_api.api.deps import AudioServiceDep, SettingsDep
from tunecache_api.core.utils import resolve_client_ip

router = APIRouter(prefix="/custom/audio", tags=["audio"])


def _quality(value: str | None) -> str | None:
    # Empty query values mean "not given"
    return value or None


@router.get("")
async def get_audio_without_id() -> Response:
    """Reject audio requests that do not name a track."""
    raise InvalidRequestError("Missing song id")


@router.api_route("/{track_id}", methods=["GET", "HEAD"])
async def get_audio(
    track_id: str,
    request: Request,
    audio: AudioServiceDep,
    settings: SettingsDep,
    br: str | None = None,
    level: str | None = None,
) -> Response:
    """Stream audio for a track, downloading it into the cache on a miss.

    The ``X-Cache-Hit`` response header tells whether the bytes came from
    an existing entry (``1``) or a fresh download (``0``).
    """
    audio_request = AudioRequest(
        track_id=track_id,
        br=_quality(br),
        level=_quality(level),
        cookies=dict(request.cookies),
        client_ip=resolve_client_ip(request, settings.fallback_client_ip),
        range_header=request.headers.get("range"),
    )
    return await audio.serve(audio_request)


@router.delete("/{track_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_audio(
    track_id: str,
    audio: AudioServiceDep,
    br: str | None = None,
    level: str | None = None,
) -> Response:
    """Remove the cache entry for a track and quality selector."""
    await audio.remove(track_id, _quality(br), _quality(level))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
