"""HTTP song URL resolver backed by the provider's ``song/url`` endpoint."""

import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx
from tunecache import ResolverResponse, SongUrlQuery, UpstreamResolutionError

logger = logging.getLogger(__name__)


def create_http_client(
    timeout: float, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create the shared upstream HTTP client.

    Caller cookies are forwarded per request as an explicit header, so the
    client's own jar refuses to store or send anything.

    Args:
        timeout: Per-operation timeout in seconds.
        transport: Transport override, e.g. for tests.
    """
    jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        cookies=jar,
        transport=transport,
    )


def format_cookie_header(cookies: dict[str, str]) -> str:
    """Serialize cookies into a ``Cookie`` request header value."""
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


class HttpSongUrlResolver:
    """Resolves playable URLs by forwarding to an upstream song URL endpoint.

    The query's cookies travel as a ``Cookie`` header and the client IP as
    ``X-Real-IP`` / ``X-Forwarded-For``. The upstream status and body are
    returned untouched for the orchestrator to interpret.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str) -> None:
        """Initialize the resolver.

        Args:
            client: Shared HTTP client (owned by the caller).
            endpoint: Absolute URL of the upstream ``song/url`` endpoint.
        """
        self._client = client
        self._endpoint = endpoint

    async def resolve(self, query: SongUrlQuery) -> ResolverResponse:
        """Look up playable URLs for a track.

        Raises:
            UpstreamResolutionError: The endpoint could not be reached.
        """
        params = {"id": query.id}
        if query.br:
            params["br"] = query.br
        if query.level:
            params["level"] = query.level

        headers: dict[str, str] = {}
        if query.cookie:
            headers["Cookie"] = format_cookie_header(query.cookie)
        if query.ip:
            headers["X-Real-IP"] = query.ip
            headers["X-Forwarded-For"] = query.ip

        try:
            response = await self._client.get(
                self._endpoint, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning("Song url lookup for %s failed: %s", query.id, e)
            raise UpstreamResolutionError(f"Song url lookup failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = response.text

        return ResolverResponse(
            status=response.status_code,
            body=body,
            cookies=response.headers.get_list("set-cookie"),
        )
