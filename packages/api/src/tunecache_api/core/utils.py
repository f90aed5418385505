"""Client address helpers."""

from fastapi import Request

_IPV4_MAPPED_PREFIX = "::ffff:"
_LOOPBACK_V6 = "::1"


def normalize_ip(ip: str | None, fallback_ip: str | None = None) -> str | None:
    """Normalize a client address for upstream use.

    Args:
        ip: Raw address as reported by a header or the socket.
        fallback_ip: Address to present instead of IPv6 loopback.

    Returns:
        The address without an IPv4-mapped prefix, or None if empty.
    """
    if not ip:
        return None
    ip = ip.strip()
    if ip.startswith(_IPV4_MAPPED_PREFIX):
        ip = ip[len(_IPV4_MAPPED_PREFIX) :]
    if ip == _LOOPBACK_V6 and fallback_ip:
        return fallback_ip
    return ip or None


def resolve_client_ip(request: Request, fallback_ip: str | None = None) -> str | None:
    """Determine the originating client IP of a request.

    Checks the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer.

    Args:
        request: Incoming request.
        fallback_ip: Address to present instead of IPv6 loopback.

    Returns:
        The normalized client IP, or None if unknown.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0]
        if first.strip():
            return normalize_ip(first, fallback_ip)

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return normalize_ip(real_ip, fallback_ip)

    peer = request.client.host if request.client else None
    return normalize_ip(peer, fallback_ip)
