"""Tests for client IP resolution."""

import pytest
from starlette.requests import Request
from tunecache_api.core.utils import normalize_ip, resolve_client_ip


def _request(
    headers: dict[str, str] | None = None, peer: str | None = "10.0.0.5"
) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [
            (k.lower().encode("latin-1"), v.encode("latin-1"))
            for k, v in (headers or {}).items()
        ],
        "client": (peer, 12345) if peer else None,
    }
    return Request(scope)


class TestResolveClientIp:
    """Tests for resolve_client_ip."""

    def test_prefers_first_forwarded_hop(self) -> None:
        request = _request(
            {"X-Forwarded-For": "203.0.113.1, 10.0.0.1", "X-Real-IP": "198.51.100.2"}
        )
        assert resolve_client_ip(request) == "203.0.113.1"

    def test_falls_back_to_real_ip(self) -> None:
        request = _request({"X-Real-IP": "198.51.100.2"})
        assert resolve_client_ip(request) == "198.51.100.2"

    def test_falls_back_to_peer(self) -> None:
        assert resolve_client_ip(_request()) == "10.0.0.5"

    def test_empty_forwarded_header_is_skipped(self) -> None:
        request = _request({"X-Forwarded-For": " , 10.0.0.1"})
        assert resolve_client_ip(request) == "10.0.0.5"

    def test_unknown_peer(self) -> None:
        assert resolve_client_ip(_request(peer=None)) is None

    def test_ipv6_loopback_uses_fallback(self) -> None:
        request = _request(peer="::1")
        assert resolve_client_ip(request, fallback_ip="116.25.146.177") == "116.25.146.177"


class TestNormalizeIp:
    """Tests for normalize_ip."""

    @pytest.mark.parametrize(
        ("raw", "fallback", "expected"),
        [
            ("::ffff:192.0.2.1", None, "192.0.2.1"),
            (" 192.0.2.1 ", None, "192.0.2.1"),
            ("::1", "203.0.113.5", "203.0.113.5"),
            ("::1", None, "::1"),
            ("2001:db8::1", "203.0.113.5", "2001:db8::1"),
            ("", None, None),
            (None, None, None),
        ],
        ids=[
            "ipv4_mapped",
            "whitespace",
            "loopback_fallback",
            "loopback_no_fallback",
            "ipv6",
            "empty",
            "none",
        ],
    )
    def test_normalize(
        self, raw: str | None, fallback: str | None, expected: str | None
    ) -> None:
        assert normalize_ip(raw, fallback) == expected
