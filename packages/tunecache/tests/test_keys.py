"""Tests for cache keys and entry paths."""

from pathlib import Path

import pytest
from tunecache.models.entry import CacheEntry, CacheKey, CacheValidity
from tunecache.models.enums import InvalidReason


class TestCacheKeyDerive:
    """Tests for CacheKey.derive."""

    @pytest.mark.parametrize(
        ("br", "level", "expected"),
        [
            ("320000", None, "123_320000"),
            (None, "exhigh", "123_exhigh"),
            ("320000", "lossless", "123_320000"),
            (None, None, "123_default"),
            ("", "", "123_default"),
            (None, "default", "123_default"),
        ],
        ids=[
            "bitrate",
            "level",
            "bitrate_wins_over_level",
            "no_quality",
            "empty_quality",
            "explicit_default_level",
        ],
    )
    def test_readable_keys(
        self, br: str | None, level: str | None, expected: str
    ) -> None:
        """Should build readable keys from safe parts."""
        key = CacheKey.derive("123", br, level)
        assert key.value == expected
        assert str(key) == expected

    def test_is_deterministic(self) -> None:
        """Should derive the same key for the same inputs."""
        assert CacheKey.derive("42", "128000") == CacheKey.derive("42", "128000")

    def test_keeps_quality_token(self) -> None:
        """Should expose which quality token was selected."""
        key = CacheKey.derive("123", None, "lossless")
        assert key.track_id == "123"
        assert key.quality == "lossless"

    @pytest.mark.parametrize(
        "track_id",
        ["../etc/passwd", "a/b", "a_b", ".hidden", "id with space", "中文", "1\n"],
        ids=["traversal", "slash", "underscore", "leading_dot", "space", "cjk", "newline"],
    )
    def test_hashes_unsafe_ids(self, track_id: str) -> None:
        """Should hash ids that are not plain filename characters."""
        key = CacheKey.derive(track_id)
        assert key.value.startswith("x")
        assert len(key.value) == 41
        assert "_" not in key.value
        assert "/" not in key.value

    def test_hashes_unsafe_quality(self) -> None:
        """Should hash when only the quality part is unsafe."""
        key = CacheKey.derive("123", "../../x")
        assert key.value.startswith("x")
        assert "_" not in key.value

    def test_distinct_pairs_do_not_collide(self) -> None:
        """Should keep pairs apart that a naive join would merge."""
        first = CacheKey.derive("a_b", "c")
        second = CacheKey.derive("a", "b_c")
        assert first.value != second.value

    def test_hashed_and_readable_never_collide(self) -> None:
        """Should never produce a readable key for an unsafe pair."""
        readable = CacheKey.derive("x1", "default")
        hashed = CacheKey.derive("x 1", "default")
        assert "_" in readable.value
        assert "_" not in hashed.value


class TestCacheEntry:
    """Tests for CacheEntry path layout."""

    def test_paths(self, tmp_path: Path) -> None:
        """Should place blob and metadata side by side."""
        entry = CacheEntry(tmp_path, "123_320000")
        assert entry.base_path == tmp_path / "123_320000"
        assert entry.blob_path == tmp_path / "123_320000.bin"
        assert entry.metadata_path == tmp_path / "123_320000.json"

    def test_temp_paths_are_unique(self, tmp_path: Path) -> None:
        """Should give every download its own temp file."""
        entry = CacheEntry(tmp_path, "123_320000")
        first = entry.new_temp_path()
        second = entry.new_temp_path()
        assert first != second
        assert first.parent == tmp_path
        assert first.name.startswith("123_320000.")
        assert first.suffix == ".tmp"


class TestCacheValidity:
    """Tests for CacheValidity constructors."""

    def test_ok(self) -> None:
        assert CacheValidity.ok() == CacheValidity(valid=True, reason=None)

    def test_missing(self) -> None:
        validity = CacheValidity.missing()
        assert not validity.valid
        assert validity.reason is InvalidReason.MISSING

    def test_expired(self) -> None:
        validity = CacheValidity.expired()
        assert not validity.valid
        assert validity.reason == "expired"
