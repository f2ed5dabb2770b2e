"""
Tests for the read-through helper
"""
from unittest.mock import MagicMock

import pytest

from catalog_api.api_cache.read_through import invalidate, read_through
from catalog_api.errors import NotFound


class TestReadThrough:
    """Tests for cache population on reads"""

    def test_miss_loads_and_populates(self, cache):
        loader = MagicMock(return_value=[{"title": "Nova"}])

        result, from_cache = read_through(cache, "all_entries", loader, 60)

        assert result == [{"title": "Nova"}]
        assert from_cache is False
        assert cache.get("all_entries") == [{"title": "Nova"}]
        loader.assert_called_once()

    def test_hit_skips_loader(self, cache):
        cache.set("all_entries", [{"title": "Nova"}], 60)
        loader = MagicMock()

        result, from_cache = read_through(cache, "all_entries", loader, 60)

        assert result == [{"title": "Nova"}]
        assert from_cache is True
        loader.assert_not_called()

    def test_empty_result_is_not_cached(self, cache):
        loader = MagicMock(return_value=[])

        with pytest.raises(NotFound) as exc_info:
            read_through(cache, "search_zzz", loader, 60, "No movies found")

        assert exc_info.value.message == "No movies found"
        assert exc_info.value.status == 404
        assert cache.get("search_zzz") is None

        loader.return_value = [{"title": "zzz"}]
        result, from_cache = read_through(cache, "search_zzz", loader, 60)
        assert result == [{"title": "zzz"}]
        assert from_cache is False

    def test_populated_entry_uses_ttl(self, cache, clock):
        read_through(cache, "episode_1", lambda: {"title": "Pilot"}, 5)
        clock.advance(5)

        assert cache.get("episode_1") is None

    def test_store_default_ttl_when_none(self, cache, clock):
        read_through(cache, "all_feedback", lambda: [{"user_name": "Ada"}])
        clock.advance(86399)

        assert cache.get("all_feedback") == [{"user_name": "Ada"}]

    def test_loader_failure_leaves_cache_untouched(self, cache):
        def broken():
            raise RuntimeError("connection reset")

        with pytest.raises(RuntimeError):
            read_through(cache, "all_entries", broken, 60)

        assert cache.get("all_entries") is None


def test_invalidate_counts_present_keys(cache):
    cache.set("all_entries", [1])

    assert invalidate(cache, "all_entries", "entry_by_id_x") == 1
    assert cache.get("all_entries") is None
