"""
Tests for cache key derivation
"""
from catalog_api.api_cache import cache_keys


class TestKeyTemplates:
    """Tests for the key of each query shape"""

    def test_templates(self):
        assert cache_keys.all_entries() == "all_entries"
        assert cache_keys.entry_by_title("Nova") == "entry_by_title_Nova"
        assert cache_keys.entry_by_id("65a1f0c2e4b0a1b2c3d4e5f6") == "entry_by_id_65a1f0c2e4b0a1b2c3d4e5f6"
        assert cache_keys.entries_by_genre("Drama") == "entries_by_genre_Drama"
        assert cache_keys.entries_by_type("series") == "entries_by_type_series"
        assert cache_keys.search("nov") == "search_nov"
        assert cache_keys.episodes_of("abc") == "episodes_of_abc"
        assert cache_keys.episodes_of_quality("abc", 1080) == "episodes_of_abc_1080"
        assert cache_keys.episode("abc") == "episode_abc"
        assert cache_keys.all_feedback() == "all_feedback"

    def test_keys_are_stable(self):
        assert cache_keys.search("star wars") == cache_keys.search("star wars")
        assert cache_keys.episodes_of_quality("abc", 720) == cache_keys.episodes_of_quality("abc", 720)


class TestKeyInjectivity:
    """Distinct parameters never share a key"""

    def test_distinct_parameters_differ(self):
        assert cache_keys.entry_by_title("Nova") != cache_keys.entry_by_title("nova")
        assert cache_keys.search("a b") != cache_keys.search("a+b")
        assert cache_keys.entries_by_genre("Sci-Fi") != cache_keys.entries_by_genre("Sci Fi")

    def test_underscores_cannot_forge_a_quality_key(self):
        """An id containing the separator does not collide with an id+quality key"""
        assert cache_keys.episodes_of("abc_720") != cache_keys.episodes_of_quality("abc", 720)
        assert cache_keys.episodes_of_quality("a_b", "c") != cache_keys.episodes_of_quality("a", "b_c")

    def test_shapes_do_not_overlap(self):
        keys = {
            cache_keys.entry_by_title("x"),
            cache_keys.entry_by_id("x"),
            cache_keys.entries_by_genre("x"),
            cache_keys.entries_by_type("x"),
            cache_keys.search("x"),
            cache_keys.episodes_of("x"),
            cache_keys.episodes_of_quality("x", "x"),
            cache_keys.episode("x"),
        }
        assert len(keys) == 8

    def test_title_cannot_impersonate_another_shape(self):
        assert cache_keys.entry_by_title("x_y") != cache_keys.build_cache_key("entry_by_title", "x", "y")
        assert "_" not in cache_keys.encode_part("a_b%c")

    def test_quality_prefix_covers_only_that_entry(self):
        prefix = cache_keys.episodes_of_quality_prefix("abc")

        assert cache_keys.episodes_of_quality("abc", 720).startswith(prefix)
        assert not cache_keys.episodes_of("abc").startswith(prefix)
        assert not cache_keys.episodes_of_quality("abcd", 720).startswith(prefix)
