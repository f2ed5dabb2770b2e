"""Cache key scheme for the catalog service.

Every read query shape owns one key template. Parameters are percent-encoded
and the ``_`` separator is escaped as well, so a parameter can never contain
the separator and two different parameter tuples never produce the same key.
"""

from urllib.parse import quote

ALL_ENTRIES = "all_entries"
ALL_FEEDBACK = "all_feedback"


def encode_part(value) -> str:
    """Encode a key parameter so it cannot contain ``_``."""
    return quote(str(value), safe="").replace("_", "%5F")


def build_cache_key(prefix: str, *parts) -> str:
    """
    Join a prefix and encoded parameters into a cache key.

    Args:
        prefix (str): Query shape namespace.
        *parts: Parameters identifying the query.

    Returns:
        str: Cache key joined with underscores.
    """
    return "_".join([prefix, *(encode_part(part) for part in parts)])


def all_entries() -> str:
    """Key for the full catalog listing."""
    return ALL_ENTRIES


def entry_by_title(title: str) -> str:
    """
    Key for a single entry looked up by exact title.

    Args:
        title (str): Title from the request path.

    Returns:
        str: Cache key.
    """
    return build_cache_key("entry_by_title", title)


def entry_by_id(entry_id) -> str:
    """Key for a single entry looked up by identifier."""
    return build_cache_key("entry_by_id", entry_id)


def entries_by_genre(genre: str) -> str:
    """Key for the entries matching a genre filter."""
    return build_cache_key("entries_by_genre", genre)


def entries_by_type(entry_type: str) -> str:
    """Key for the entries matching a type filter."""
    return build_cache_key("entries_by_type", entry_type)


def search(query: str) -> str:
    """
    Key for a title search, one per raw query string.

    Args:
        query (str): Search text as submitted.

    Returns:
        str: Cache key.
    """
    return build_cache_key("search", query)


def episodes_of(entry_id) -> str:
    """Key for every episode of one entry."""
    return build_cache_key("episodes_of", entry_id)


def episodes_of_quality(entry_id, quality) -> str:
    """
    Key for the episodes of one entry in a single quality tier.

    Args:
        entry_id (ObjectId | str): Parent entry identifier.
        quality (int | str): Download quality, for example 1080.

    Returns:
        str: Cache key.
    """
    return build_cache_key("episodes_of", entry_id, quality)


def episodes_of_quality_prefix(entry_id) -> str:
    """Prefix shared by every quality-filtered episode list of one entry."""
    return episodes_of(entry_id) + "_"


def episode(episode_id) -> str:
    """Key for a single episode."""
    return build_cache_key("episode", episode_id)


def all_feedback() -> str:
    """Key for the full feedback listing."""
    return ALL_FEEDBACK
