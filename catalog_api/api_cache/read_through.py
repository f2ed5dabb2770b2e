import logging
from typing import Any, Callable

from catalog_api.errors import NotFound

logger = logging.getLogger(__name__)


def read_through(cache, key: str, loader: Callable[[], Any], ttl: int | None = None, missing_message: str = "Not found"):
    """
    Serve a query from the cache, falling back to the store on a miss.

    Empty results are never cached, so a later write that creates the
    missing data is visible on the next read.

    Args:
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        key (str): Key derived for the query.
        loader (Callable): Runs the store query and returns serialized data.
        ttl (int | None): Lifetime of the populated entry, store default when None.
        missing_message (str): Message of the NotFound raised on an empty result.

    Returns:
        tuple[Any, bool]: Result and whether it came from the cache.
    """
    cached = cache.get(key)
    if cached is not None:
        logger.debug("cache hit! %s", key)
        return cached, True

    logger.debug("cache miss %s, fetching from MongoDB", key)
    result = loader()
    if not result:
        raise NotFound(missing_message)

    cache.set(key, result, ttl)
    return result, False


def invalidate(cache, *keys: str):
    """Delete keys after a committed write and log what went."""
    removed = cache.delete(*keys)
    logger.debug("invalidated %s (%d present)", ", ".join(keys), removed)
    return removed
