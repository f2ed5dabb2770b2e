import heapq
import json
import logging
import threading
import time
from typing import Any, Callable

import redis

logger = logging.getLogger(__name__)


class MemoryCacheStore:
    """
    Process-local key/value cache with a time-to-live per entry.

    Values are kept as JSON text so a cached payload can never be mutated
    through a reference held by a caller. Expiry is lazy: an expired entry
    is dropped the first time it is looked up, or when the store grows past
    ``max_entries``.
    """

    def __init__(self, default_ttl: int = 24 * 3600, max_entries: int | None = None, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            default_ttl (int): Lifetime in seconds used when set() gets no ttl.
            max_entries (int | None): Soft bound on the number of entries, none when omitted.
            clock (Callable): Monotonic time source in seconds.
        """
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str):
        """
        Return the cached value for a key.

        Args:
            key (str): Cache key.

        Returns:
            Any | None: Decoded value, or None when absent or expired.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            payload, expires_at = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
        return json.loads(payload)

    def set(self, key: str, value: Any, ttl: int | None = None):
        """
        Store a value under a key for ``ttl`` seconds.

        Args:
            key (str): Cache key.
            value (Any): JSON-serializable payload.
            ttl (int | None): Lifetime in seconds, store default when None.
        """
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        payload = json.dumps(value)
        with self._lock:
            self._entries[key] = (payload, self.clock() + ttl)
            if self.max_entries and len(self._entries) > self.max_entries:
                self._shrink()

    def delete(self, *keys: str):
        """
        Remove keys from the cache.

        Returns:
            int: Number of keys that were present.
        """
        removed = 0
        with self._lock:
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
        return removed

    def delete_prefix(self, prefix: str):
        """Remove every key starting with ``prefix`` and return how many went."""
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def purge_expired(self):
        """Drop every expired entry and return how many went."""
        with self._lock:
            return self._purge_expired()

    def __len__(self):
        """Number of stored entries, expired ones included until they are purged."""
        with self._lock:
            return len(self._entries)

    def _purge_expired(self):
        now = self.clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _shrink(self):
        # Caller holds the lock.
        self._purge_expired()
        if len(self._entries) <= self.max_entries:
            return
        # Evict down to 90% of the bound.
        overflow = len(self._entries) - (self.max_entries - self.max_entries // 10)
        soonest = heapq.nsmallest(overflow, self._entries.items(), key=lambda item: item[1][1])
        for key, _ in soonest:
            del self._entries[key]
        logger.debug("cache bound reached, evicted %d entries", overflow)


class RedisCacheStore:
    """Cache store backed by a shared Redis server, same contract as MemoryCacheStore."""

    def __init__(self, client: redis.Redis, default_ttl: int = 24 * 3600):
        """
        Args:
            client (redis.Redis): Connected Redis client.
            default_ttl (int): Lifetime in seconds used when set() gets no ttl.
        """
        self.client = client
        self.default_ttl = default_ttl

    def get(self, key: str):
        """
        Return the decoded value stored under a key.

        An entry that is not valid JSON is deleted and reported as a miss.

        Args:
            key (str): Cache key.

        Returns:
            Any | None: Decoded value, or None when absent.
        """
        cached = self.client.get(key)
        if not cached:
            return None
        try:
            return json.loads(cached)
        except json.JSONDecodeError:
            logger.warning("dropping undecodable cache entry %s", key)
            self.client.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: int | None = None):
        """Store a value with SETEX, skipping non-positive lifetimes."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        self.client.setex(key, ttl, json.dumps(value))

    def delete(self, *keys: str):
        """Remove keys and return how many existed."""
        if not keys:
            return 0
        return int(self.client.delete(*keys))

    def delete_prefix(self, prefix: str):
        """
        Remove every key starting with a prefix.

        Args:
            prefix (str): Key prefix, matched with SCAN.

        Returns:
            int: Number of keys removed.
        """
        removed = 0
        for key in self.client.scan_iter(f"{prefix}*"):
            removed += int(self.client.delete(key))
        return removed


def build_cache_store(settings: dict):
    """
    Construct the cache store named by ``CACHE_BACKEND``.

    Args:
        settings (dict): Application configuration.

    Returns:
        MemoryCacheStore | RedisCacheStore: Store instance for the application.
    """
    backend = settings.get("CACHE_BACKEND", "memory")
    default_ttl = settings.get("CACHE_DEFAULT_TTL_SECONDS", 24 * 3600)

    if backend == "redis":
        client = redis.Redis(
            host=settings.get("REDIS_HOST", "localhost"),
            port=int(settings.get("REDIS_PORT", 6379)),
            db=int(settings.get("REDIS_DB", 0)),
        )
        logger.info("using redis cache at %s:%s", settings.get("REDIS_HOST"), settings.get("REDIS_PORT"))
        return RedisCacheStore(client, default_ttl=default_ttl)

    if backend != "memory":
        raise ValueError(f"Unknown cache backend: {backend}")

    return MemoryCacheStore(default_ttl=default_ttl, max_entries=settings.get("CACHE_MAX_ENTRIES"))
