from catalog_api.api_cache.cache_store import MemoryCacheStore, RedisCacheStore, build_cache_store
from catalog_api.api_cache.read_through import invalidate, read_through

__all__ = ["MemoryCacheStore", "RedisCacheStore", "build_cache_store", "invalidate", "read_through"]
