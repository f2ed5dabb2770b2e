import os


def parse_flag(value, default: bool = False):
    """
    Parse an environment flag into a boolean.

    Args:
        value (Any): Raw value from the environment.
        default (bool): Fallback when the value is empty.

    Returns:
        bool: Parsed flag.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if not normalized:
        return default
    return normalized in {"1", "true", "yes", "on"}


MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "api_catalog")

CACHE_BACKEND = os.environ.get("CACHE_BACKEND", "memory").lower()
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("REDIS_PORT", 6379))
REDIS_DB = int(os.environ.get("REDIS_DB", 0))

CACHE_TTL_SECONDS = int(os.environ.get("CACHE_TTL_SECONDS", 24 * 3600))
EPISODE_CACHE_TTL_SECONDS = int(os.environ.get("EPISODE_CACHE_TTL_SECONDS", 12 * 3600))
CACHE_DEFAULT_TTL_SECONDS = int(os.environ.get("CACHE_DEFAULT_TTL_SECONDS", 24 * 3600))
CACHE_MAX_ENTRIES = int(os.environ.get("CACHE_MAX_ENTRIES", 10000))
CACHE_STRICT_INVALIDATION = parse_flag(os.environ.get("CACHE_STRICT_INVALIDATION"))
CASCADE_EPISODE_DELETE = parse_flag(os.environ.get("CASCADE_EPISODE_DELETE"))

MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
MAX_QUALITY_SAMPLES = int(os.environ.get("MAX_QUALITY_SAMPLES", 4))
ALLOWED_IMAGE_TYPES = ["image/png", "image/jpeg", "image/webp", "image/avif", "image/jpg"]

RATELIMIT_ENABLED = parse_flag(os.environ.get("RATELIMIT_ENABLED"), default=True)
RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "100 per 10 minutes")
RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again after 10 minutes."
PROXY_HOPS = int(os.environ.get("PROXY_HOPS", 1))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
PORT = int(os.environ.get("PORT", 4000))


def load_settings():
    """
    Collect the module settings into a mapping for ``app.config``.

    Returns:
        dict: Setting names mapped to their values.
    """
    return {
        "MONGO_URI": MONGO_URI,
        "MONGO_DB": MONGO_DB,
        "CACHE_BACKEND": CACHE_BACKEND,
        "REDIS_HOST": REDIS_HOST,
        "REDIS_PORT": REDIS_PORT,
        "REDIS_DB": REDIS_DB,
        "CACHE_TTL_SECONDS": CACHE_TTL_SECONDS,
        "EPISODE_CACHE_TTL_SECONDS": EPISODE_CACHE_TTL_SECONDS,
        "CACHE_DEFAULT_TTL_SECONDS": CACHE_DEFAULT_TTL_SECONDS,
        "CACHE_MAX_ENTRIES": CACHE_MAX_ENTRIES,
        "CACHE_STRICT_INVALIDATION": CACHE_STRICT_INVALIDATION,
        "CASCADE_EPISODE_DELETE": CASCADE_EPISODE_DELETE,
        "MAX_UPLOAD_BYTES": MAX_UPLOAD_BYTES,
        "MAX_QUALITY_SAMPLES": MAX_QUALITY_SAMPLES,
        "ALLOWED_IMAGE_TYPES": list(ALLOWED_IMAGE_TYPES),
        "RATELIMIT_ENABLED": RATELIMIT_ENABLED,
        "RATELIMIT_DEFAULT": RATELIMIT_DEFAULT,
        "RATELIMIT_STORAGE_URI": RATELIMIT_STORAGE_URI,
        "RATELIMIT_HEADERS_ENABLED": True,
        "RATE_LIMIT_MESSAGE": RATE_LIMIT_MESSAGE,
        "PROXY_HOPS": PROXY_HOPS,
        "LOG_LEVEL": LOG_LEVEL,
        "PORT": PORT,
    }
