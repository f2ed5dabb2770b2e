"""Accessors for the handles injected into the running application."""

from flask import current_app

EXTENSION_KEY = "catalog_api"

MOVIES = "movies"
EPISODES = "episodes"
FEEDBACK = "feedback"


def get_collection(name: str):
    """
    Return a collection from the application's database.

    Args:
        name (str): Collection name, one of MOVIES, EPISODES or FEEDBACK.

    Returns:
        Collection: PyMongo collection handle.
    """
    return current_app.extensions[EXTENSION_KEY]["database"][name]


def get_cache():
    """
    Return the cache store of the running application.

    Returns:
        MemoryCacheStore | RedisCacheStore: Cache store.
    """
    return current_app.extensions[EXTENSION_KEY]["cache"]


def get_uploader():
    """
    Return the asset upload service of the running application.

    Returns:
        CloudinaryUploader: Upload service, or the stand-in passed to create_app.
    """
    return current_app.extensions[EXTENSION_KEY]["uploader"]


def setting(name: str):
    """Read one configuration value from the running application."""
    return current_app.config[name]
