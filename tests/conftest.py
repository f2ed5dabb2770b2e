"""
Pytest fixtures for the catalog API tests
"""
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import mongomock
import pytest

from catalog_api import create_app
from catalog_api.api_cache.cache_store import MemoryCacheStore

POSTER_URL = "https://res.cloudinary.com/demo/image/upload/poster.avif"


class FakeClock:
    """Manually advanced clock for TTL tests"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCacheStore(default_ttl=86400, clock=clock)


@pytest.fixture
def database():
    return mongomock.MongoClient()["test_catalog"]


@pytest.fixture
def uploader():
    mock_uploader = MagicMock()
    mock_uploader.upload.return_value = POSTER_URL
    return mock_uploader


@pytest.fixture
def settings():
    return {"TESTING": True, "LOG_LEVEL": "WARNING", "RATELIMIT_ENABLED": False}


@pytest.fixture
def app(settings, database, cache, uploader):
    return create_app(settings=settings, database=database, cache=cache, uploader=uploader)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def movie_payload():
    """Build a valid JSON body for movie creation"""
    def build(**overrides):
        payload = {
            "title": "Nova",
            "type": "series",
            "poster_img": POSTER_URL,
            "short_desc": "A star collapses.",
            "long_desc": "A crew follows a collapsing star across seasons.",
            "imdb_rating": "8.1",
            "release_year": "2023",
            "avail_lang": "English",
            "runtime": "52",
            "director": "A. Director",
            "genres": ["Sci-Fi", "Drama"],
            "avail_quality": ["720p", "1080p"],
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def create_movie(client, movie_payload):
    """Create a movie through the API and return its response document"""
    def create(**overrides):
        response = client.post("/api/v1/movie/create", json=movie_payload(**overrides))
        assert response.status_code == 201, response.get_json()
        return response.get_json()["response"]
    return create


@pytest.fixture
def create_episode(client):
    """Create an episode through the API and return its response document"""
    def create(movie_id: str, **overrides):
        payload = {
            "movie_id": movie_id,
            "title": "Pilot",
            "season": "1",
            "download_quality": 1080,
            "download_link": "https://downloads.example/nova/s1e1",
            "episode_number": 1,
        }
        payload.update(overrides)
        response = client.post("/api/v1/episode/create", json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["response"]
    return create


@contextmanager
def count_queries():
    """Record read queries issued against any mongomock collection"""
    calls = []
    original_find = mongomock.Collection.find
    original_find_one = mongomock.Collection.find_one

    def find(self, *args, **kwargs):
        calls.append((self.name, "find"))
        return original_find(self, *args, **kwargs)

    def find_one(self, *args, **kwargs):
        calls.append((self.name, "find_one"))
        return original_find_one(self, *args, **kwargs)

    with patch.object(mongomock.Collection, "find", find), patch.object(mongomock.Collection, "find_one", find_one):
        yield calls


@pytest.fixture
def query_counter():
    return count_queries


def seed_cache(cache, keys):
    """Populate each key with a marker value"""
    for key in keys:
        cache.set(key, {"seeded": key})


def removed_keys(cache, keys):
    """Return the seeded keys that are no longer cached"""
    return {key for key in keys if cache.get(key) is None}
