import logging

from pymongo import ReturnDocument
from pymongo.collection import Collection

from catalog_api.api_cache import cache_keys
from catalog_api.api_cache.read_through import invalidate, read_through
from catalog_api.common_functions import clean_text, missing_fields, parse_object_id, require_number, serialize_document, serialize_documents, utc_timestamp_iso
from catalog_api.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

EPISODE_FIELDS = ("movie_id", "title", "season", "download_quality", "download_link", "episode_number")


def build_episode_fields(fields: dict):
    """
    Validate the full set of episode fields.

    Args:
        fields (dict): Submitted fields.

    Returns:
        tuple[ObjectId, dict]: Parent identifier and the storable episode fields.
    """
    values = {name: clean_text(fields.get(name)) for name in EPISODE_FIELDS}
    if missing_fields(values):
        raise ValidationFailed("All fields are required")

    movie_id = parse_object_id(values["movie_id"], "movie ID")
    episode = {
        "title": values["title"],
        "season": values["season"],
        "download_quality": require_number(values["download_quality"], "download_quality", integer=True),
        "download_link": values["download_link"],
        "episode_number": require_number(values["episode_number"], "episode_number", integer=True),
    }
    return movie_id, episode


def parse_quality(value):
    """Parse a requested quality tier, which is required."""
    quality = clean_text(value)
    if not quality:
        raise ValidationFailed("Movie ID and quality are required")
    return require_number(quality, "quality", integer=True)


def quality_keys(movie_id, *qualities):
    """Distinct quality-filtered list keys of one entry."""
    return [cache_keys.episodes_of_quality(movie_id, quality) for quality in dict.fromkeys(qualities) if quality is not None]


def create_episode(movies: Collection, episodes: Collection, cache, fields: dict, strict: bool = False):
    """
    Insert an episode and append it to its parent's episode list.

    The parent list is changed with a single ``$push``. If the parent
    disappeared between the existence check and the push, the new episode is
    removed again so no unreferenced row is left behind.

    Args:
        movies (Collection): Catalog entry collection.
        episodes (Collection): Episode collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        fields (dict): Submitted fields.
        strict (bool): Also purge the quality-filtered list of the parent.

    Returns:
        dict: Serialized created episode.
    """
    movie_id, episode = build_episode_fields(fields)

    if not movies.find_one({"_id": movie_id}, projection={"_id": 1}):
        raise NotFound("Movie not found")

    timestamp = utc_timestamp_iso()
    document = {"movie_id": movie_id, **episode, "created_at": timestamp, "updated_at": timestamp}
    result = episodes.insert_one(document)
    document["_id"] = result.inserted_id

    pushed = movies.update_one({"_id": movie_id}, {"$push": {"episodes": result.inserted_id}})
    if not pushed.matched_count:
        episodes.delete_one({"_id": result.inserted_id})
        logger.warning("parent %s vanished while adding episode %s, rolled back", movie_id, result.inserted_id)
        raise NotFound("Movie not found")

    keys = [cache_keys.episodes_of(movie_id)]
    if strict:
        keys.extend(quality_keys(movie_id, episode["download_quality"]))
    invalidate(cache, *keys)
    return serialize_document(document)


def list_episodes_by_movie(episodes: Collection, cache, movie_id: str, ttl: int):
    """
    List the episodes whose parent is the given entry.

    Args:
        episodes (Collection): Episode collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        movie_id (str): Parent identifier.
        ttl (int): Cache lifetime in seconds.

    Returns:
        tuple[list[dict], bool]: Episodes and whether they came from the cache.
    """
    object_id = parse_object_id(movie_id, "movie ID")
    return read_through(
        cache,
        cache_keys.episodes_of(object_id),
        lambda: serialize_documents(episodes.find({"movie_id": object_id})),
        ttl,
        "No episodes found",
    )


def get_episode(episodes: Collection, cache, episode_id: str, ttl: int):
    """Fetch one episode through the cache."""
    object_id = parse_object_id(episode_id, "episode ID")
    return read_through(
        cache,
        cache_keys.episode(object_id),
        lambda: serialize_document(episodes.find_one({"_id": object_id})),
        ttl,
        "Episode not found",
    )


def list_episodes_by_quality(movies: Collection, episodes: Collection, cache, movie_id: str, quality, ttl: int):
    """
    List the episodes referenced by an entry that have the given quality tier.

    Args:
        movies (Collection): Catalog entry collection.
        episodes (Collection): Episode collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        movie_id (str): Parent identifier.
        quality (Any): Requested quality tier.
        ttl (int): Cache lifetime in seconds.

    Returns:
        tuple[list[dict], bool]: Matching episodes and whether they came from the cache.
    """
    object_id = parse_object_id(movie_id, "movie ID")
    quality = parse_quality(quality)

    def load():
        movie = movies.find_one({"_id": object_id}, projection={"episodes": 1})
        if not movie:
            raise NotFound("Movie not found")
        references = movie.get("episodes") or []
        if not references:
            raise NotFound("No episodes found for this movie")
        return serialize_documents(episodes.find({"_id": {"$in": references}, "download_quality": quality}))

    return read_through(
        cache,
        cache_keys.episodes_of_quality(object_id, quality),
        load,
        ttl,
        f"No episodes found with {quality} quality",
    )


def update_episode(episodes: Collection, cache, episode_id: str, fields: dict, strict: bool = False):
    """
    Replace an episode's fields. The submitted ``movie_id`` is required but
    the stored parent is kept, and the stored parent's list key is purged.

    Returns:
        dict: Serialized updated episode.
    """
    object_id = parse_object_id(episode_id, "episode ID")
    _, updates = build_episode_fields(fields)
    updates["updated_at"] = utc_timestamp_iso()

    previous = episodes.find_one_and_update({"_id": object_id}, {"$set": updates}, return_document=ReturnDocument.BEFORE)
    if not previous:
        raise NotFound("Episode not found")

    parent_id = previous.get("movie_id")
    keys = [cache_keys.episode(object_id), cache_keys.episodes_of(parent_id)]
    if strict:
        keys.extend(quality_keys(parent_id, previous.get("download_quality"), updates["download_quality"]))
    invalidate(cache, *keys)
    return serialize_document({**previous, **updates})


def delete_episode(movies: Collection, episodes: Collection, cache, episode_id: str, strict: bool = False):
    """
    Delete an episode and pull its id out of every entry that lists it.

    Returns:
        dict: Serialized deleted episode.
    """
    object_id = parse_object_id(episode_id, "episode ID")
    document = episodes.find_one_and_delete({"_id": object_id})
    if not document:
        raise NotFound("Episode not found")

    movies.update_many({"episodes": object_id}, {"$pull": {"episodes": object_id}})

    parent_id = document.get("movie_id")
    keys = [cache_keys.episode(object_id), cache_keys.episodes_of(parent_id)]
    if strict:
        keys.extend(quality_keys(parent_id, document.get("download_quality")))
    invalidate(cache, *keys)
    return serialize_document(document)
