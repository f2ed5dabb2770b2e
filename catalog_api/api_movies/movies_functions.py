import logging
import re

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection

from catalog_api.api_cache import cache_keys
from catalog_api.api_cache.read_through import invalidate, read_through
from catalog_api.common_functions import clean_text, missing_fields, parse_object_id, require_number, serialize_document, serialize_documents
from catalog_api.errors import Conflict, NotFound, ValidationFailed
from catalog_api.uploads import POSTER_UPLOAD_OPTIONS

logger = logging.getLogger(__name__)

LIST_FIELDS = ("genres", "avail_quality", "avail_downloads", "avail_quality_sample")
NUMBER_FIELDS = {"imdb_rating": False, "release_year": True, "runtime": True}
TEXT_FIELDS = ("title", "type", "short_desc", "long_desc", "avail_lang", "director")
MUTABLE_FIELDS = (
    "title",
    "poster_img",
    "short_desc",
    "long_desc",
    "imdb_rating",
    "release_year",
    "avail_lang",
    "type",
    "runtime",
    "director",
    "avail_quality_sample",
    "genres",
    "avail_quality",
    "avail_downloads",
)


def normalize_list(value):
    """
    Turn a submitted value into a list of non-empty strings.

    Args:
        value (Any): Single value, list, or None.

    Returns:
        list: Cleaned list.
    """
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [item.strip() if isinstance(item, str) else item for item in value if item not in (None, "")]


def literal_pattern(text: str):
    """Case-insensitive regex filter matching ``text`` as a literal substring."""
    return {"$regex": re.escape(text), "$options": "i"}


def find_title_owner(movies: Collection, title: str):
    """Return the id of the entry holding ``title``, if any."""
    return movies.find_one({"title": title}, projection={"_id": 1})


def create_movie(movies: Collection, cache, uploader, fields: dict, poster_file=None, sample_files=None):
    """
    Validate, upload images and insert a catalog entry.

    Args:
        movies (Collection): Catalog entry collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        uploader (CloudinaryUploader): Asset upload service.
        fields (dict): Submitted fields.
        poster_file (FileStorage | None): Poster image.
        sample_files (list | None): Quality sample images.

    Returns:
        dict: Serialized created entry.
    """
    title = clean_text(fields.get("title"))
    poster_url = clean_text(fields.get("poster_img"))
    required = {
        "title": title,
        "type": clean_text(fields.get("type")),
        "poster_img": poster_file or poster_url,
        "short_desc": clean_text(fields.get("short_desc")),
        "imdb_rating": clean_text(fields.get("imdb_rating")),
        "release_year": clean_text(fields.get("release_year")),
        "runtime": clean_text(fields.get("runtime")),
    }
    if missing_fields(required):
        raise ValidationFailed("All fields are required")

    document = {name: clean_text(fields.get(name)) for name in TEXT_FIELDS}
    for name, integer in NUMBER_FIELDS.items():
        document[name] = require_number(fields.get(name), name, integer=integer)
    for name in LIST_FIELDS:
        document[name] = normalize_list(fields.get(name))

    if find_title_owner(movies, title):
        raise Conflict("Movie already exists")

    if poster_file:
        poster_url = uploader.upload(poster_file, **POSTER_UPLOAD_OPTIONS)
    document["poster_img"] = poster_url
    if sample_files:
        document["avail_quality_sample"] = [uploader.upload(sample, **POSTER_UPLOAD_OPTIONS) for sample in sample_files]
    document["episodes"] = []

    result = movies.insert_one(document)
    document["_id"] = result.inserted_id
    logger.info("created catalog entry %s", result.inserted_id)

    invalidate(cache, cache_keys.all_entries())
    return serialize_document(document)


def list_movies(movies: Collection, cache, ttl: int):
    """
    List the whole catalog through the cache.

    Args:
        movies (Collection): Catalog entry collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        ttl (int): Cache lifetime in seconds.

    Returns:
        tuple[list[dict], bool]: Entries and whether they came from the cache.
    """
    return read_through(
        cache,
        cache_keys.all_entries(),
        lambda: serialize_documents(movies.find()),
        ttl,
        "No movies found",
    )


def get_movie_by_title(movies: Collection, cache, title: str, ttl: int):
    """Fetch one entry by exact title through the cache."""
    title = clean_text(title)
    if not title:
        raise ValidationFailed("Movie title is required")
    return read_through(
        cache,
        cache_keys.entry_by_title(title),
        lambda: serialize_document(movies.find_one({"title": title})),
        ttl,
        "Movie not found",
    )


def list_movies_by_genre(movies: Collection, cache, genre: str, ttl: int):
    """
    List entries with a genre containing ``genre``, ignoring case.

    Args:
        movies (Collection): Catalog entry collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        genre (str): Genre filter.
        ttl (int): Cache lifetime in seconds.

    Returns:
        tuple[list[dict], bool]: Entries and whether they came from the cache.
    """
    genre = clean_text(genre)
    if not genre:
        raise ValidationFailed("Genre ID not provided")
    return read_through(
        cache,
        cache_keys.entries_by_genre(genre),
        lambda: serialize_documents(movies.find({"genres": literal_pattern(genre)})),
        ttl,
        "No movies found for this genre",
    )


def list_movies_by_type(movies: Collection, cache, entry_type: str, ttl: int):
    """List entries whose type contains ``entry_type``, ignoring case."""
    entry_type = clean_text(entry_type)
    if not entry_type:
        raise ValidationFailed("Type is not found")
    return read_through(
        cache,
        cache_keys.entries_by_type(entry_type),
        lambda: serialize_documents(movies.find({"type": literal_pattern(entry_type)})),
        ttl,
        "No movie found",
    )


def search_movies(movies: Collection, cache, query: str | None, ttl: int):
    """
    Case-insensitive title substring search, cached per raw query string.

    Args:
        movies (Collection): Catalog entry collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        query (str | None): Raw search text.
        ttl (int): Cache lifetime in seconds.

    Returns:
        tuple[list[dict], bool]: Matches and whether they came from the cache.
    """
    if not query:
        raise ValidationFailed("Search query not provided")
    return read_through(
        cache,
        cache_keys.search(query),
        lambda: serialize_documents(movies.find({"title": literal_pattern(query)})),
        ttl,
        "No movies found",
    )


def list_some_movies(movies: Collection, limit: int, skip: int):
    """
    Return one page of the catalog straight from the store.

    Args:
        movies (Collection): Catalog entry collection.
        limit (int): Page size.
        skip (int): Number of entries to skip.

    Returns:
        list[dict]: Serialized entries.
    """
    documents = serialize_documents(movies.find().skip(max(skip, 0)).limit(limit))
    if not documents:
        raise NotFound("No movies found")
    return documents


def build_movie_updates(fields: dict):
    """
    Keep the enumerated mutable fields that carry a value.

    Args:
        fields (dict): Submitted fields.

    Returns:
        dict: Fields for a ``$set`` update.
    """
    updates = {}
    for name in MUTABLE_FIELDS:
        value = fields.get(name)
        if name in LIST_FIELDS:
            value = normalize_list(value)
        elif isinstance(value, str):
            value = value.strip()
        if not value:
            continue
        if name in NUMBER_FIELDS:
            value = require_number(value, name, integer=NUMBER_FIELDS[name])
        updates[name] = value
    return updates


def update_movie(movies: Collection, cache, movie_id: str, fields: dict, strict: bool = False):
    """
    Patch a catalog entry and purge the keys that depend on it.

    The title-keyed entry is only purged in strict mode; otherwise a title
    lookup may serve the pre-update document until its TTL runs out.

    Args:
        movies (Collection): Catalog entry collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        movie_id (str): Entry identifier.
        fields (dict): Submitted fields.
        strict (bool): Also purge title keys.

    Returns:
        dict: Serialized updated entry.
    """
    object_id = parse_object_id(movie_id, "movie ID")
    updates = build_movie_updates(fields)
    if not updates:
        raise ValidationFailed("No updatable fields provided")

    if "title" in updates:
        owner = find_title_owner(movies, updates["title"])
        if owner and owner["_id"] != object_id:
            raise Conflict("Movie already exists")

    previous = movies.find_one_and_update({"_id": object_id}, {"$set": updates}, return_document=ReturnDocument.BEFORE)
    if not previous:
        raise NotFound("Movie not found")

    keys = [cache_keys.entry_by_id(object_id), cache_keys.all_entries()]
    if strict:
        keys.append(cache_keys.entry_by_title(previous.get("title", "")))
        if updates.get("title"):
            keys.append(cache_keys.entry_by_title(updates["title"]))
    invalidate(cache, *keys)

    return serialize_document({**previous, **updates})


def delete_movie(movies: Collection, episodes: Collection, cache, movie_id: str, strict: bool = False, cascade: bool = False):
    """
    Delete a catalog entry.

    Without ``cascade`` the entry's episodes stay in place as orphans; with it
    they are deleted too and their cached reads purged.

    Returns:
        dict: Serialized deleted entry.
    """
    object_id = parse_object_id(movie_id, "movie ID")
    document = movies.find_one_and_delete({"_id": object_id})
    if not document:
        raise NotFound("Movie not found")

    keys = [cache_keys.entry_by_id(object_id), cache_keys.all_entries()]
    if strict:
        keys.append(cache_keys.entry_by_title(document.get("title", "")))

    if cascade:
        episode_ids = {episode["_id"] for episode in episodes.find({"movie_id": object_id}, projection={"_id": 1})}
        episode_ids.update(ref for ref in document.get("episodes", []) if isinstance(ref, ObjectId))
        if episode_ids:
            episodes.delete_many({"_id": {"$in": list(episode_ids)}})
        logger.info("cascade deleted %d episodes of %s", len(episode_ids), movie_id)
        keys.extend(cache_keys.episode(episode_id) for episode_id in episode_ids)
        keys.append(cache_keys.episodes_of(object_id))
        cache.delete_prefix(cache_keys.episodes_of_quality_prefix(object_id))

    invalidate(cache, *keys)
    return serialize_document(document)
