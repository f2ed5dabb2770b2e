from flask import Blueprint, request

from catalog_api.api_movies import movies_functions
from catalog_api.common_functions import parse_limit_param, request_fields, safe_int
from catalog_api.context import EPISODES, MOVIES, get_cache, get_collection, get_uploader, setting
from catalog_api.errors import handle_errors
from catalog_api.responses import success
from catalog_api.uploads import collect_images

bp = Blueprint("movies", __name__, url_prefix="/api/v1/movie")


def fetched_message(from_cache: bool, subject: str = "Movies"):
    """Build the read message, noting when the payload came from the cache."""
    if from_cache:
        return f"{subject} fetched from cache successfully"
    return f"{subject} fetched successfully"


@bp.route("/create", methods=["POST"])
@handle_errors("new movie")
def create_movie():
    """
    Handle POST requests that create a catalog entry.

    Returns:
        Response: Envelope with the created entry.
    """
    allowed_types = setting("ALLOWED_IMAGE_TYPES")
    max_bytes = setting("MAX_UPLOAD_BYTES")
    posters = collect_images(request.files, "poster_img", allowed_types, max_bytes, max_count=1)
    samples = collect_images(request.files, "avail_quality_sample", allowed_types, max_bytes, max_count=setting("MAX_QUALITY_SAMPLES"))

    movie = movies_functions.create_movie(
        get_collection(MOVIES),
        get_cache(),
        get_uploader(),
        request_fields(movies_functions.LIST_FIELDS),
        poster_file=posters[0] if posters else None,
        sample_files=samples,
    )
    return success(201, "Movie created successfully", movie)


@bp.route("/get", methods=["GET"])
@handle_errors("get all movies")
def get_all_movies():
    """
    Handle GET requests for the whole catalog.

    Returns:
        Response: Envelope with every entry.
    """
    movies, from_cache = movies_functions.list_movies(get_collection(MOVIES), get_cache(), setting("CACHE_TTL_SECONDS"))
    return success(200, fetched_message(from_cache), movies)


@bp.route("/get/<title>", methods=["GET"])
@handle_errors("get movie by Title")
def get_movie_by_title(title: str):
    """
    Handle GET requests for a catalog entry by title.

    Args:
        title (str): Title from the path segment.

    Returns:
        Response: Envelope with the entry.
    """
    movie, from_cache = movies_functions.get_movie_by_title(get_collection(MOVIES), get_cache(), title, setting("CACHE_TTL_SECONDS"))
    return success(200, fetched_message(from_cache, "Movie"), movie)


@bp.route("/genre/<genre>", methods=["GET"])
@handle_errors("movieByGenre")
def get_movies_by_genre(genre: str):
    """
    Handle GET requests for entries whose genres match a filter.

    Args:
        genre (str): Genre from the path segment, matched case-insensitively.

    Returns:
        Response: Envelope with the matching entries.
    """
    movies, from_cache = movies_functions.list_movies_by_genre(get_collection(MOVIES), get_cache(), genre, setting("CACHE_TTL_SECONDS"))
    return success(200, fetched_message(from_cache), movies)


@bp.route("/get/type/<entry_type>", methods=["GET"])
@handle_errors("moviesByType")
def get_movies_by_type(entry_type: str):
    """
    Handle GET requests for entries of one type, such as movie or series.

    Args:
        entry_type (str): Type from the path segment.

    Returns:
        Response: Envelope with the matching entries.
    """
    movies, from_cache = movies_functions.list_movies_by_type(get_collection(MOVIES), get_cache(), entry_type, setting("CACHE_TTL_SECONDS"))
    if from_cache:
        return success(200, fetched_message(from_cache), movies)
    return success(200, f"{entry_type} found successfully", movies)


@bp.route("/search", methods=["GET", "POST"])
@handle_errors("search movies")
def search_movies():
    """
    Handle title searches given by the ``q`` query parameter.

    Returns:
        Response: Envelope with the matching entries.
    """
    movies, from_cache = movies_functions.search_movies(get_collection(MOVIES), get_cache(), request.args.get("q"), setting("CACHE_TTL_SECONDS"))
    message = "Search results found (from cache)" if from_cache else "Search results found"
    return success(200, message, movies)


@bp.route("/someMovies", methods=["GET"])
@handle_errors("get some movies")
def get_some_movies():
    """
    Handle paginated catalog reads driven by ``limit`` and ``skip``. Not cached.

    Returns:
        Response: Envelope with one page of entries.
    """
    limit = parse_limit_param(request.args.get("limit"), 10)
    skip = max(safe_int(request.args.get("skip"), 0), 0)
    movies = movies_functions.list_some_movies(get_collection(MOVIES), limit, skip)
    return success(200, "Movies fetched successfully", movies)


@bp.route("/update/<movie_id>", methods=["PUT"])
@handle_errors("update movie")
def update_movie(movie_id: str):
    """
    Handle PUT requests that patch a catalog entry.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Envelope with the updated entry.
    """
    movie = movies_functions.update_movie(
        get_collection(MOVIES),
        get_cache(),
        movie_id,
        request_fields(movies_functions.LIST_FIELDS),
        strict=setting("CACHE_STRICT_INVALIDATION"),
    )
    return success(200, "Movie updated successfully", movie)


@bp.route("/delete/<movie_id>", methods=["DELETE"])
@handle_errors("delete movie")
def delete_movie(movie_id: str):
    """
    Handle DELETE requests for a catalog entry.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Envelope with the removed entry.
    """
    movie = movies_functions.delete_movie(
        get_collection(MOVIES),
        get_collection(EPISODES),
        get_cache(),
        movie_id,
        strict=setting("CACHE_STRICT_INVALIDATION"),
        cascade=setting("CASCADE_EPISODE_DELETE"),
    )
    return success(200, "Movie deleted successfully", movie)
