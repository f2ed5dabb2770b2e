from flask import Blueprint, request

from catalog_api.api_episodes import episodes_functions
from catalog_api.common_functions import request_fields
from catalog_api.context import EPISODES, MOVIES, get_cache, get_collection, setting
from catalog_api.errors import handle_errors
from catalog_api.responses import success

bp = Blueprint("episodes", __name__, url_prefix="/api/v1/episode")


@bp.route("/create", methods=["POST"])
@handle_errors("newEpisode")
def create_episode():
    """
    Handle POST requests that add an episode to a catalog entry.

    Returns:
        Response: Envelope with the created episode.
    """
    episode = episodes_functions.create_episode(
        get_collection(MOVIES),
        get_collection(EPISODES),
        get_cache(),
        request_fields(),
        strict=setting("CACHE_STRICT_INVALIDATION"),
    )
    return success(201, "Episode created and added to movie", episode)


@bp.route("/get/all/<movie_id>", methods=["GET"])
@handle_errors("getEpisodeByMovieId")
def get_episodes_by_movie(movie_id: str):
    """
    Handle GET requests for every episode of a catalog entry.

    Args:
        movie_id (str): Parent identifier from the path segment.

    Returns:
        Response: Envelope with the episodes.
    """
    episodes, from_cache = episodes_functions.list_episodes_by_movie(
        get_collection(EPISODES), get_cache(), movie_id, setting("EPISODE_CACHE_TTL_SECONDS")
    )
    message = "Episodes fetched from cache" if from_cache else "Episodes fetched successfully"
    return success(200, message, episodes)


@bp.route("/get/<episode_id>", methods=["GET"])
@handle_errors("getEpisodes")
def get_episode(episode_id: str):
    """
    Handle GET requests for a single episode.

    Args:
        episode_id (str): Identifier from the path segment.

    Returns:
        Response: Envelope with the episode.
    """
    episode, from_cache = episodes_functions.get_episode(
        get_collection(EPISODES), get_cache(), episode_id, setting("EPISODE_CACHE_TTL_SECONDS")
    )
    message = "Episode fetched from cache" if from_cache else "Episode fetched"
    return success(200, message, episode)


@bp.route("/get/quality/<movie_id>", methods=["GET", "POST"])
@handle_errors("getEpisodesByQuality")
def get_episodes_by_quality(movie_id: str):
    """
    Handle requests for an entry's episodes of one quality tier.

    Args:
        movie_id (str): Parent identifier from the path segment.

    Returns:
        Response: Envelope with the matching episodes.
    """
    quality = request_fields().get("quality") or request.args.get("quality")
    episodes, from_cache = episodes_functions.list_episodes_by_quality(
        get_collection(MOVIES), get_collection(EPISODES), get_cache(), movie_id, quality, setting("EPISODE_CACHE_TTL_SECONDS")
    )
    if from_cache:
        return success(200, f"Episodes with {quality} quality fetched from cache", episodes)
    return success(200, f"Episodes with {quality} quality found", episodes)


@bp.route("/update/<episode_id>", methods=["PUT"])
@handle_errors("updateEpisode")
def update_episode(episode_id: str):
    """
    Handle PUT requests that replace an episode's fields. All fields are required.

    Args:
        episode_id (str): Identifier from the path segment.

    Returns:
        Response: Envelope with the updated episode.
    """
    episode = episodes_functions.update_episode(
        get_collection(EPISODES),
        get_cache(),
        episode_id,
        request_fields(),
        strict=setting("CACHE_STRICT_INVALIDATION"),
    )
    return success(200, "Episode updated successfully", episode)


@bp.route("/delete/<episode_id>", methods=["DELETE"])
@handle_errors("deleteEpisode")
def delete_episode(episode_id: str):
    """
    Handle DELETE requests for an episode and unlink it from its parent.

    Args:
        episode_id (str): Identifier from the path segment.

    Returns:
        Response: Envelope with the removed episode.
    """
    episode = episodes_functions.delete_episode(
        get_collection(MOVIES),
        get_collection(EPISODES),
        get_cache(),
        episode_id,
        strict=setting("CACHE_STRICT_INVALIDATION"),
    )
    return success(200, "Episode deleted successfully", episode)
