from flask import Blueprint, request

from catalog_api.api_feedback import feedback_functions
from catalog_api.common_functions import request_fields
from catalog_api.context import FEEDBACK, get_cache, get_collection, get_uploader, setting
from catalog_api.errors import handle_errors
from catalog_api.responses import success
from catalog_api.uploads import collect_images

bp = Blueprint("feedback", __name__, url_prefix="/api/v1/feedback")


@bp.route("/create", methods=["POST"])
@handle_errors("create feedback")
def create_feedback():
    """
    Handle POST requests that submit feedback with an optional image.

    Returns:
        Response: Envelope with the stored feedback.
    """
    images = collect_images(request.files, "complain_sample_img", setting("ALLOWED_IMAGE_TYPES"), setting("MAX_UPLOAD_BYTES"), max_count=1)
    entry = feedback_functions.create_feedback(
        get_collection(FEEDBACK),
        get_cache(),
        get_uploader(),
        request_fields(),
        image_file=images[0] if images else None,
    )
    return success(201, "Feedback submitted successfully", entry)


@bp.route("/get", methods=["GET"])
@handle_errors("getAllFeedback")
def get_all_feedback():
    """
    Handle GET requests for every feedback entry.

    Returns:
        Response: Envelope with the entries.
    """
    entries, _ = feedback_functions.list_feedback(get_collection(FEEDBACK), get_cache())
    return success(200, "Fetch feedback successfully", entries)


@bp.route("/destroy/<feedback_id>", methods=["DELETE"])
@handle_errors("delete feedback")
def delete_feedback(feedback_id: str):
    """
    Handle DELETE requests for a feedback entry.

    Args:
        feedback_id (str): Identifier from the path segment.

    Returns:
        Response: Envelope with the removed entry.
    """
    entry = feedback_functions.delete_feedback(get_collection(FEEDBACK), get_cache(), feedback_id)
    return success(200, "Feedback deleted successfully", entry)
