import logging

from pymongo.collection import Collection

from catalog_api.api_cache import cache_keys
from catalog_api.api_cache.read_through import invalidate, read_through
from catalog_api.common_functions import clean_text, missing_fields, parse_object_id, serialize_document, serialize_documents, utc_timestamp_iso
from catalog_api.errors import NotFound, ValidationFailed
from catalog_api.uploads import FEEDBACK_UPLOAD_OPTIONS

logger = logging.getLogger(__name__)


def create_feedback(feedback: Collection, cache, uploader, fields: dict, image_file=None):
    """
    Store a feedback submission, uploading its optional image first.

    Args:
        feedback (Collection): Feedback collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.
        uploader (CloudinaryUploader): Asset upload service.
        fields (dict): Submitted fields.
        image_file (FileStorage | None): Optional attachment.

    Returns:
        dict: Serialized feedback entry.
    """
    values = {name: clean_text(fields.get(name)) for name in ("user_name", "user_email", "user_message")}
    if missing_fields(values):
        raise ValidationFailed("All fields are required")

    image_url = uploader.upload(image_file, **FEEDBACK_UPLOAD_OPTIONS) if image_file else None

    timestamp = utc_timestamp_iso()
    document = {**values, "complain_sample_img": image_url, "created_at": timestamp, "updated_at": timestamp}
    result = feedback.insert_one(document)
    document["_id"] = result.inserted_id

    invalidate(cache, cache_keys.all_feedback())
    return serialize_document(document)


def list_feedback(feedback: Collection, cache):
    """
    List every feedback entry through the cache.

    No TTL is passed, so the store's default lifetime applies.

    Args:
        feedback (Collection): Feedback collection.
        cache (MemoryCacheStore | RedisCacheStore): Cache store.

    Returns:
        tuple[list[dict], bool]: Entries and whether they came from the cache.
    """
    return read_through(
        cache,
        cache_keys.all_feedback(),
        lambda: serialize_documents(feedback.find()),
        missing_message="Feedback not found",
    )


def delete_feedback(feedback: Collection, cache, feedback_id: str):
    """Delete a feedback entry and purge the cached listing."""
    object_id = parse_object_id(feedback_id, "feedback ID")
    document = feedback.find_one_and_delete({"_id": object_id})
    if not document:
        raise NotFound("Feedback not found")

    invalidate(cache, cache_keys.all_feedback())
    return serialize_document(document)
