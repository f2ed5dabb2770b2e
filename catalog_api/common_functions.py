import math
from datetime import datetime, timezone

from bson import ObjectId
from flask import request

from catalog_api.errors import ValidationFailed


def serialize_value(value):
    """
    Convert BSON values into JSON-friendly values.

    Args:
        value (Any): Value read from MongoDB.

    Returns:
        Any: Value with ObjectIds as strings and datetimes in ISO format.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [serialize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    return value


def serialize_document(document: dict | None):
    """
    Convert a MongoDB document into a dict for JSON output.

    Args:
        document (dict | None): Document from the collection.

    Returns:
        dict: Copy with `_id` and references stored as strings.
    """
    if not document:
        return {}
    return {key: serialize_value(value) for key, value in document.items()}


def serialize_documents(documents):
    return [serialize_document(document) for document in documents]


def safe_float(value, default=0.0):
    """
    Convert arbitrary values into floats while guarding against failures.

    Args:
        value (Any): Raw value to convert.
        default (float): Fallback value when parsing is unsuccessful.

    Returns:
        float: Parsed float or the provided default.
    """
    if value is None:
        return default
    try:
        return float(str(value).replace(",", "."))
    except (TypeError, ValueError):
        return default


def safe_int(value, default=0):
    """
    Parse a value into an integer, tolerating strings and floats.

    Args:
        value (Any): Raw value to convert.
        default (int): Fallback value when parsing fails.

    Returns:
        int: Parsed integer or the default.
    """
    if value is None:
        return default
    try:
        return int(float(str(value).split()[0]))
    except (TypeError, ValueError, IndexError, OverflowError):
        return default


def require_number(value, field: str, integer: bool = False):
    """
    Coerce a submitted value to a number or fail validation.

    Args:
        value (Any): Submitted value.
        field (str): Field name used in the error message.
        integer (bool): Parse as int instead of float.

    Returns:
        int | float: Parsed number.
    """
    parsed = safe_int(value, None) if integer else safe_float(value, None)
    if parsed is None or not math.isfinite(parsed):
        raise ValidationFailed(f"{field} must be a number")
    return parsed


def parse_object_id(identifier: str, label: str = "ID"):
    """
    Validate and convert a path identifier into an ObjectId.

    Args:
        identifier (str): Identifier from the request.
        label (str): Entity name used in the error message.

    Returns:
        ObjectId: Parsed identifier.
    """
    if not identifier or not ObjectId.is_valid(identifier):
        raise ValidationFailed(f"Invalid {label}")
    return ObjectId(identifier)


def parse_limit_param(raw_value: object, default_limit: int, max_limit: int | None = None):
    """
    Parse a positive limit from the query string.

    Args:
        raw_value (object): Raw query parameter.
        default_limit (int): Value used when missing or invalid.
        max_limit (int | None): Upper bound, none when omitted.

    Returns:
        int: Sanitized limit.
    """
    limit = safe_int(raw_value, default_limit)
    if limit <= 0:
        limit = default_limit
    if max_limit is not None:
        limit = min(limit, max_limit)
    return limit


def clean_text(value):
    if value is None:
        return ""
    return str(value).strip()


def missing_fields(fields: dict):
    """Return the names of fields whose value is empty."""
    return [name for name, value in fields.items() if value in (None, "", [])]


def utc_timestamp_iso():
    """
    Return the current UTC timestamp in ISO 8601 format.

    Returns:
        str: Timestamp string without microseconds and suffixed with ``Z``.
    """
    return datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat() + "Z"


def request_fields(list_fields=()):
    """
    Read submitted fields from a JSON body or a form.

    Args:
        list_fields (Iterable[str]): Form fields that may repeat and are kept as lists.

    Returns:
        dict: Field names mapped to submitted values.
    """
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload

    fields = request.form.to_dict()
    for name in list_fields:
        if name in request.form:
            fields[name] = request.form.getlist(name)
    return fields
