import logging
from functools import wraps

from werkzeug.exceptions import HTTPException

from catalog_api.responses import error

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Failure that maps onto a response envelope."""

    status = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class ValidationFailed(CatalogError):
    status = 400


class NotFound(CatalogError):
    status = 404


class Conflict(CatalogError):
    status = 409


class UploadFailed(CatalogError):
    status = 500


def handle_errors(occurred_in: str):
    """
    Convert every failure raised by a view into an error envelope.

    Args:
        occurred_in (str): Operation name reported in ``occurredAt``.

    Returns:
        Callable: Decorator for Flask view functions.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except CatalogError as exc:
                if exc.status >= 500:
                    logger.error("%s failed: %s", occurred_in, exc.message)
                return error(exc.status, exc.message, occurred_in)
            except HTTPException as exc:
                return error(exc.code or 500, exc.description or exc.name, occurred_in)
            except Exception as exc:
                logger.exception("%s failed", occurred_in)
                return error(500, str(exc) or "Internal server error", occurred_in)
        return wrapper
    return decorator
