import logging
import os

import cloudinary.exceptions
import cloudinary.uploader
from werkzeug.datastructures import FileStorage

from catalog_api.errors import CatalogError, UploadFailed, ValidationFailed

logger = logging.getLogger(__name__)

POSTER_UPLOAD_OPTIONS = {"format": "avif", "quality": "70"}
FEEDBACK_UPLOAD_OPTIONS = {"folder": "feedback_images", "format": "avif", "transformation": [{"quality": "70"}]}


def file_size(file: FileStorage):
    """
    Measure an uploaded file without consuming its stream.

    Args:
        file (FileStorage): Uploaded file.

    Returns:
        int: Size in bytes.
    """
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def check_image(file: FileStorage, allowed_types: list[str], max_bytes: int):
    """
    Reject uploads that are not accepted image types or are too large.

    Args:
        file (FileStorage): Uploaded file.
        allowed_types (list[str]): Accepted MIME types.
        max_bytes (int): Maximum size in bytes.
    """
    if file.mimetype not in allowed_types:
        raise ValidationFailed("Only .png, .jpg, .webp, .avif, and .jpeg formats are allowed!")
    if file_size(file) > max_bytes:
        raise CatalogError(f"File exceeds the {max_bytes} byte limit", status=413)


def collect_images(files, field: str, allowed_types: list[str], max_bytes: int, max_count: int | None = None):
    """
    Pull and check the non-empty files submitted under one form field.

    Returns:
        list[FileStorage]: Accepted files in submission order.
    """
    images = [item for item in files.getlist(field) if item and item.filename]
    if max_count is not None and len(images) > max_count:
        raise ValidationFailed(f"At most {max_count} files are allowed for {field}")
    for image in images:
        check_image(image, allowed_types, max_bytes)
    return images


class CloudinaryUploader:
    """Uploads images to Cloudinary and returns their secure URL."""

    def upload(self, file, **options):
        """
        Upload an image and return its HTTPS URL.

        Args:
            file (FileStorage | IO): Uploaded file or readable stream.
            **options: Cloudinary upload options such as format and quality.

        Returns:
            str: The ``secure_url`` of the stored asset.
        """
        source = file.stream if isinstance(file, FileStorage) else file
        try:
            result = cloudinary.uploader.upload(source, **options)
        except cloudinary.exceptions.Error as exc:
            logger.error("image upload failed: %s", exc)
            raise UploadFailed(f"Image upload failed: {exc}") from exc

        secure_url = result.get("secure_url") if result else None
        if not secure_url:
            raise UploadFailed("Image upload returned no URL")
        return secure_url
