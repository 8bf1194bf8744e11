"""Image upload to Cloudinary."""
import io
import logging

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

from travellers.config import get_settings
from travellers.errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

FOLDER_PREFIX = "travellers-app"


def init_cloudinary() -> bool:
    """Configure the Cloudinary SDK from settings."""
    settings = get_settings()
    if not (settings.cloudinary_cloud_name and settings.cloudinary_api_key and settings.cloudinary_api_secret):
        return False

    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True,
    )
    return True


def upload_image(content: bytes, folder: str) -> str:
    """Upload image bytes and return the public HTTPS URL."""
    if not init_cloudinary():
        logger.error("Cloudinary not configured, cannot upload image")
        raise InternalError("Failed to upload image")

    try:
        result = cloudinary.uploader.upload(
            io.BytesIO(content),
            folder=f"{FOLDER_PREFIX}/{folder}",
            resource_type="auto",
            overwrite=True,
            unique_filename=True,
            use_filename=False,
        )
    except Exception as e:
        logger.error(f"Error uploading image: {e}")
        raise InternalError("Failed to upload image") from e

    url = result.get("secure_url")
    if not url:
        raise InternalError("Failed to upload image")
    return url


def read_image_upload(upload: UploadFile, field: str = "img") -> bytes:
    """Read an uploaded image, enforcing type and size limits.

    Reads the spooled file synchronously; call from a threadpool (plain
    ``def``) endpoint.
    """
    content = upload.file.read()
    if not content:
        raise ValidationError("Image file is empty", details=[{"field": field, "message": "Image file is empty"}])
    if len(content) > get_settings().max_image_bytes:
        raise ValidationError("Image is too large", details=[{"field": field, "message": "Image must be at most 2MB"}])
    if upload.content_type and not upload.content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed", details=[{"field": field, "message": "Not an image"}])
    return content
