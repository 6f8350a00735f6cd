import logging
import time
from typing import Optional

import cloudinary
from cloudinary import uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile

from devforum.core.config import settings
from devforum.core.exceptions import InvalidInputError, InternalError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp"]

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True
)


def image_public_id(prefix: str, user_id: int) -> str:
    return f"{prefix}_{user_id}_{int(time.time())}"


async def upload_image(image: UploadFile, folder: str, public_id: str) -> dict:
    """Validate and upload an image; returns the stored URL and its public id."""
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidInputError("Invalid image format")

    data = await image.read()
    if len(data) > settings.MAX_IMAGE_SIZE:
        raise InvalidInputError(f"File too large (max {settings.MAX_IMAGE_SIZE // (1024 * 1024)}MB)")

    try:
        upload_result = uploader.upload(
            data,
            folder=folder,
            public_id=public_id,
            resource_type="image",
            overwrite=True,
            quality="auto:good"
        )
    except CloudinaryError as e:
        logger.error(f"Cloudinary Error: {str(e)}")
        raise InternalError("Image upload failed")

    return {
        "image_url": upload_result["secure_url"],
        "image_public_id": upload_result["public_id"]
    }


def destroy_image(public_id: Optional[str]):
    if not public_id:
        return
    try:
        uploader.destroy(public_id)
    except CloudinaryError as e:
        logger.error(f"Cloudinary cleanup error: {str(e)}")
