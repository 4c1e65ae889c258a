"""
Local image storage for gallery and voting uploads
"""

import io
import logging
import os
import uuid

from PIL import Image, UnidentifiedImageError

from app.core.config import settings

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class InvalidUpload(Exception):
    """Raised when an uploaded file is not an acceptable image"""


class StorageService:
    """Writes uploaded images under UPLOAD_DIR and hands back their URL"""

    @staticmethod
    def save_image(file_content: bytes, folder: str) -> str:
        if not file_content:
            raise InvalidUpload("Uploaded file is empty")
        if len(file_content) > settings.MAX_UPLOAD_SIZE:
            raise InvalidUpload(f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB upload limit")

        try:
            with Image.open(io.BytesIO(file_content)) as img:
                image_format = (img.format or "png").lower()
                img.verify()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidUpload("Uploaded file is not a valid image") from e

        extension = "jpg" if image_format == "jpeg" else image_format
        upload_dir = os.path.join(settings.UPLOAD_DIR, folder)
        os.makedirs(upload_dir, exist_ok=True)

        filename = f"{uuid.uuid4().hex}.{extension}"
        with open(os.path.join(upload_dir, filename), 'wb') as f:
            f.write(file_content)

        return f"{URL_PREFIX}/{folder}/{filename}"

    @staticmethod
    def delete_image(photo_url: str) -> None:
        """Remove a stored image; URLs that are not ours are left alone"""
        if not photo_url.startswith(URL_PREFIX + "/"):
            return
        path = os.path.join(settings.UPLOAD_DIR, photo_url[len(URL_PREFIX) + 1:])
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Stored image already missing: {path}")
