"""Uploads of listing photos, profile pictures and ID documents to Cloudinary."""
import logging

import cloudinary
import cloudinary.uploader

from config import settings
from errors import ImageUploadError

logger = logging.getLogger(__name__)

PROPERTY_FOLDER = "housing_hub_properties"
PROFILE_FOLDER = "housing_hub_profiles"
VERIFICATION_FOLDER = "housing_hub_verifications"


class CloudinaryClient:
    def __init__(self):
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )

    def upload(self, file, folder: str) -> str:
        """Uploads raw bytes, a file object or a data URI and returns its secure URL."""
        try:
            result = cloudinary.uploader.upload(file, folder=folder)
        except Exception as e:
            logger.error("Cloudinary upload to %s failed: %s", folder, e)
            raise ImageUploadError(str(e)) from e

        url = result.get("secure_url")
        if not url:
            raise ImageUploadError("Cloudinary returned no secure_url")
        return url

    def upload_many(self, files, folder: str) -> list:
        """Uploads every file in order; the first failure aborts the batch."""
        return [self.upload(f, folder) for f in files]


_client = None


def get_image_host() -> CloudinaryClient:
    global _client
    if _client is None:
        _client = CloudinaryClient()
    return _client
