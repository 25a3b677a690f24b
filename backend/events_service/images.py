"""
Cloudinary image uploads for event pictures.

Images arrive as data URLs (data:image/...;base64,...) or remote URLs and are
stored in the `events` folder. The returned secure URL is what gets saved on
the event.
"""

import logging

import cloudinary
import cloudinary.uploader

from backend.config import Settings
from backend.errors import ConfigurationError, UpstreamError

UPLOAD_FOLDER = "events"


class ImageUploader:

    def __init__(self, settings: Settings):
        self.configured = settings.cloudinary_configured
        if self.configured:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    def upload(self, image: str) -> str:
        """
        Upload an image and return its public URL.

        Raises:
            ConfigurationError: Cloudinary credentials are not set.
            UpstreamError: The upload failed.
        """
        if not self.configured:
            raise ConfigurationError(
                "Image storage is not configured. Please set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY, and CLOUDINARY_API_SECRET."
            )

        try:
            result = cloudinary.uploader.upload(
                image,
                folder=UPLOAD_FOLDER,
                resource_type="auto",
            )
        except Exception as e:
            logging.error(f"[Images] Cloudinary upload failed: {e}")
            raise UpstreamError("Image upload failed", detail=str(e))

        url = result.get("secure_url") or result.get("url")
        if not url:
            raise UpstreamError("Image upload failed", detail="no URL in upload response")
        return url
