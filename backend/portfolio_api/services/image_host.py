"""
Avatar image hosting on Cloudinary.

Wraps the Cloudinary SDK uploader: upload of a raw image buffer into a
fixed folder, and destroy by public id. Credentials are passed per call
instead of through the SDK's global config. The public id of a stored
image is recovered from its delivery URL, e.g.

    https://res.cloudinary.com/demo/image/upload/v1712345678/profiles/abc123.jpg
                                               -> profiles/abc123
"""

import io
import logging
import re
from typing import Optional
import cloudinary.exceptions
import cloudinary.uploader
from portfolio_api.core.config import Settings
from portfolio_api.core.errors import UploadFailureError

logger = logging.getLogger(__name__)

# Segment after /upload/, skipping an optional version, up to the extension
PUBLIC_ID_PATTERN = re.compile(r"/upload/(?:v\d+/)?([^\.]+)")


def extract_public_id(url: Optional[str]) -> Optional[str]:
    """Derive the host-assigned identifier from a delivery URL, or None"""
    if not url:
        return None
    match = PUBLIC_ID_PATTERN.search(url)
    return match.group(1) if match else None


class ImageHost:
    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        folder: str = "profiles",
        timeout: float = 30.0,
        uploader=None,
    ):
        self.cloud_name = cloud_name
        self.folder = folder
        self._api_key = api_key
        self._api_secret = api_secret
        self._timeout = timeout
        # Injectable for tests; defaults to the SDK's uploader module
        self._uploader = uploader or cloudinary.uploader

    @classmethod
    def from_settings(cls, settings: Settings, uploader=None) -> "ImageHost":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.UPLOAD_FOLDER,
            timeout=settings.IMAGE_HOST_TIMEOUT_SECONDS,
            uploader=uploader,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self._api_key and self._api_secret)

    def upload(self, content: bytes, filename: str = "upload") -> str:
        """Upload an image buffer and return its durable https URL"""
        try:
            result = self._uploader.upload(
                io.BytesIO(content),
                folder=self.folder,
                filename=filename or "upload",
                **self._credentials()
            )
        except (cloudinary.exceptions.Error, OSError) as e:
            logger.error(f"Image host upload failed: {str(e)}")
            raise UploadFailureError() from e

        secure_url = (result or {}).get("secure_url")
        if not secure_url:
            logger.error(f"Image host response without secure_url: {result}")
            raise UploadFailureError()

        logger.info(f"Uploaded image {result.get('public_id')}")
        return secure_url

    def delete_by_url(self, url: Optional[str]) -> bool:
        """
        Destroy the image behind a delivery URL.

        Returns False without contacting the host when no public id can be
        derived from the URL (e.g. the profile still holds the placeholder).
        """
        public_id = extract_public_id(url)
        if not public_id:
            logger.info(f"Skipped image deletion, no public id in {url!r}")
            return False

        try:
            result = self._uploader.destroy(public_id, **self._credentials())
        except (cloudinary.exceptions.Error, OSError) as e:
            logger.error(f"Image host destroy of {public_id} failed: {str(e)}")
            raise UploadFailureError() from e

        logger.info(f"Deleted image {public_id}: {(result or {}).get('result')}")
        return True

    def _credentials(self) -> dict:
        if not self.configured:
            raise UploadFailureError("Image host is not configured")
        return {
            "cloud_name": self.cloud_name,
            "api_key": self._api_key,
            "api_secret": self._api_secret,
            "timeout": self._timeout,
        }
