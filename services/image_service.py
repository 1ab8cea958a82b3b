"""
services/image_service.py
--------------------------
Uploads listing photos to S3 and returns their public URL.
"""

import uuid
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import ClientError

from config import Settings
from utils.logger import get_logger

logger = get_logger(__name__)


class ImageService:
    """Stores listing photos in the configured bucket."""

    def __init__(self, settings: Settings, client=None):
        self.bucket = settings.s3_bucket
        self._client = client
        self._region = settings.aws_region

    @property
    def enabled(self) -> bool:
        """Uploads are only possible when a bucket is configured."""
        return bool(self.bucket)

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def upload(self, fileobj: BinaryIO, content_type: Optional[str] = None) -> Optional[str]:
        """
        Upload a photo under a random key.

        Returns:
            The public URL of the stored object, or None when uploads are disabled.

        Raises:
            botocore.exceptions.ClientError: If S3 rejects the upload.
        """
        if not self.enabled:
            logger.info("No S3 bucket configured, skipping image upload")
            return None

        key = str(uuid.uuid4())
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.client.upload_fileobj(fileobj, self.bucket, key, ExtraArgs=extra)
        except ClientError as e:
            logger.error(f"Failed to upload image to {self.bucket}: {e}")
            raise

        url = f"https://{self.bucket}.s3.amazonaws.com/{key}"
        logger.info(f"Uploaded image to {url}")
        return url
