import asyncio
import logging
import os
import time
from typing import Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from errors import StorageError, StoreTimeout
from utils.blocking import run_blocking

logger = logging.getLogger(__name__)


class S3Service:
    def __init__(
            self,
            bucket_name: str,
            client,
            region: str,
            public_base_url: Optional[str] = None,
            timeout: float = 10.0,
    ):
        """
        Initialize the S3 service with bucket name and region

        Args:
            bucket_name: Bucket that holds post images
            client: boto3 S3 client
            region: AWS region of the bucket, used to build public URLs
            public_base_url: Optional URL prefix (e.g. a CDN) used instead of the bucket URL
            timeout: Seconds allowed for a single S3 call
        """
        self.bucket_name = bucket_name
        self.s3 = client
        self.region = region
        self.public_base_url = public_base_url
        self.timeout = timeout

    @staticmethod
    def image_key(user_id: str, filename: Optional[str]) -> str:
        """Per-user key, disambiguated by the upload time in milliseconds"""
        name = os.path.basename(filename or "") or "image"
        return f"{user_id}/{int(time.time() * 1000)}_{name}"

    async def upload_image(
            self,
            data: bytes,
            user_id: str,
            filename: Optional[str],
            content_type: Optional[str],
    ) -> str:
        """
        Upload an image to S3 with user ownership metadata

        Args:
            data: The image bytes
            user_id: The ID of the user uploading the file
            filename: Original file name, kept as the key suffix
            content_type: MIME type reported by the client

        Returns:
            The unique S3 key for the uploaded file

        Raises:
            StorageError: If the upload fails
            StoreTimeout: If S3 does not answer in time
        """
        key = self.image_key(user_id, filename)

        def _put():
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                Metadata={
                    'user_id': user_id
                }
            )

        try:
            await run_blocking(_put, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("S3 upload of %s timed out after %ss", key, self.timeout)
            raise StoreTimeout("S3 upload timed out")
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 upload of {key} failed: {e}") from e

        return key

    def get_public_url(self, key: str) -> str:
        """
        Public URL for an uploaded object. Does not call S3.
        """
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{quote(key)}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{quote(key)}"
