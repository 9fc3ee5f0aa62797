# =======================================================================================
# valtrack/services/storage_service.py - S3-Compatible Bucket Storage
# =======================================================================================
import logging
import mimetypes
from pathlib import PurePosixPath
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from ..config import config
from ..utils.exceptions import ConflictError, ExternalServiceError, InvalidRequestError

logger = logging.getLogger(__name__)

BUCKETS = {"avatars", "id_uploads", "selfie_uploads"}


class StorageService:
    """Stores uploaded images as objects in an S3-compatible store, one bucket per kind."""

    def __init__(self, client=None, public_base_url: Optional[str] = None):
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=config.STORAGE_ENDPOINT_URL,
            aws_access_key_id=config.STORAGE_ACCESS_KEY_ID,
            aws_secret_access_key=config.STORAGE_SECRET_ACCESS_KEY,
            region_name=config.STORAGE_REGION,
        )
        self.public_base_url = (public_base_url or config.STORAGE_PUBLIC_URL).rstrip("/")

    @staticmethod
    def _key(bucket: str, path: str) -> str:
        if bucket not in BUCKETS:
            raise InvalidRequestError(f"Unknown storage bucket: {bucket}")
        key = PurePosixPath(path)
        if not path or key.is_absolute() or ".." in key.parts:
            raise InvalidRequestError("Invalid storage path")
        return str(key)

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            logger.error("Storage lookup failed for %s/%s: %s", bucket, key, e)
            raise ExternalServiceError("Failed to reach file storage")

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Write data to bucket/path; existing objects are never overwritten."""
        key = self._key(bucket, path)
        if self.exists(bucket, key):
            raise ConflictError(f"{bucket}/{key} already exists")
        try:
            self.s3_client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=mimetypes.guess_type(key)[0] or "application/octet-stream",
            )
        except ClientError as e:
            logger.error("Storage upload error for %s/%s: %s", bucket, key, e)
            raise ExternalServiceError("Failed to upload file to storage")
        logger.info("Stored %s bytes at %s/%s", len(data), bucket, key)
        return key

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{path}"


storage_service = StorageService()
