"""
Chat attachment storage on Cloudflare R2 (S3 API via boto3).

Every object lives under its uploader's id: `<principal_id>/<millis>.<ext>`.
Authorization for delete (and for attaching a file to a message) is decided
by that prefix alone.
"""

import logging
import time
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..config import (
    CHAT_FILES_PUBLIC_URL,
    MAX_ATTACHMENT_BYTES,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_SECRET_ACCESS_KEY,
)
from ..errors import NotFound, Transient, Unauthorized, ValidationFailed

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4", retries={"max_attempts": 2}),
    )


class ObjectStorage:
    def __init__(self, client=None, bucket: str = R2_BUCKET_NAME, public_base_url: str = ""):
        self._client = client
        self.bucket = bucket
        self.public_base_url = (
            public_base_url
            or CHAT_FILES_PUBLIC_URL
            or f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com/{bucket}"
        ).rstrip("/")

    @property
    def client(self):
        if self._client is None:
            self._client = get_r2_client()
        return self._client

    @staticmethod
    def build_key(owner_id: str, filename: Optional[str], now: Optional[float] = None) -> str:
        millis = int((time.time() if now is None else now) * 1000)
        ext = ""
        if filename and "." in filename:
            ext = filename.rsplit(".", 1)[-1].lower()
        # Extension comes from user input; keep it to something path-safe
        if ext and ext.isalnum() and len(ext) <= 10:
            return f"{owner_id}/{millis}.{ext}"
        return f"{owner_id}/{millis}"

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.public_base_url}/"
        if not url or not url.startswith(prefix):
            return None
        key = url[len(prefix):]
        if not key or ".." in key.split("/"):
            return None
        return key

    def owns(self, principal_id: str, url: str) -> bool:
        """True when the object behind `url` sits in the principal's namespace"""
        key = self.key_from_url(url)
        return key is not None and key.split("/", 1)[0] == principal_id

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store bytes under an owner-scoped key and return the object's URL"""
        if len(data) > MAX_ATTACHMENT_BYTES:
            limit_mb = MAX_ATTACHMENT_BYTES // (1024 * 1024)
            raise ValidationFailed({"file": f"File size must be less than {limit_mb}MB"})

        params = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type

        try:
            self.client.put_object(**params)
        except TRANSPORT_ERRORS as e:
            logger.error(f"❌ R2 upload failed for key {key}: {e}")
            raise Transient("Failed to upload file. Please try again.") from e

        logger.info(f"✅ Uploaded {len(data)} bytes to {key}")
        return self.url_for(key)

    def get(self, url: str) -> bytes:
        key = self.key_from_url(url)
        if key is None:
            raise NotFound("File")

        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFound("File") from e
            raise
        except TRANSPORT_ERRORS as e:
            logger.error(f"❌ R2 download failed for key {key}: {e}")
            raise Transient() from e

        return response["Body"].read()

    def delete(self, principal_id: str, key: str) -> None:
        if key.split("/", 1)[0] != principal_id or ".." in key.split("/"):
            raise Unauthorized(f"{principal_id} tried to delete {key}")

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except TRANSPORT_ERRORS as e:
            raise Transient() from e
        logger.info(f"🗑️ Deleted {key}")


_storage: Optional[ObjectStorage] = None


def get_object_storage() -> ObjectStorage:
    global _storage
    if _storage is None:
        _storage = ObjectStorage()
    return _storage
