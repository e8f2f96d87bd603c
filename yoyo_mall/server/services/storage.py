"""
Object storage for uploads.

``StorageService`` talks to an S3-compatible OSS bucket through boto3.
boto3 is blocking, so every call runs in the default thread pool; network
level failures are retried, service errors are mapped to ``StorageError``.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from functools import lru_cache
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, ConnectionClosedError, EndpointConnectionError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from yoyo_mall.core.exceptions import StorageError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core.config import StorageConfig, settings

logger = get_logger(__name__)

CACHE_CONTROL = "public, max-age=31536000"

UPLOAD_FOLDERS: Dict[str, str] = {
    "product": "products",
    "avatar": "avatars",
    "brand": "brands",
    "category": "categories",
    "banner": "banners",
    "document": "documents",
    "temp": "temp",
}

_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type((EndpointConnectionError, ConnectionClosedError)),
    reraise=True,
)


def folder_for(upload_type: Optional[str]) -> str:
    """Map an upload ``type`` form value to its folder (unknown -> temp)."""
    return UPLOAD_FOLDERS.get((upload_type or "").lower(), UPLOAD_FOLDERS["temp"])


def _extension(filename: Optional[str]) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].lower()
        if ext:
            return ext
    return "bin"


class StorageService:
    """Upload, delete and address objects in the configured bucket."""

    def __init__(self, config: Optional[StorageConfig] = None, client: Any = None) -> None:
        self.config = config or settings.storage
        self.client = client or boto3.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            region_name=self.config.region,
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.access_key_secret,
            config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
        )
        self.bucket = self.config.bucket

    # --- Key and URL helpers ---

    def generate_key(self, filename: Optional[str], folder: str = "temp") -> str:
        """``{root}/{folder}/{uuid}-{epoch ms}.{ext}``"""
        stamp = int(time.time() * 1000)
        return f"{self.config.root_folder}/{folder}/{uuid.uuid4()}-{stamp}.{_extension(filename)}"

    def named_key(self, name: str, folder: str) -> str:
        return f"{self.config.root_folder}/{folder}/{name}"

    def get_url(self, key: str) -> str:
        return f"{self.config.public_base_url}/{key}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Return the object key when ``url`` points into this bucket."""
        prefix = f"{self.config.public_base_url}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None

    # --- Async API ---

    async def upload(self, data: bytes, key: str, content_type: str) -> Dict[str, Any]:
        """Store ``data`` under ``key``.

        Returns:
            ``{"key", "url", "size", "content_type"}``

        Raises:
            StorageError: when the bucket rejects the upload
        """
        try:
            await asyncio.to_thread(self._put_sync, key, data, content_type)
        except (ClientError, EndpointConnectionError, ConnectionClosedError) as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise StorageError("File upload failed", code="STORAGE_ERROR", details={"key": key})
        logger.info(f"Uploaded {key} ({len(data)} bytes)")
        return {"key": key, "url": self.get_url(key), "size": len(data), "content_type": content_type}

    async def delete(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._delete_sync, key)
        except (ClientError, EndpointConnectionError, ConnectionClosedError) as e:
            logger.warning(f"Delete of {key} failed: {e}")
            return False
        return True

    async def delete_many(self, keys: List[str]) -> Dict[str, bool]:
        """Delete several objects; returns per-key success."""
        if not keys:
            return {}
        try:
            response = await asyncio.to_thread(self._delete_many_sync, keys)
        except (ClientError, EndpointConnectionError, ConnectionClosedError) as e:
            logger.warning(f"Batch delete failed: {e}")
            return {key: False for key in keys}
        failed = {error.get("Key") for error in response.get("Errors", [])}
        return {key: key not in failed for key in keys}

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError("Storage lookup failed", code="STORAGE_ERROR", details={"key": key})
        return True

    # --- Synchronous helpers (executed in thread pool) ---

    @_transient
    def _put_sync(self, key: str, data: bytes, content_type: str) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl=CACHE_CONTROL,
        )

    @_transient
    def _delete_sync(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)

    @_transient
    def _delete_many_sync(self, keys: List[str]) -> Dict[str, Any]:
        return self.client.delete_objects(
            Bucket=self.bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )


@lru_cache(maxsize=1)
def get_storage() -> StorageService:
    """FastAPI dependency returning the process-wide storage service."""
    return StorageService()
