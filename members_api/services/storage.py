"""
Storage Service
Handles object storage for member media - supports S3 and local filesystem.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from botocore.exceptions import ClientError

from members_api.core.exceptions import StorageError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code")) in _NOT_FOUND_CODES


class StorageService:
    """Service for object store operations, keyed by flat object keys."""

    def __init__(self, s3_client=None, bucket: str = "", local_path: Optional[str] = None):
        # S3 when a client is supplied, otherwise the local filesystem
        self.s3 = s3_client
        self.bucket = bucket
        self.use_local = s3_client is None

        if self.use_local:
            self.base_path = Path(local_path or "./uploads")
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"[Storage] Using local storage: {self.base_path}")
        else:
            logger.info(f"[Storage] Using S3: {self.bucket}")

    @property
    def backend(self) -> str:
        return "local" if self.use_local else "s3"

    def _local_path(self, key: str) -> Path:
        """Resolve a key under the storage root; keys that escape it are refused."""
        root = self.base_path.resolve()
        file_path = (root / key).resolve()
        if file_path == root or root not in file_path.parents:
            raise StorageError(f"Invalid object key: {key}", key=key)
        return file_path

    async def upload_bytes(
        self,
        data: bytes,
        key: str,
        content_type: str = "image/jpeg",
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Write an object (overwriting any existing one) and return its key."""
        if self.use_local:
            file_path = self._local_path(key)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(data)
            return key

        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if metadata:
            params["Metadata"] = metadata
        try:
            self.s3.put_object(**params)
        except ClientError as e:
            raise StorageError(f"Failed to upload {key}: {e}", key=key) from e
        return key

    async def exists(self, key: str) -> bool:
        """True if the object exists; other lookup failures raise StorageError."""
        if self.use_local:
            return self._local_path(key).is_file()

        try:
            self.s3.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise StorageError(f"Failed to look up {key}: {e}", key=key) from e
        return True

    async def delete_file(self, key: str) -> None:
        """Delete a single object. Deleting a missing object is not an error."""
        if self.use_local:
            file_path = self._local_path(key)
            if file_path.is_file():
                file_path.unlink()
                logger.info(f"[Storage] Deleted file: {key}")
            return

        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise StorageError(f"Failed to delete {key}: {e}", key=key) from e
        logger.info(f"[Storage] Deleted file: {key}")
