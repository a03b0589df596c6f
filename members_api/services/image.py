"""
Image Service
Normalizes uploaded member media and writes it to the object store.

Images of any decodable format are center-cropped to a fixed portrait size
and re-encoded as JPEG so the roster UI always gets uniform thumbnails.
Short video clips are stored unmodified under a size ceiling.
"""

import io
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from members_api.core.exceptions import MediaRejectedError, StorageError
from members_api.schemas.results import ErrorCode
from members_api.services.storage import StorageService

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({"mp4", "m4v", "mov", "webm", "avi", "mkv"})


@dataclass
class ImageUploadResult:
    success: bool
    key: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def failed(cls, code: ErrorCode, message: str) -> "ImageUploadResult":
        return cls(success=False, error=message, error_code=code)


def file_extension(filename: Optional[str]) -> str:
    return PurePath(filename or "").suffix.lower().lstrip(".")


def is_video(filename: Optional[str]) -> bool:
    """Category comes from the client-supplied extension only."""
    return file_extension(filename) in VIDEO_EXTENSIONS


class ImageService:
    """Service for member media validation, processing and upload."""

    def __init__(
        self,
        storage: StorageService,
        width: int = 300,
        height: int = 500,
        jpeg_quality: int = 90,
        max_video_bytes: int = 1024 * 1024,
    ):
        self.storage = storage
        self.width = width
        self.height = height
        self.jpeg_quality = jpeg_quality
        self.max_video_bytes = max_video_bytes

    def resize_image(self, data: bytes) -> bytes:
        """Center-crop to width x height and re-encode as JPEG."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                img = img.convert("RGB")
                fitted = ImageOps.fit(
                    img,
                    (self.width, self.height),
                    method=Image.Resampling.LANCZOS,
                    centering=(0.5, 0.5),
                )
                out = io.BytesIO()
                fitted.save(out, format="JPEG", quality=self.jpeg_quality)
                return out.getvalue()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.error(f"[Image] Error resizing image: {e}")
            raise MediaRejectedError(f"Failed to process image: {e}") from e

    def prepare(self, data: bytes, filename: Optional[str]):
        """
        Return (body, extension, content_type) ready for storage.

        Raises MediaRejectedError for oversized video or undecodable images.
        """
        if is_video(filename):
            if len(data) > self.max_video_bytes:
                raise MediaRejectedError(
                    f"Video is {len(data)} bytes; the limit is {self.max_video_bytes} bytes"
                )
            ext = file_extension(filename)
            content_type = mimetypes.guess_type(f"clip.{ext}")[0] or "application/octet-stream"
            return data, ext, content_type

        return self.resize_image(data), "jpg", "image/jpeg"

    async def upload_new(self, data: bytes, filename: Optional[str]) -> ImageUploadResult:
        """Store media under a new random key."""
        logger.info(f"[Image] Processing upload: {filename}, size: {len(data)} bytes")
        try:
            body, ext, content_type = self.prepare(data, filename)
        except MediaRejectedError as e:
            return ImageUploadResult.failed(ErrorCode.VALIDATION_ERROR, str(e))

        key = f"{uuid.uuid4()}.{ext}"
        try:
            await self.storage.upload_bytes(body, key, content_type)
        except StorageError as e:
            logger.error(f"[Image] Error uploading image: {e}")
            return ImageUploadResult.failed(ErrorCode.INTERNAL_ERROR, f"Failed to upload image: {e}")

        logger.info(f"[Image] Uploaded as: {key}")
        return ImageUploadResult(success=True, key=key)

    async def update_existing(
        self,
        data: bytes,
        filename: Optional[str],
        existing_key: str,
        member_id: Optional[str] = None,
    ) -> ImageUploadResult:
        """Overwrite an existing object in place; the object must already exist."""
        logger.info(f"[Image] Updating existing image: {existing_key}, size: {len(data)} bytes")
        try:
            if not await self.storage.exists(existing_key):
                return ImageUploadResult.failed(
                    ErrorCode.NOT_FOUND, "Image does not exist, cannot update"
                )
        except StorageError as e:
            logger.error(f"[Image] Error checking image: {e}")
            return ImageUploadResult.failed(ErrorCode.INTERNAL_ERROR, f"Failed to update image: {e}")

        try:
            body, _, content_type = self.prepare(data, filename)
        except MediaRejectedError as e:
            return ImageUploadResult.failed(ErrorCode.VALIDATION_ERROR, str(e))

        try:
            await self.storage.upload_bytes(
                body,
                existing_key,
                content_type,
                metadata={"member": member_id or ""},
            )
        except StorageError as e:
            logger.error(f"[Image] Error updating image: {e}")
            return ImageUploadResult.failed(ErrorCode.INTERNAL_ERROR, f"Failed to update image: {e}")

        logger.info(f"[Image] Updated: {existing_key}")
        return ImageUploadResult(success=True, key=existing_key)

    async def delete_image(self, key: str) -> ImageUploadResult:
        try:
            await self.storage.delete_file(key)
        except StorageError as e:
            return ImageUploadResult.failed(ErrorCode.INTERNAL_ERROR, str(e))
        return ImageUploadResult(success=True, key=key)
