"""
Attachment store for product images.

Accepted uploads are written to a flat directory and served back by the
static mount at /uploads/<name>.
"""

import os
from dataclasses import dataclass
from typing import Optional

from starlette.datastructures import UploadFile

from logger import get_logger

logger = get_logger(__name__)

ACCEPTED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png"})
MAX_IMAGE_BYTES = 5 * 1024 * 1024


class ImageTooLarge(Exception):
    def __init__(self, filename: str, limit: int = MAX_IMAGE_BYTES):
        super().__init__(f"Image {filename!r} exceeds the {limit // (1024 * 1024)} MiB limit")
        self.filename = filename
        self.limit = limit


@dataclass
class PendingImage:
    original_name: str
    content_type: str
    data: bytes


def storage_key(timestamp_ms: int, original_name: str) -> str:
    """Name of a stored upload: '<epoch millis>-<original filename>'."""
    return f"{timestamp_ms}-{os.path.basename(original_name)}"


class AttachmentStore:
    def __init__(self, directory: str = "uploads", url_prefix: str = "uploads",
                 max_bytes: int = MAX_IMAGE_BYTES):
        self.directory = directory
        self.url_prefix = url_prefix.strip("/")
        self.max_bytes = max_bytes

    def ensure_directory(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    def accepts(self, content_type: Optional[str]) -> bool:
        return content_type in ACCEPTED_CONTENT_TYPES

    async def read_image(self, upload: Optional[UploadFile]) -> Optional[PendingImage]:
        """
        Read an uploaded image part into memory.

        Returns None when no file was sent or when its type is not JPEG/PNG;
        unsupported types are dropped without failing the request.
        Raises ImageTooLarge above max_bytes.
        """
        if upload is None or not upload.filename:
            return None
        if not self.accepts(upload.content_type):
            logger.warning(
                "Dropping upload with unsupported content type",
                extra={"image": upload.filename, "kind": upload.content_type},
            )
            return None
        data = await upload.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise ImageTooLarge(upload.filename, self.max_bytes)
        return PendingImage(upload.filename, upload.content_type, data)

    def save(self, image: PendingImage, timestamp_ms: int) -> str:
        """Write the image bytes and return the path it is served under."""
        key = storage_key(timestamp_ms, image.original_name)
        with open(os.path.join(self.directory, key), "wb") as fh:
            fh.write(image.data)
        logger.info("Stored image", extra={"image": key})
        return f"{self.url_prefix}/{key}"
