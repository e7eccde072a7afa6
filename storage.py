"""
Photo storage.

Photos are sniffed from their leading bytes (never from the file name or the
declared content type), bounded in size, and written under a path keyed by
the owning entity so that a new upload replaces the previous one.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from config import MAX_UPLOAD_BYTES
from errors import InvalidInputError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".png", ".webp", ".gif")


def detect_image_ext(data: bytes) -> Optional[str]:
    if data.startswith(b"\xff\xd8\xff"):
        return ".jpg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return ".png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return ".gif"
    return None


async def read_photo(photo, max_bytes: int = MAX_UPLOAD_BYTES) -> tuple[bytes, str]:
    """Read an uploaded photo, enforcing the size bound before the type check."""
    data = await photo.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise InvalidInputError("Bad request: file too large")

    ext = detect_image_ext(data)
    if ext is None:
        raise InvalidInputError("Bad request: unsupported image type")
    return data, ext


class BlobStore(ABC):
    @abstractmethod
    async def put(self, folder: str, name: str, ext: str, data: bytes) -> str:
        """Store 'data' as '<folder>/<name><ext>' and return its public URL."""


class LocalBlobStore(BlobStore):
    def __init__(self, root, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _write(self, folder: str, name: str, ext: str, data: bytes) -> Path:
        directory = self.root / folder
        directory.mkdir(parents=True, exist_ok=True)

        # one photo per entity, whatever its format
        for other in IMAGE_EXTENSIONS:
            stale = directory / f"{name}{other}"
            if other != ext and stale.exists():
                stale.unlink()

        target = directory / f"{name}{ext}"
        target.write_bytes(data)
        return target

    async def put(self, folder: str, name: str, ext: str, data: bytes) -> str:
        target = await asyncio.to_thread(self._write, folder, name, ext, data)
        logger.info(f"[storage] Stored {len(data)} bytes at {target}")
        return f"{self.url_prefix}/{folder}/{name}{ext}"
