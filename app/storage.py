"""Media file storage.

The service layer only needs ``save`` to turn uploaded bytes into a public
URL; ``LocalMediaStorage`` keeps files on disk under ``UPLOAD_DIR`` which the
app serves at ``/uploads``.
"""
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path

import aiofiles
import aiofiles.os

from app.config import settings
from app.utils import generate_id

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class MediaStorage(ABC):
    @abstractmethod
    async def save(self, invite_id: str, uploader_id: str, content: bytes, filename: str) -> str:
        """Persist ``content`` and return the URL it can be fetched from."""

    @abstractmethod
    async def delete(self, url: str) -> None:
        """Remove a file previously returned by ``save``; missing files are ignored."""


class LocalMediaStorage(MediaStorage):
    def __init__(self, root: str):
        self.root = Path(root)

    async def save(self, invite_id: str, uploader_id: str, content: bytes, filename: str) -> str:
        directory = self.root / invite_id
        directory.mkdir(parents=True, exist_ok=True)

        # never trust the client's name beyond its extension
        stored_name = generate_id("media") + Path(filename or "").suffix.lower()
        async with aiofiles.open(directory / stored_name, "wb") as f:
            await f.write(content)

        logger.info("Stored %d bytes from %s for invite %s as %s", len(content), uploader_id, invite_id, stored_name)
        return f"{PUBLIC_PREFIX}/{invite_id}/{stored_name}"

    async def delete(self, url: str) -> None:
        if not url.startswith(PUBLIC_PREFIX + "/"):
            raise ValueError(f"Not a local media URL: {url}")
        path = self.root / url[len(PUBLIC_PREFIX) + 1:]
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        logger.info("Removed stored media %s", path.name)


@lru_cache()
def get_media_storage() -> MediaStorage:
    """FastAPI dependency for the configured media store."""
    return LocalMediaStorage(settings.UPLOAD_DIR)
