"""JPEG thumbnail derivation for uploaded images."""
import asyncio
import io
import logging
from PIL import Image, ImageOps

from app.config import StorageConfig
from app.services.file_storage import FileStorageService, THUMBNAILS_DIR, relative_path

logger = logging.getLogger(__name__)


def thumbnail_filename(stored_filename: str) -> str:
    return f"thumb_{stored_filename}"


class ThumbnailDeriver:
    """Produces fixed-size "cover" thumbnails: scaled to fill, centre-cropped, re-encoded as JPEG."""

    def __init__(self, config: StorageConfig, storage: FileStorageService):
        self.size = (config.thumbnail_width, config.thumbnail_height)
        self.quality = config.thumbnail_quality
        self.storage = storage

    def render(self, image_bytes: bytes) -> bytes:
        """Resize image_bytes to exactly self.size and return JPEG bytes. CPU-bound."""
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = ImageOps.exif_transpose(img)
            thumb = ImageOps.fit(img, self.size, method=Image.LANCZOS, centering=(0.5, 0.5))
            if thumb.mode != "RGB":
                thumb = thumb.convert("RGB")
            out = io.BytesIO()
            thumb.save(out, format="JPEG", quality=self.quality)
            return out.getvalue()

    async def derive(self, image_bytes: bytes, stored_filename: str) -> str | None:
        """Render and store a thumbnail. Returns its relative path, or None on any failure."""
        storage_path = relative_path(THUMBNAILS_DIR, thumbnail_filename(stored_filename))
        try:
            jpeg = await asyncio.to_thread(self.render, image_bytes)
            await self.storage.save(storage_path, jpeg)
        except Exception as e:
            logger.warning("Failed to generate thumbnail for %s: %s", stored_filename, e)
            return None
        return storage_path
