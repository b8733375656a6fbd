"""Local filesystem blob storage, organised in one subdirectory per file category."""
import logging
import os
import uuid
import aiofiles
import aiofiles.os
from pathlib import Path, PurePosixPath

from app.config import StorageConfig
from app.models.file_record import FileCategory

logger = logging.getLogger(__name__)

THUMBNAILS_DIR = "thumbnails"
FALLBACK_DIR = "temp"

CATEGORY_DIRS = {
    FileCategory.PROFILE: "profiles",
    FileCategory.DOCUMENT: "documents",
    FileCategory.FORM_FIELD: "forms",
}

STORAGE_LAYOUT = ("profiles", "documents", "forms", THUMBNAILS_DIR, FALLBACK_DIR)


def subdirectory_for(category) -> str:
    """Map a category to its storage subdirectory. Unmapped categories land in temp/."""
    try:
        category = FileCategory(category)
    except ValueError:
        return FALLBACK_DIR
    return CATEGORY_DIRS.get(category, FALLBACK_DIR)


def file_extension(original_name: str) -> str:
    """Extension of the final path component, dot included.

    "report." keeps its trailing ".", dotfiles like ".bashrc" have none, and
    an extension containing a NUL byte is dropped since no filesystem accepts it.
    """
    name = PurePosixPath(original_name.replace("\\", "/")).name
    dot = name.rfind(".")
    if dot <= 0 or not name.strip("."):
        return ""
    extension = name[dot:]
    if "\x00" in extension:
        return ""
    return extension


def generate_stored_filename(original_name: str) -> str:
    """A fresh, globally unique on-disk name that keeps the original extension."""
    return f"{uuid.uuid4().hex}{file_extension(original_name)}"


def relative_path(subdirectory: str, filename: str) -> str:
    return f"{subdirectory}/{filename}"


class FileStorageService:
    """Handles blob read/write under the configured upload root.

    All paths accepted and returned are root-relative with POSIX separators.
    """

    def __init__(self, config: StorageConfig):
        self.base_path = Path(config.upload_path).resolve()

    def ensure_layout(self) -> None:
        """Create the upload root and its fixed subdirectories. Idempotent."""
        for name in STORAGE_LAYOUT:
            (self.base_path / name).mkdir(parents=True, exist_ok=True)
        logger.info("Storage layout ready at %s", self.base_path)

    def resolve(self, storage_path: str) -> Path:
        """Absolute path for a root-relative storage path; refuses anything escaping the root."""
        rel = PurePosixPath(storage_path)
        if rel.is_absolute() or ".." in rel.parts:
            raise ValueError(f"Invalid storage path: {storage_path!r}")
        full_path = (self.base_path / rel).resolve()
        if not full_path.is_relative_to(self.base_path):
            raise ValueError(f"Storage path escapes upload root: {storage_path!r}")
        return full_path

    async def save(self, storage_path: str, file_bytes: bytes) -> Path:
        """Write bytes to storage_path, creating the parent directory if needed."""
        full_path = self.resolve(storage_path)
        await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
        async with aiofiles.open(full_path, "wb") as f:
            await f.write(file_bytes)
        return full_path

    async def read(self, storage_path: str) -> bytes:
        """Read file bytes from storage path."""
        async with aiofiles.open(self.resolve(storage_path), "rb") as f:
            return await f.read()

    async def exists(self, storage_path: str) -> bool:
        """True when storage_path is a regular file the process can read."""
        full_path = self.resolve(storage_path)
        if not await aiofiles.os.path.isfile(full_path):
            return False
        return await aiofiles.os.access(full_path, os.R_OK)

    async def delete(self, storage_path: str) -> None:
        """Delete a file from storage. Missing files are ignored."""
        full_path = self.resolve(storage_path)
        if await aiofiles.os.path.exists(full_path):
            await aiofiles.os.remove(full_path)
