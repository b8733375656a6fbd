"""File ingestion, retrieval, soft delete and orphan reconciliation.

Blobs are written before their metadata record exists, so a record is only
ever visible once its bytes are on disk. A failed insert removes the blob it
was about to describe. Records whose blobs later disappear are found by
cleanup_orphaned_files() and deactivated; blobs without records are not
detected.
"""
import logging
import uuid
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import StorageConfig
from app.errors import NotFound, PayloadTooLarge, StorageBackendError, UnsupportedType
from app.models.file_record import FileRecord, FileCategory, EntityType
from app.services.file_storage import (
    FileStorageService,
    generate_stored_filename,
    relative_path,
    subdirectory_for,
)
from app.services.metadata_store import FileRecordStore
from app.services.thumbnails import ThumbnailDeriver

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    removed: int = 0
    failed: int = 0


class StorageService:

    def __init__(
        self,
        config: StorageConfig,
        session_factory: async_sessionmaker[AsyncSession],
        storage: Optional[FileStorageService] = None,
        thumbnails: Optional[ThumbnailDeriver] = None,
    ):
        self.config = config
        self.session_factory = session_factory
        self.storage = storage or FileStorageService(config)
        self.thumbnails = thumbnails or ThumbnailDeriver(config, self.storage)

    def validate(self, mimetype: str, size: int) -> None:
        """Raise before any side effect if the upload breaks size or type limits."""
        if size > self.config.max_file_size:
            logger.warning("Rejected upload: %d bytes exceeds limit of %d", size, self.config.max_file_size)
            raise PayloadTooLarge(
                f"File size exceeds maximum allowed size of {self.config.max_file_size} bytes"
            )
        if mimetype not in self.config.allowed_mime_types:
            logger.warning("Rejected upload: mimetype %s not allowed", mimetype)
            raise UnsupportedType(f"File type {mimetype} is not allowed")

    async def ingest(
        self,
        data: bytes,
        original_filename: str,
        mimetype: str,
        category: FileCategory,
        declared_size: Optional[int] = None,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[uuid.UUID] = None,
        uploaded_by: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> FileRecord:
        """Store an upload and record its metadata.

        Raises PayloadTooLarge / UnsupportedType before touching disk, and
        StorageBackendError if the blob write or the insert fails (any blob
        already written is removed first). Thumbnail failure only means the
        record has no thumbnail_path.
        """
        size = len(data)
        logger.info("Upload request: %s (%d bytes, %s)", original_filename, size, mimetype)
        logger.info("Category: %s, entity: %s/%s", category, entity_type, entity_id)
        self.validate(mimetype, max(size, declared_size or 0))

        stored_filename = generate_stored_filename(original_filename)
        path = relative_path(subdirectory_for(category), stored_filename)

        async with AsyncExitStack() as compensation:
            compensation.push_async_callback(self._discard, path)
            try:
                await self.storage.save(path, data)

                thumbnail_path = None
                if mimetype.startswith("image/"):
                    thumbnail_path = await self.thumbnails.derive(data, stored_filename)
                    if thumbnail_path:
                        compensation.push_async_callback(self._discard, thumbnail_path)

                record = FileRecord(
                    original_filename=original_filename,
                    stored_filename=stored_filename,
                    mimetype=mimetype,
                    size=size,
                    category=category,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    path=path,
                    thumbnail_path=thumbnail_path,
                    uploaded_by=uploaded_by,
                    description=description,
                    extra_metadata=metadata,
                )
                async with self.session_factory() as db:
                    await FileRecordStore(db).create(record)
                    await db.commit()
            except (OSError, ValueError, SQLAlchemyError) as e:
                logger.error("Upload of %s failed: %s", original_filename, e, exc_info=True)
                raise StorageBackendError(f"Failed to upload file: {e}") from e

            # Success: keep the written files
            compensation.pop_all()

        logger.info("Stored %s as %s (id=%s)", original_filename, path, record.id)
        return record

    async def _discard(self, storage_path: str) -> None:
        try:
            await self.storage.delete(storage_path)
            logger.info("Removed %s after failed upload", storage_path)
        except (OSError, ValueError) as e:
            logger.error("Could not remove %s after failed upload: %s", storage_path, e)

    async def get_metadata(self, file_id: uuid.UUID) -> FileRecord:
        """Active record for file_id, without touching disk."""
        async with self.session_factory() as db:
            record = await FileRecordStore(db).get_active(file_id)
        if record is None:
            logger.info("No active record for file %s", file_id)
            raise NotFound("File not found")
        return record

    async def get_file(self, file_id: uuid.UUID) -> tuple[FileRecord, bytes]:
        record = await self.get_metadata(file_id)
        try:
            data = await self.storage.read(record.path)
        except (OSError, ValueError) as e:
            # Record exists but the blob does not; callers see a plain not-found
            logger.warning("File %s has a record but no readable blob at %s: %s", file_id, record.path, e)
            raise NotFound("File not found on disk") from e
        return record, data

    async def get_thumbnail(self, file_id: uuid.UUID) -> tuple[FileRecord, bytes]:
        try:
            record = await self.get_metadata(file_id)
        except NotFound:
            raise NotFound("Thumbnail not found") from None
        if not record.thumbnail_path:
            logger.info("File %s has no thumbnail", file_id)
            raise NotFound("Thumbnail not found")
        try:
            data = await self.storage.read(record.thumbnail_path)
        except (OSError, ValueError) as e:
            logger.warning(
                "File %s has a thumbnail record but no readable file at %s: %s",
                file_id, record.thumbnail_path, e,
            )
            raise NotFound("Thumbnail not found on disk") from e
        return record, data

    async def list_files(
        self,
        category: Optional[FileCategory] = None,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[uuid.UUID] = None,
        uploaded_by: Optional[uuid.UUID] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[FileRecord], int]:
        async with self.session_factory() as db:
            return await FileRecordStore(db).list_active(
                category=category,
                entity_type=entity_type,
                entity_id=entity_id,
                uploaded_by=uploaded_by,
                limit=limit,
                offset=offset,
            )

    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Soft delete. The blob and thumbnail stay on disk."""
        async with self.session_factory() as db:
            deactivated = await FileRecordStore(db).deactivate(file_id)
            if not deactivated:
                raise NotFound("File not found")
            await db.commit()
        logger.info("Soft-deleted file %s", file_id)

    async def cleanup_orphaned_files(self) -> CleanupResult:
        """Deactivate every active record whose blob is no longer readable.

        Each record is committed on its own; an error on one record is
        logged and counted in `failed` and the sweep moves on.
        """
        result = CleanupResult()
        async with self.session_factory() as db:
            store = FileRecordStore(db)
            candidates = [(r.id, r.path) for r in await store.list_all() if r.active]
            for file_id, path in candidates:
                try:
                    if await self.storage.exists(path):
                        continue
                    if await store.deactivate(file_id):
                        await db.commit()
                        result.removed += 1
                        logger.warning("File %s has no blob at %s, marked inactive", file_id, path)
                except (OSError, ValueError, SQLAlchemyError) as e:
                    await db.rollback()
                    result.failed += 1
                    logger.error("Reconciliation failed for file %s: %s", file_id, e)

        logger.info("Orphan cleanup finished: %d deactivated, %d failed", result.removed, result.failed)
        return result
