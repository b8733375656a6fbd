"""Relational repository of file records."""
import uuid
from typing import Optional
from sqlalchemy import select, update, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utcnow
from app.models.file_record import FileRecord, FileCategory, EntityType


class FileRecordStore:
    """Queries and mutations on files_metadata, bound to one session.

    Callers own the transaction: nothing here commits.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, record: FileRecord) -> FileRecord:
        self.db.add(record)
        await self.db.flush()
        return record

    async def get_active(self, file_id: uuid.UUID) -> Optional[FileRecord]:
        """Point lookup that only sees active records."""
        result = await self.db.execute(
            select(FileRecord).where(FileRecord.id == file_id, FileRecord.active.is_(True))
        )
        return result.scalar_one_or_none()

    async def list_active(
        self,
        category: Optional[FileCategory] = None,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[uuid.UUID] = None,
        uploaded_by: Optional[uuid.UUID] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[FileRecord], int]:
        """Active records matching every given filter, newest first, plus the full match count."""
        conditions = [FileRecord.active.is_(True)]
        if category is not None:
            conditions.append(FileRecord.category == category)
        if entity_type is not None:
            conditions.append(FileRecord.entity_type == entity_type)
        if entity_id is not None:
            conditions.append(FileRecord.entity_id == entity_id)
        if uploaded_by is not None:
            conditions.append(FileRecord.uploaded_by == uploaded_by)

        total = await self.db.scalar(
            select(func.count()).select_from(FileRecord).where(*conditions)
        )
        result = await self.db.execute(
            select(FileRecord)
            .where(*conditions)
            .order_by(desc(FileRecord.uploaded_at), desc(FileRecord.id))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def list_all(self) -> list[FileRecord]:
        """Every record regardless of active state."""
        result = await self.db.execute(select(FileRecord).order_by(FileRecord.uploaded_at))
        return list(result.scalars().all())

    async def deactivate(self, file_id: uuid.UUID) -> bool:
        """Flip an active record to inactive. False when no active record matched."""
        result = await self.db.execute(
            update(FileRecord)
            .where(FileRecord.id == file_id, FileRecord.active.is_(True))
            .values(active=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
