"""File request/response schemas."""
import uuid
from typing import Optional
from datetime import datetime
from app.schemas.base import CamelModel, CamelORMModel
from app.models.file_record import FileCategory, EntityType


class UploadedFile(CamelORMModel):
    """Summary returned right after an upload."""
    id: uuid.UUID
    original_filename: str
    stored_filename: str
    mimetype: str
    size: int
    category: FileCategory
    uploaded_at: datetime
    download_url: str
    thumbnail_url: Optional[str] = None


class UploadResponse(CamelModel):
    success: bool = True
    file: UploadedFile


class FileMetadataResponse(CamelORMModel):
    id: uuid.UUID
    original_filename: str
    stored_filename: str
    mimetype: str
    size: int
    category: FileCategory
    entity_type: Optional[EntityType] = None
    entity_id: Optional[uuid.UUID] = None
    path: str
    thumbnail_path: Optional[str] = None
    uploaded_by: Optional[uuid.UUID] = None
    description: Optional[str] = None
    metadata: Optional[dict] = None
    uploaded_at: datetime
    updated_at: datetime
    active: bool


class MetadataResponse(CamelModel):
    success: bool = True
    file: FileMetadataResponse


class FileListResponse(CamelModel):
    success: bool = True
    data: list[FileMetadataResponse]
    total: int
    limit: int
    offset: int


class DeleteResponse(CamelModel):
    success: bool = True
    message: str = "File deleted successfully"


class CleanupResponse(CamelModel):
    success: bool = True
    removed: int
    failed: int = 0
