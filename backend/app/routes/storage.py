"""Storage API routes."""
import json
from uuid import UUID
from typing import Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, File as FastAPIFile
from fastapi.responses import Response

from app.auth import require_api_key
from app.dependencies import get_storage_service
from app.models.file_record import FileRecord, FileCategory, EntityType
from app.schemas.file import (
    CleanupResponse,
    DeleteResponse,
    FileListResponse,
    MetadataResponse,
    UploadResponse,
)
from app.services.storage_service import StorageService

router = APIRouter(prefix="/storage", tags=["storage"], dependencies=[Depends(require_api_key)])


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = FastAPIFile(...),
    category: FileCategory = Form(...),
    entity_type: Optional[EntityType] = Form(None, alias="entityType"),
    entity_id: Optional[UUID] = Form(None, alias="entityId"),
    uploaded_by: Optional[UUID] = Form(None, alias="uploadedBy"),
    description: Optional[str] = Form(None),
    metadata: Optional[str] = Form(None, description="JSON object"),
    service: StorageService = Depends(get_storage_service),
):
    """Upload a file and create its metadata record."""
    extra = _parse_metadata(metadata)
    contents = await file.read()
    record = await service.ingest(
        contents,
        original_filename=file.filename or "unnamed",
        mimetype=file.content_type or "application/octet-stream",
        category=category,
        declared_size=file.size,
        entity_type=entity_type,
        entity_id=entity_id,
        uploaded_by=uploaded_by,
        description=description,
        metadata=extra,
    )
    return {
        "success": True,
        "file": {
            "id": record.id,
            "original_filename": record.original_filename,
            "stored_filename": record.stored_filename,
            "mimetype": record.mimetype,
            "size": record.size,
            "category": record.category,
            "uploaded_at": record.uploaded_at,
            "download_url": f"/storage/download/{record.id}",
            "thumbnail_url": f"/storage/thumbnail/{record.id}" if record.thumbnail_path else None,
        },
    }


@router.get("/download/{file_id}")
async def download_file(
    file_id: UUID,
    service: StorageService = Depends(get_storage_service),
):
    """Download a file as an attachment."""
    record, data = await service.get_file(file_id)
    return _binary_response(data, record.mimetype, "attachment", record.original_filename, record.size)


@router.get("/view/{file_id}")
async def view_file(
    file_id: UUID,
    service: StorageService = Depends(get_storage_service),
):
    """Serve a file inline (images, PDFs)."""
    record, data = await service.get_file(file_id)
    return _binary_response(data, record.mimetype, "inline", record.original_filename, record.size)


@router.get("/thumbnail/{file_id}")
async def get_thumbnail(
    file_id: UUID,
    service: StorageService = Depends(get_storage_service),
):
    """Serve the JPEG thumbnail of an image."""
    record, data = await service.get_thumbnail(file_id)
    return _binary_response(data, "image/jpeg", "inline", f"thumb_{record.original_filename}")


@router.get("/metadata/{file_id}", response_model=MetadataResponse)
async def get_metadata(
    file_id: UUID,
    service: StorageService = Depends(get_storage_service),
):
    """Get file metadata by ID."""
    record = await service.get_metadata(file_id)
    return {"success": True, "file": _to_response(record)}


@router.get("/list", response_model=FileListResponse)
async def list_files(
    category: Optional[FileCategory] = Query(None),
    entity_type: Optional[EntityType] = Query(None, alias="entityType"),
    entity_id: Optional[UUID] = Query(None, alias="entityId"),
    uploaded_by: Optional[UUID] = Query(None, alias="uploadedBy"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: StorageService = Depends(get_storage_service),
):
    """List active files, newest first. All filters are combined with AND."""
    records, total = await service.list_files(
        category=category,
        entity_type=entity_type,
        entity_id=entity_id,
        uploaded_by=uploaded_by,
        limit=limit,
        offset=offset,
    )
    return {
        "success": True,
        "data": [_to_response(r) for r in records],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.delete("/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: UUID,
    service: StorageService = Depends(get_storage_service),
):
    """Soft delete a file. The bytes stay on disk."""
    await service.delete_file(file_id)
    return {"success": True, "message": "File deleted successfully"}


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_orphaned_files(
    service: StorageService = Depends(get_storage_service),
):
    """Deactivate records whose files are missing from disk."""
    result = await service.cleanup_orphaned_files()
    return {"success": True, "removed": result.removed, "failed": result.failed}


def _parse_metadata(raw: Optional[str]) -> Optional[dict]:
    if raw is None or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="metadata must be valid JSON")
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=400, detail="metadata must be a JSON object")
    return parsed


def _binary_response(
    data: bytes,
    media_type: str,
    disposition: str,
    filename: str,
    size: Optional[int] = None,
) -> Response:
    quoted = quote(filename)
    if quoted != filename:
        content_disposition = f"{disposition}; filename*=utf-8''{quoted}"
    else:
        content_disposition = f'{disposition}; filename="{filename}"'
    return Response(
        content=data,
        media_type=media_type,
        headers={
            "Content-Disposition": content_disposition,
            "Content-Length": str(size if size is not None else len(data)),
        },
    )


def _to_response(record: FileRecord) -> dict:
    """Convert SQLAlchemy model to response dict."""
    return {
        "id": record.id,
        "original_filename": record.original_filename,
        "stored_filename": record.stored_filename,
        "mimetype": record.mimetype,
        "size": record.size,
        "category": record.category,
        "entity_type": record.entity_type,
        "entity_id": record.entity_id,
        "path": record.path,
        "thumbnail_path": record.thumbnail_path,
        "uploaded_by": record.uploaded_by,
        "description": record.description,
        "metadata": record.extra_metadata,
        "uploaded_at": record.uploaded_at,
        "updated_at": record.updated_at,
        "active": record.active,
    }
