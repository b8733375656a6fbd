"""Import all models so SQLAlchemy metadata knows about them."""
from app.models.base import Base
from app.models.file_record import FileRecord, FileCategory, EntityType

__all__ = ["Base", "FileRecord", "FileCategory", "EntityType"]
