"""FileRecord model - file metadata (actual bytes live on the storage tree)."""
import enum
import uuid
from sqlalchemy import String, Text, BigInteger, Boolean, JSON, Enum, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from app.models.base import Base, UploadTimestampMixin


class FileCategory(str, enum.Enum):
    """Controls which storage subdirectory a blob lands in."""
    PROFILE = "PROFILE"
    DOCUMENT = "DOCUMENT"
    FORM_FIELD = "FORM_FIELD"
    ATTACHMENT = "ATTACHMENT"
    OTHER = "OTHER"


class EntityType(str, enum.Enum):
    """Kind of domain object a file belongs to."""
    USER = "USER"
    APPLICATION = "APPLICATION"
    FORM_ANSWER = "FORM_ANSWER"
    INSTITUTION = "INSTITUTION"
    OTHER = "OTHER"


class FileRecord(Base, UploadTimestampMixin):
    __tablename__ = "files_metadata"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    original_filename: Mapped[str] = mapped_column(String(500), nullable=False)
    stored_filename: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    mimetype: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    category: Mapped[FileCategory] = mapped_column(
        Enum(FileCategory, name="file_category"), default=FileCategory.OTHER, nullable=False, index=True
    )
    entity_type: Mapped[EntityType | None] = mapped_column(
        Enum(EntityType, name="entity_type"), nullable=True
    )
    entity_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # Root-relative, always <subdirectory>/<stored_filename>
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        Index("idx_files_entity", "entity_type", "entity_id"),
        Index("idx_files_uploaded_at", "uploaded_at"),
    )
