"""File upload audit model - outcome of every attempted file in an upload batch."""

import enum
from datetime import datetime, UTC
from uuid import UUID, uuid4

from pydantic import BaseModel
from sqlalchemy import BigInteger, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


class UploadOutcome(str, enum.Enum):
    """Per-file upload outcome."""

    SUCCESS = "success"
    FAILED = "failed"


class FileUploadAudit(Base):
    """FileUploadAudit ORM model - append-only, never read back by the upload path."""

    __tablename__ = "file_upload_audit"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    token_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    section: Mapped[str] = mapped_column(String(255), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    uploaded_by: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )


class FileUploadAuditCreate(BaseModel):
    """Schema for appending an upload outcome."""

    token_id: str
    owner_id: str
    client_name: str
    section: str
    original_filename: str
    storage_path: str = ""
    file_size: int
    uploaded_by: str
    status: UploadOutcome
    uploaded_at: datetime
