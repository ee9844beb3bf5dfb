"""Upload link audit model - server-side counterpart of every issued upload token."""

import enum
from datetime import datetime, UTC
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


class UploadLinkStatus(str, enum.Enum):
    """Lifecycle state of an upload link.

    Only ``active`` rows may transition, and only to ``expired`` or ``revoked``.
    """

    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class UploadLinkAudit(Base):
    """UploadLinkAudit ORM model - the revocable source of truth for an upload token."""

    __tablename__ = "upload_link_audit"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    token_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sections: Mapped[list] = mapped_column(JSONB, nullable=False)
    folder_paths: Mapped[list] = mapped_column(JSONB, nullable=False)
    generated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UploadLinkStatus.ACTIVE.value,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    files_uploaded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        {"comment": "Audit records for issued document upload links"},
    )


# Pydantic schemas
class UploadLinkAuditCreate(BaseModel):
    """Schema for inserting an audit record at issuance."""

    token_id: str
    owner_id: str
    client_name: str
    sections: list[str]
    folder_paths: list[str]
    generated_by: str | None = None
    expires_at: datetime
    generated_at: datetime
    status: UploadLinkStatus = UploadLinkStatus.ACTIVE


class UploadLinkAuditRead(BaseModel):
    """Snapshot of an audit record as read from the store."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token_id: str
    owner_id: str
    client_name: str
    sections: list[str]
    folder_paths: list[str]
    generated_by: str | None = None
    status: UploadLinkStatus
    expires_at: datetime
    files_uploaded: int = 0
    last_used_at: datetime | None = None
    generated_at: datetime
    updated_at: datetime | None = None
