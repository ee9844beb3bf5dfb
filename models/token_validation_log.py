"""Token validation log model - one row per validation attempt."""

from datetime import datetime, UTC
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel
from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


class TokenValidationLog(Base):
    """TokenValidationLog ORM model - append-only record of validation attempts."""

    __tablename__ = "token_validation_log"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    # Null when the token could not be decoded far enough to read its jti
    token_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    client_ip: Mapped[str] = mapped_column(String(100), nullable=False)
    user_agent: Mapped[str] = mapped_column(Text, nullable=False)
    validation_result: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    validated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )


class TokenValidationLogCreate(BaseModel):
    """Schema for appending a validation attempt."""

    token_id: str | None = None
    client_ip: str
    user_agent: str
    validation_result: str  # "success" | "failed"
    reason: str | None = None
    validated_at: datetime
