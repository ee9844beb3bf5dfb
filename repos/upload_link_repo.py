"""Repository for upload link audit data (DB-only layer)."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.file_upload_audit import FileUploadAudit
from models.token_validation_log import TokenValidationLog
from models.upload_link_audit import UploadLinkAudit, UploadLinkStatus


async def get_by_token_id(
    session: AsyncSession,
    token_id: str,
) -> UploadLinkAudit | None:
    """
    Get an audit record by its token id (the JWT ``jti``).

    Args:
        session: Database session
        token_id: Token id to look up

    Returns:
        UploadLinkAudit if found, None otherwise
    """
    result = await session.execute(
        select(UploadLinkAudit).where(UploadLinkAudit.token_id == token_id)
    )
    return result.scalar_one_or_none()


async def get_by_id(
    session: AsyncSession,
    audit_id: UUID,
) -> UploadLinkAudit | None:
    """Get an audit record by primary key."""
    result = await session.execute(
        select(UploadLinkAudit).where(UploadLinkAudit.id == audit_id)
    )
    return result.scalar_one_or_none()


async def create(
    session: AsyncSession,
    record: UploadLinkAudit,
) -> UploadLinkAudit:
    """
    Create a new audit record.

    Args:
        session: Database session
        record: UploadLinkAudit instance to create

    Returns:
        Created UploadLinkAudit
    """
    session.add(record)
    await session.flush()
    await session.refresh(record)
    return record


async def update_status(
    session: AsyncSession,
    *,
    audit_id: UUID,
    status: UploadLinkStatus,
    updated_at: datetime,
) -> bool:
    """
    Move an active audit record to a terminal status.

    Rows that already left ``active`` are not touched, so repeating the same
    transition is a no-op.

    Args:
        session: Database session
        audit_id: Audit record ID
        status: Target status (expired or revoked)
        updated_at: Timestamp of the change

    Returns:
        True if a row changed, False otherwise
    """
    result = await session.execute(
        update(UploadLinkAudit)
        .where(
            UploadLinkAudit.id == audit_id,
            UploadLinkAudit.status == UploadLinkStatus.ACTIVE.value,
        )
        .values(status=status.value, updated_at=updated_at)
    )
    return result.rowcount > 0


async def increment_usage(
    session: AsyncSession,
    *,
    audit_id: UUID,
    delta: int,
    used_at: datetime,
) -> UploadLinkAudit | None:
    """
    Add ``delta`` to files_uploaded and stamp last_used_at.

    Read-then-write: concurrent batches on the same token may undercount.

    Args:
        session: Database session
        audit_id: Audit record ID
        delta: Number of files to add
        used_at: Timestamp of the batch

    Returns:
        Updated UploadLinkAudit, or None if the record does not exist
    """
    record = await get_by_id(session, audit_id)
    if not record:
        return None

    record.files_uploaded = (record.files_uploaded or 0) + delta
    record.last_used_at = used_at
    record.updated_at = used_at
    await session.flush()
    return record


async def add_validation_log(
    session: AsyncSession,
    entry: TokenValidationLog,
) -> None:
    """Append a token validation attempt."""
    session.add(entry)
    await session.flush()


async def add_upload_outcome(
    session: AsyncSession,
    entry: FileUploadAudit,
) -> None:
    """Append a per-file upload outcome."""
    session.add(entry)
    await session.flush()
