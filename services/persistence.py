"""Persistence collaborator for upload link audit data."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.file_upload_audit import FileUploadAudit, FileUploadAuditCreate
from models.token_validation_log import TokenValidationLog, TokenValidationLogCreate
from models.upload_link_audit import (
    UploadLinkAudit,
    UploadLinkAuditCreate,
    UploadLinkAuditRead,
    UploadLinkStatus,
)
from repos import upload_link_repo


class UploadLinkStore(Protocol):
    """Operations the upload link services need from persistence."""

    async def get_audit_record(self, token_id: str) -> UploadLinkAuditRead | None: ...

    async def insert_audit_record(self, record: UploadLinkAuditCreate) -> UploadLinkAuditRead: ...

    async def update_audit_record_status(
        self, audit_id: UUID, status: UploadLinkStatus, updated_at: datetime
    ) -> bool: ...

    async def increment_usage(self, audit_id: UUID, delta: int, used_at: datetime) -> None: ...

    async def append_validation_log(self, entry: TokenValidationLogCreate) -> None: ...

    async def append_upload_outcome(self, entry: FileUploadAuditCreate) -> None: ...


class SqlAlchemyUploadLinkStore:
    """UploadLinkStore backed by the async SQLAlchemy session factory.

    Every call runs in its own short session and commits before returning.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_audit_record(self, token_id: str) -> UploadLinkAuditRead | None:
        async with self._session_factory() as session:
            record = await upload_link_repo.get_by_token_id(session, token_id)
            if not record:
                return None
            return UploadLinkAuditRead.model_validate(record)

    async def insert_audit_record(self, record: UploadLinkAuditCreate) -> UploadLinkAuditRead:
        async with self._session_factory() as session:
            row = UploadLinkAudit(
                token_id=record.token_id,
                owner_id=record.owner_id,
                client_name=record.client_name,
                sections=list(record.sections),
                folder_paths=list(record.folder_paths),
                generated_by=record.generated_by,
                status=record.status.value,
                expires_at=record.expires_at,
                files_uploaded=0,
                generated_at=record.generated_at,
            )
            row = await upload_link_repo.create(session, row)
            await session.commit()
            return UploadLinkAuditRead.model_validate(row)

    async def update_audit_record_status(
        self,
        audit_id: UUID,
        status: UploadLinkStatus,
        updated_at: datetime,
    ) -> bool:
        async with self._session_factory() as session:
            changed = await upload_link_repo.update_status(
                session,
                audit_id=audit_id,
                status=status,
                updated_at=updated_at,
            )
            await session.commit()
            return changed

    async def increment_usage(self, audit_id: UUID, delta: int, used_at: datetime) -> None:
        async with self._session_factory() as session:
            await upload_link_repo.increment_usage(
                session,
                audit_id=audit_id,
                delta=delta,
                used_at=used_at,
            )
            await session.commit()

    async def append_validation_log(self, entry: TokenValidationLogCreate) -> None:
        async with self._session_factory() as session:
            await upload_link_repo.add_validation_log(
                session,
                TokenValidationLog(**entry.model_dump()),
            )
            await session.commit()

    async def append_upload_outcome(self, entry: FileUploadAuditCreate) -> None:
        async with self._session_factory() as session:
            row = FileUploadAudit(**entry.model_dump(exclude={"status"}), status=entry.status.value)
            await upload_link_repo.add_upload_outcome(session, row)
            await session.commit()
