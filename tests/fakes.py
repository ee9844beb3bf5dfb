"""In-memory collaborators for tests."""

from collections import Counter
from datetime import datetime, timedelta
from uuid import UUID, uuid4

from models.file_upload_audit import FileUploadAuditCreate
from models.token_validation_log import TokenValidationLogCreate
from models.upload_link_audit import (
    UploadLinkAuditCreate,
    UploadLinkAuditRead,
    UploadLinkStatus,
)
from services.errors import DuplicateBlobError


class MutableClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryUploadLinkStore:
    """UploadLinkStore double with failure injection."""

    def __init__(self):
        self.records: dict[str, UploadLinkAuditRead] = {}
        self.validation_logs: list[TokenValidationLogCreate] = []
        self.upload_outcomes: list[FileUploadAuditCreate] = []
        self.calls: Counter = Counter()
        self._failures: dict[str, list[Exception]] = {}

    def fail_next(self, method: str, exc: Exception, times: int = 1) -> None:
        """Make the next ``times`` calls of ``method`` raise ``exc``."""
        self._failures.setdefault(method, []).extend([exc] * times)

    def _enter(self, method: str) -> None:
        self.calls[method] += 1
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def record_by_id(self, audit_id: UUID) -> UploadLinkAuditRead | None:
        for record in self.records.values():
            if record.id == audit_id:
                return record
        return None

    def set_record(self, token_id: str, **changes) -> None:
        self.records[token_id] = self.records[token_id].model_copy(update=changes)

    async def get_audit_record(self, token_id: str) -> UploadLinkAuditRead | None:
        self._enter("get_audit_record")
        return self.records.get(token_id)

    async def insert_audit_record(self, record: UploadLinkAuditCreate) -> UploadLinkAuditRead:
        self._enter("insert_audit_record")
        stored = UploadLinkAuditRead(id=uuid4(), files_uploaded=0, **record.model_dump())
        self.records[record.token_id] = stored
        return stored

    async def update_audit_record_status(
        self, audit_id: UUID, status: UploadLinkStatus, updated_at: datetime
    ) -> bool:
        self._enter("update_audit_record_status")
        record = self.record_by_id(audit_id)
        if record is None or record.status != UploadLinkStatus.ACTIVE:
            return False
        self.set_record(record.token_id, status=status, updated_at=updated_at)
        return True

    async def increment_usage(self, audit_id: UUID, delta: int, used_at: datetime) -> None:
        self._enter("increment_usage")
        record = self.record_by_id(audit_id)
        if record is None:
            return
        self.set_record(
            record.token_id,
            files_uploaded=record.files_uploaded + delta,
            last_used_at=used_at,
            updated_at=used_at,
        )

    async def append_validation_log(self, entry: TokenValidationLogCreate) -> None:
        self._enter("append_validation_log")
        self.validation_logs.append(entry)

    async def append_upload_outcome(self, entry: FileUploadAuditCreate) -> None:
        self._enter("append_upload_outcome")
        self.upload_outcomes.append(entry)


class InMemoryBlobStore:
    """Write-once blob store kept in a dict."""

    def __init__(self):
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.put_calls = 0

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        self.put_calls += 1
        if path in self.blobs:
            raise DuplicateBlobError(path)
        self.blobs[path] = (data, content_type)
        return path

    async def exists(self, path: str) -> bool:
        return path in self.blobs


class FailingBlobStore(InMemoryBlobStore):
    """Blob store that fails chosen puts (1-based call numbers)."""

    def __init__(self, fail_on: dict[int, Exception]):
        super().__init__()
        self.fail_on = fail_on

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        call_number = self.put_calls + 1
        if call_number in self.fail_on:
            self.put_calls += 1
            raise self.fail_on[call_number]
        return await super().put(path, data, content_type)
