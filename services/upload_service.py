"""Service layer for token-authorized document uploads (business logic)."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from models.file_upload_audit import UploadOutcome
from services.container import UploadLinkServices
from services.errors import DuplicateBlobError, ValidationError
from services.paths import unique_filename
from services.token_validation_service import require_upload_capability
from services.upload_authorizer import authorize_upload
from services.usage_recorder import increment_usage, record_outcome

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.spreadsheet",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "text/plain",
    "text/csv",
})

ALLOWED_EXTENSIONS = frozenset({
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".odt", ".ods",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".txt", ".csv",
})

# Rejected anywhere in the file name, e.g. "invoice.exe.pdf"
DANGEROUS_NAME_PATTERNS = (".exe", ".bat", ".cmd", ".scr", ".js", ".vbs", ".ps1")

# Width of file_upload_audit.original_filename
MAX_FILENAME_LENGTH = 255


@dataclass
class IncomingFile:
    """A file payload received in an upload request."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class UploadedFileInfo(BaseModel):
    original_name: str
    stored_name: str
    storage_path: str
    size: int
    content_type: str
    uploaded_at: datetime


class UploadFailure(BaseModel):
    filename: str
    error: str


class UploadWarnings(BaseModel):
    failed_uploads: int
    errors: list[UploadFailure]


class UploadBatchResult(BaseModel):
    """Per-batch response; partial success is reported, never rolled back."""

    files_uploaded: int
    total_files: int
    section: str
    client_name: str
    owner_id: str
    uploaded_at: datetime
    files: list[UploadedFileInfo]
    warnings: UploadWarnings | None = None


def check_file_policy(file: IncomingFile, max_file_size_bytes: int) -> str | None:
    """
    Check one file against the upload policy.

    Returns:
        Error message, or None if the file is acceptable
    """
    name = file.filename.lower()
    ext = os.path.splitext(name)[1]

    if len(file.filename) > MAX_FILENAME_LENGTH:
        return f"File name must be at most {MAX_FILENAME_LENGTH} characters"
    if file.size > max_file_size_bytes:
        return f"File {file.filename} exceeds the {max_file_size_bytes // (1024 * 1024)}MB limit"
    if file.content_type not in ALLOWED_MIME_TYPES:
        return f"File type {file.content_type} is not allowed"
    if ext not in ALLOWED_EXTENSIONS:
        return f"File extension {ext or '(none)'} is not allowed"
    if any(pattern in name for pattern in DANGEROUS_NAME_PATTERNS):
        return "Potentially dangerous file type detected"
    return None


def validate_upload_request(
    services: UploadLinkServices,
    *,
    token: str | None,
    section: str | None,
    files: list[IncomingFile],
) -> None:
    """
    Validate request fields and file policy before any token work.

    Raises:
        ValidationError: With every problem found
    """
    errors: list[str] = []
    if not token:
        errors.append("Upload token is required")
    if not section or not section.strip():
        errors.append("Section is required")
    if not files:
        errors.append("No files provided")
    elif len(files) > services.max_files_per_upload:
        errors.append(f"Too many files. Maximum {services.max_files_per_upload} files allowed")
    else:
        for file in files:
            problem = check_file_policy(file, services.max_file_size_bytes)
            if problem:
                errors.append(problem)

    if errors:
        raise ValidationError("Upload request rejected", details=errors)


async def _store_file(
    services: UploadLinkServices,
    file: IncomingFile,
    storage_path: str,
) -> str | None:
    """Write one file to the blob store. Returns a caller-facing error, or None on success."""
    try:
        await services.blob_store.put(storage_path, file.data, file.content_type)
    except DuplicateBlobError as e:
        logger.warning("Upload of %r skipped: %s", file.filename, e.message)
        return e.message
    except Exception:
        # One file's storage failure must not abort the rest of the batch
        logger.exception("Error uploading file %r to %s", file.filename, storage_path)
        return "Storage upload failed"
    return None


async def upload_documents(
    services: UploadLinkServices,
    *,
    token: str,
    section: str,
    files: list[IncomingFile],
    client_name: str | None = None,
    owner_id: str | None = None,
    client_ip: str = "unknown",
    user_agent: str = "unknown",
) -> UploadBatchResult:
    """
    Store a batch of files under the scope granted by an upload token.

    Each file is written independently: a failed write is reported in
    ``warnings`` and does not stop the remaining files.

    Args:
        services: Service container
        token: Upload token from the link
        section: Section to upload into
        files: File payloads
        client_name: Client name sent by the uploader, checked against the token
        owner_id: Owner id sent by the uploader, checked against the token
        client_ip: Uploader IP address
        user_agent: Uploader user agent

    Returns:
        UploadBatchResult with per-file details

    Raises:
        ValidationError: If the request or any file breaks the upload policy
        AuthenticationError: If the token is rejected
        AuthorizationError: If the request is outside the token's scope
        DependencyError: If the audit record cannot be read
    """
    validate_upload_request(services, token=token, section=section, files=files)

    capability = await require_upload_capability(
        services,
        token,
        client_ip=client_ip,
        user_agent=user_agent,
    )
    grant = authorize_upload(
        capability,
        section,
        requested_client_name=client_name,
        requested_owner_id=owner_id,
    )

    uploaded: list[UploadedFileInfo] = []
    failures: list[UploadFailure] = []

    for file in files:
        stored_name = unique_filename(
            file.filename, timestamp_ms=int(services.clock().timestamp() * 1000)
        )
        storage_path = grant.storage_path(stored_name)
        error = await _store_file(services, file, storage_path)

        await record_outcome(
            services,
            capability=capability,
            section=grant.section,
            filename=file.filename,
            storage_path=storage_path,
            size=file.size,
            actor_ip=client_ip,
            outcome=UploadOutcome.FAILED if error else UploadOutcome.SUCCESS,
        )
        if error:
            failures.append(UploadFailure(filename=file.filename, error=error))
            continue

        uploaded.append(
            UploadedFileInfo(
                original_name=file.filename,
                stored_name=stored_name,
                storage_path=storage_path,
                size=file.size,
                content_type=file.content_type,
                uploaded_at=services.clock(),
            )
        )

    if uploaded:
        await increment_usage(services, capability.audit_record_id, len(uploaded))

    logger.info(
        "Upload batch for token %s: %d/%d files stored in %s",
        capability.token_id,
        len(uploaded),
        len(files),
        grant.storage_prefix,
    )

    warnings = None
    if failures:
        warnings = UploadWarnings(failed_uploads=len(failures), errors=failures)

    return UploadBatchResult(
        files_uploaded=len(uploaded),
        total_files=len(files),
        section=grant.section,
        client_name=capability.client_name,
        owner_id=capability.owner_id,
        uploaded_at=services.clock(),
        files=uploaded,
        warnings=warnings,
    )
