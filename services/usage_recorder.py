"""Best-effort recording of upload outcomes and token usage.

Nothing here may fail an upload: every error is logged and swallowed.
"""

import logging
from uuid import UUID

from models.file_upload_audit import FileUploadAuditCreate, UploadOutcome
from services.container import UploadLinkServices
from services.retry import retry_async
from services.token_validation_service import UploadCapability

logger = logging.getLogger(__name__)


async def record_outcome(
    services: UploadLinkServices,
    *,
    capability: UploadCapability,
    section: str,
    filename: str,
    storage_path: str,
    size: int,
    actor_ip: str,
    outcome: UploadOutcome,
) -> None:
    """
    Append the outcome of one attempted file.

    Args:
        services: Service container
        capability: Capability the upload ran under
        section: Section the file was uploaded into
        filename: Original file name from the client
        storage_path: Destination key the write targeted, recorded for failed writes too
        size: File size in bytes
        actor_ip: Uploader IP address
        outcome: success or failed
    """
    entry = FileUploadAuditCreate(
        token_id=capability.token_id,
        owner_id=capability.owner_id,
        client_name=capability.client_name,
        section=section,
        original_filename=filename,
        storage_path=storage_path,
        file_size=size,
        uploaded_by=actor_ip,
        status=outcome,
        uploaded_at=services.clock(),
    )
    try:
        await retry_async(
            lambda: services.store.append_upload_outcome(entry),
            description="Append file upload audit",
            policy=services.retry_policy,
        )
    except Exception:
        logger.exception("Failed to log file upload %r for token %s", filename, capability.token_id)


async def increment_usage(
    services: UploadLinkServices,
    audit_record_id: UUID,
    count: int,
) -> None:
    """
    Add ``count`` to the token's files_uploaded counter and stamp last_used_at.

    Not atomic against concurrent batches on the same token; an undercount
    under that race is accepted.
    """
    used_at = services.clock()
    try:
        await retry_async(
            lambda: services.store.increment_usage(audit_record_id, count, used_at),
            description="Update upload link usage",
            policy=services.retry_policy,
        )
    except Exception:
        logger.exception("Failed to update usage statistics for audit record %s", audit_record_id)
