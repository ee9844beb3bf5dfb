"""Service layer for issuing and revoking document upload links."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError
from pydantic import BaseModel

from auth.schemas import UploadTokenClaims
from models.upload_link_audit import (
    UploadLinkAuditCreate,
    UploadLinkAuditRead,
    UploadLinkStatus,
)
from services.container import UploadLinkServices
from services.errors import (
    ConflictError,
    DependencyError,
    InvalidExpiresInFormat,
    NotFoundError,
    ValidationError,
)
from services.expiration import parse_expires_in
from services.paths import is_valid_owner_id, sanitize_path, sanitize_segment
from services.retry import retry_async

logger = logging.getLogger(__name__)

# Column widths of upload_link_audit and file_upload_audit
MAX_CLIENT_NAME_LENGTH = 255
MAX_SECTION_LENGTH = 255
MAX_GENERATED_BY_LENGTH = 255


class IssuedUploadLink(BaseModel):
    """Result of issuing an upload link."""

    token: str
    upload_url: str
    token_id: str
    client_name: str
    sections: list[str]
    folder_paths: list[str]
    expires_in: str
    expires_at: datetime
    generated_at: datetime
    audit_logged: bool


def generate_token_id(now: datetime) -> str:
    """Mint a token id: millisecond timestamp plus a random suffix."""
    return f"upload_{int(now.timestamp() * 1000)}_{secrets.token_hex(5)}"


def normalize_sections(sections: list[str]) -> list[str]:
    """Trim, lowercase and dedupe section labels, keeping first-seen order."""
    return list(dict.fromkeys(section.strip().lower() for section in sections))


def validate_issue_request(
    owner_id: Any,
    client_name: Any,
    sections: Any,
    expires_in: Any,
    generated_by: Any = None,
) -> list[str]:
    """
    Check an issuance request and collect every problem found.

    Args:
        owner_id: Owner id from the authenticated session
        client_name: Client name from the request
        sections: Section labels from the request
        expires_in: Optional duration string
        generated_by: Optional free-text label of who generated the link

    Returns:
        List of error messages (empty when the request is valid)
    """
    errors: list[str] = []

    if not is_valid_owner_id(owner_id):
        errors.append("owner_id must be 1-100 characters of letters, digits, '_' or '-'")

    if not isinstance(client_name, str) or not client_name.strip():
        errors.append("client_name is required and must be a non-empty string")
    elif not sanitize_segment(client_name):
        errors.append("client_name must contain at least one letter, digit, '_' or '-'")
    elif len(client_name.strip()) > MAX_CLIENT_NAME_LENGTH:
        errors.append(f"client_name must be at most {MAX_CLIENT_NAME_LENGTH} characters")

    if not isinstance(sections, (list, tuple)) or len(sections) == 0:
        errors.append("sections is required and must be a non-empty array")
    elif any(not isinstance(s, str) or not s.strip() for s in sections):
        errors.append("All sections must be non-empty strings")
    elif any(not sanitize_segment(s) for s in sections):
        errors.append("All sections must contain at least one letter, digit, '_' or '-'")
    elif any(len(s.strip()) > MAX_SECTION_LENGTH for s in sections):
        errors.append(f"All sections must be at most {MAX_SECTION_LENGTH} characters")

    if generated_by is not None and (
        not isinstance(generated_by, str) or len(generated_by) > MAX_GENERATED_BY_LENGTH
    ):
        errors.append(f"generated_by must be a string of at most {MAX_GENERATED_BY_LENGTH} characters")

    if expires_in is not None:
        if not isinstance(expires_in, str):
            errors.append('expires_in must be a string (e.g., "7d", "24h", "30m")')
        else:
            try:
                parse_expires_in(expires_in)
            except InvalidExpiresInFormat as e:
                errors.append(e.message)

    return errors


async def _log_link_generation(
    services: UploadLinkServices,
    record: UploadLinkAuditCreate,
) -> bool:
    """Insert the audit record. Failures are logged, never raised."""
    try:
        await retry_async(
            lambda: services.store.insert_audit_record(record),
            description="Insert upload link audit record",
            policy=services.retry_policy,
        )
        return True
    except Exception:
        logger.exception("Failed to log upload link generation for token %s", record.token_id)
        return False


async def issue_upload_link(
    services: UploadLinkServices,
    *,
    owner_id: str,
    client_name: str,
    sections: list[str],
    expires_in: str | None = None,
    generated_by: str | None = None,
) -> IssuedUploadLink:
    """
    Issue a signed upload link scoped to one client and a set of sections.

    Args:
        services: Service container
        owner_id: Account creating the grant; becomes the token subject
        client_name: Client the uploads belong to
        sections: Section labels the client may upload into
        expires_in: Duration string, defaults to the configured default ("7d")
        generated_by: Optional free-text label of who generated the link

    Returns:
        IssuedUploadLink with the token, URL and derived folder paths

    Raises:
        ValidationError: If any input is invalid (all problems are listed)
        DependencyError: If the token cannot be signed
    """
    errors = validate_issue_request(owner_id, client_name, sections, expires_in, generated_by)
    if errors:
        raise ValidationError("Validation failed", details=errors)

    if expires_in is None:
        expires_in = services.default_expires_in
    expiration_seconds = parse_expires_in(expires_in)

    issued = services.clock()
    now = issued.replace(microsecond=0)
    expires_at = now + timedelta(seconds=expiration_seconds)

    client_name = client_name.strip()
    unique_sections = normalize_sections(sections)
    folder_paths = [sanitize_path(client_name, section) for section in unique_sections]
    token_id = generate_token_id(issued)

    claims = UploadTokenClaims(
        sub=owner_id,
        client_name=client_name,
        sections=unique_sections,
        folder_paths=folder_paths,
        iat=int(now.timestamp()),
        exp=int(expires_at.timestamp()),
        jti=token_id,
    )
    try:
        token = services.signer.sign(claims)
    except JWTError as e:
        logger.error("Failed to sign upload token %s: %s", token_id, e)
        raise DependencyError("Failed to sign upload token") from e

    audit_logged = await _log_link_generation(
        services,
        UploadLinkAuditCreate(
            token_id=token_id,
            owner_id=owner_id,
            client_name=client_name,
            sections=unique_sections,
            folder_paths=folder_paths,
            generated_by=generated_by,
            expires_at=expires_at,
            generated_at=now,
        ),
    )

    logger.info(
        "Issued upload link %s for owner %s, client %r, sections %s, expires %s",
        token_id,
        owner_id,
        client_name,
        unique_sections,
        expires_at.isoformat(),
    )

    return IssuedUploadLink(
        token=token,
        upload_url=f"{services.base_url}/upload/{token}",
        token_id=token_id,
        client_name=client_name,
        sections=unique_sections,
        folder_paths=folder_paths,
        expires_in=expires_in,
        expires_at=expires_at,
        generated_at=now,
        audit_logged=audit_logged,
    )


async def revoke_upload_link(
    services: UploadLinkServices,
    *,
    owner_id: str,
    token_id: str,
) -> UploadLinkAuditRead:
    """
    Revoke an active upload link owned by ``owner_id``.

    Revoking twice is a no-op. Links of other owners are reported as not
    found so token ids cannot be discovered.

    Args:
        services: Service container
        owner_id: Authenticated owner
        token_id: Token id (jti) of the link

    Returns:
        The audit record with status revoked

    Raises:
        NotFoundError: If no such link exists for this owner
        ConflictError: If the link already expired
    """
    record = await retry_async(
        lambda: services.store.get_audit_record(token_id),
        description="Load upload link audit record",
        policy=services.retry_policy,
    )
    if not record or record.owner_id != owner_id:
        raise NotFoundError("Upload link not found")

    if record.status == UploadLinkStatus.REVOKED:
        return record
    if record.status == UploadLinkStatus.EXPIRED:
        raise ConflictError("Upload link has already expired")

    now = services.clock()
    changed = await retry_async(
        lambda: services.store.update_audit_record_status(record.id, UploadLinkStatus.REVOKED, now),
        description="Revoke upload link",
        policy=services.retry_policy,
    )
    if not changed:
        # Another request moved the row out of active first
        current = await retry_async(
            lambda: services.store.get_audit_record(token_id),
            description="Load upload link audit record",
            policy=services.retry_policy,
        )
        if current and current.status == UploadLinkStatus.REVOKED:
            return current
        raise ConflictError("Upload link has already expired")

    logger.info("Revoked upload link %s for owner %s", token_id, owner_id)
    return record.model_copy(update={"status": UploadLinkStatus.REVOKED, "updated_at": now})
