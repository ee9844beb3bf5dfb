"""Validation of document upload tokens against their signature and audit record.

A token is accepted only when both layers agree:

1. the signed token itself (structure, algorithm, signature, issuer,
   audience, purpose, schema version, embedded expiry), and
2. the audit record stored at issuance (exists, still active, not past its
   own expiry, same client and owner as the token claims).

Nothing is cached between calls, so a revocation is visible to the very
next request.
"""

import enum
import logging
from datetime import datetime
from uuid import UUID

from jose import JWTError
from pydantic import BaseModel, ValidationError as PydanticValidationError

from auth.schemas import (
    SUPPORTED_SCHEMA_VERSIONS,
    UPLOAD_TOKEN_PURPOSE,
    UploadTokenClaims,
)
from models.token_validation_log import TokenValidationLogCreate
from models.upload_link_audit import UploadLinkAuditRead, UploadLinkStatus
from services.container import UploadLinkServices
from services.errors import AuthenticationError, DependencyError
from services.retry import retry_async

logger = logging.getLogger(__name__)


class ValidationFailureReason(str, enum.Enum):
    """Why an upload token was rejected."""

    MALFORMED_TOKEN = "malformed_token"
    WRONG_ALGORITHM = "wrong_algorithm"
    INVALID_SIGNATURE = "invalid_signature"
    WRONG_PURPOSE = "wrong_purpose"
    UNSUPPORTED_SCHEMA_VERSION = "unsupported_schema_version"
    TOKEN_EXPIRED = "token_expired"
    UNKNOWN_TOKEN = "unknown_token"
    REVOKED_OR_EXPIRED = "revoked_or_expired"
    RECORD_MISMATCH = "record_mismatch"


# Caller-facing messages; the underlying library error is only logged
_REASON_MESSAGES = {
    ValidationFailureReason.MALFORMED_TOKEN: "Invalid token format",
    ValidationFailureReason.WRONG_ALGORITHM: "Invalid token signature",
    ValidationFailureReason.INVALID_SIGNATURE: "Invalid token signature",
    ValidationFailureReason.WRONG_PURPOSE: "Invalid token purpose",
    ValidationFailureReason.UNSUPPORTED_SCHEMA_VERSION: "Unsupported token version",
    ValidationFailureReason.TOKEN_EXPIRED: "Token has expired",
    ValidationFailureReason.UNKNOWN_TOKEN: "Token not found in system",
    ValidationFailureReason.REVOKED_OR_EXPIRED: "Token is no longer active",
    ValidationFailureReason.RECORD_MISMATCH: "Token does not match its audit record",
}


class UploadCapability(BaseModel):
    """What a validated token allows its bearer to do."""

    owner_id: str
    client_name: str
    sections: list[str]
    folder_paths: list[str]
    token_id: str
    expires_at: datetime
    audit_record_id: UUID


class TokenValidationResult(BaseModel):
    """Outcome of validating an upload token."""

    valid: bool
    capability: UploadCapability | None = None
    reason: ValidationFailureReason | None = None
    message: str | None = None


class _TokenRejected(Exception):
    """Internal signal: a validation gate failed."""

    def __init__(
        self,
        reason: ValidationFailureReason,
        detail: str,
        *,
        token_id: str | None = None,
        message: str | None = None,
    ):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail
        self.token_id = token_id
        self.message = message or _REASON_MESSAGES[reason]


def _verify_token(services: UploadLinkServices, token: object) -> UploadTokenClaims:
    """Stateless gates: structure, algorithm, signature, purpose, version, claim shape."""
    if not isinstance(token, str) or not token:
        raise _TokenRejected(ValidationFailureReason.MALFORMED_TOKEN, "token is empty or not a string")

    segments = token.split(".")
    if len(segments) != 3 or not all(segments):
        raise _TokenRejected(
            ValidationFailureReason.MALFORMED_TOKEN,
            f"expected 3 non-empty segments, got {len(segments)}",
        )

    signer = services.signer
    try:
        header = signer.unverified_header(token)
    except JWTError as e:
        raise _TokenRejected(ValidationFailureReason.MALFORMED_TOKEN, f"unreadable header: {e}") from e

    if header.get("alg") != signer.algorithm:
        raise _TokenRejected(
            ValidationFailureReason.WRONG_ALGORITHM,
            f"alg {header.get('alg')!r} != {signer.algorithm!r}",
        )

    try:
        raw_claims = signer.verify(token)
    except JWTError as e:
        raise _TokenRejected(ValidationFailureReason.INVALID_SIGNATURE, str(e)) from e

    jti = raw_claims.get("jti")
    token_id = jti if isinstance(jti, str) else None

    if raw_claims.get("purpose") != UPLOAD_TOKEN_PURPOSE:
        raise _TokenRejected(
            ValidationFailureReason.WRONG_PURPOSE,
            f"purpose {raw_claims.get('purpose')!r}",
            token_id=token_id,
        )

    if raw_claims.get("schema_version") not in SUPPORTED_SCHEMA_VERSIONS:
        raise _TokenRejected(
            ValidationFailureReason.UNSUPPORTED_SCHEMA_VERSION,
            f"schema_version {raw_claims.get('schema_version')!r}",
            token_id=token_id,
        )

    try:
        return UploadTokenClaims.model_validate(raw_claims)
    except PydanticValidationError as e:
        raise _TokenRejected(
            ValidationFailureReason.MALFORMED_TOKEN,
            f"claims do not match schema: {e.error_count()} errors",
            token_id=token_id,
        ) from e


async def _expire_record(services: UploadLinkServices, record: UploadLinkAuditRead, now: datetime) -> None:
    """Mark an audit record expired. Repeating it is harmless."""
    try:
        await retry_async(
            lambda: services.store.update_audit_record_status(record.id, UploadLinkStatus.EXPIRED, now),
            description="Mark upload link expired",
            policy=services.retry_policy,
        )
    except DependencyError:
        # The next validation pass will try again
        logger.error("Could not mark upload link %s expired", record.token_id)


async def _expire_if_past_due(services: UploadLinkServices, token_id: str, now: datetime) -> None:
    """After the token's own exp gate failed, bring its audit record in line. Best-effort."""
    try:
        record = await retry_async(
            lambda: services.store.get_audit_record(token_id),
            description="Load upload link audit record",
            policy=services.retry_policy,
        )
    except DependencyError:
        logger.error("Could not load audit record %s to mark it expired", token_id)
        return

    if record and record.status == UploadLinkStatus.ACTIVE and record.expires_at <= now:
        await _expire_record(services, record, now)


async def _check_audit_record(
    services: UploadLinkServices,
    claims: UploadTokenClaims,
    now: datetime,
) -> UploadCapability:
    """Stateful gates: the audit record must exist, be active, unexpired and agree with the claims."""
    record = await retry_async(
        lambda: services.store.get_audit_record(claims.jti),
        description="Load upload link audit record",
        policy=services.retry_policy,
    )
    if record is None:
        raise _TokenRejected(
            ValidationFailureReason.UNKNOWN_TOKEN,
            "no audit record",
            token_id=claims.jti,
        )

    if record.status != UploadLinkStatus.ACTIVE:
        status_value = UploadLinkStatus(record.status).value
        raise _TokenRejected(
            ValidationFailureReason.REVOKED_OR_EXPIRED,
            f"audit record status {status_value}",
            token_id=claims.jti,
            message=f"Token is {status_value}",
        )

    if record.expires_at <= now:
        await _expire_record(services, record, now)
        raise _TokenRejected(
            ValidationFailureReason.TOKEN_EXPIRED,
            f"audit record expired at {record.expires_at.isoformat()}",
            token_id=claims.jti,
        )

    if claims.client_name != record.client_name or claims.sub != record.owner_id:
        raise _TokenRejected(
            ValidationFailureReason.RECORD_MISMATCH,
            "client or owner in token differs from audit record",
            token_id=claims.jti,
        )

    return UploadCapability(
        owner_id=claims.sub,
        client_name=claims.client_name,
        sections=claims.sections,
        folder_paths=claims.folder_paths,
        token_id=claims.jti,
        expires_at=record.expires_at,
        audit_record_id=record.id,
    )


async def _log_attempt(
    services: UploadLinkServices,
    *,
    token_id: str | None,
    client_ip: str,
    user_agent: str,
    reason: ValidationFailureReason | None,
    now: datetime,
) -> None:
    """Append a validation attempt. Failures are logged and swallowed."""
    entry = TokenValidationLogCreate(
        token_id=token_id,
        client_ip=client_ip,
        user_agent=user_agent,
        validation_result="failed" if reason else "success",
        reason=reason.value if reason else None,
        validated_at=now,
    )
    try:
        await retry_async(
            lambda: services.store.append_validation_log(entry),
            description="Append token validation log",
            policy=services.retry_policy,
        )
    except Exception:
        logger.exception("Failed to log token validation for %s", token_id or "unknown token")


async def validate_upload_token(
    services: UploadLinkServices,
    token: str,
    *,
    client_ip: str = "unknown",
    user_agent: str = "unknown",
) -> TokenValidationResult:
    """
    Validate an upload token and return the capability it grants.

    Gates run in order and the first failure wins. Every attempt is written
    to the validation log.

    Args:
        services: Service container
        token: Bearer token string from the upload URL
        client_ip: Caller IP, for the validation log
        user_agent: Caller user agent, for the validation log

    Returns:
        TokenValidationResult with either the capability or the failure reason

    Raises:
        DependencyError: If the audit record cannot be read
    """
    now = services.clock()
    token_id = None

    try:
        claims = _verify_token(services, token)
        token_id = claims.jti

        if claims.exp <= int(now.timestamp()):
            await _expire_if_past_due(services, claims.jti, now)
            raise _TokenRejected(
                ValidationFailureReason.TOKEN_EXPIRED,
                f"token exp {claims.exp} has passed",
                token_id=claims.jti,
            )

        capability = await _check_audit_record(services, claims, now)
    except _TokenRejected as rejection:
        logger.warning(
            "Upload token rejected: reason=%s token_id=%s ip=%s detail=%s",
            rejection.reason.value,
            rejection.token_id,
            client_ip,
            rejection.detail,
        )
        await _log_attempt(
            services,
            token_id=rejection.token_id,
            client_ip=client_ip,
            user_agent=user_agent,
            reason=rejection.reason,
            now=now,
        )
        return TokenValidationResult(
            valid=False,
            reason=rejection.reason,
            message=rejection.message,
        )
    except DependencyError:
        logger.error("Upload token %s could not be checked against its audit record", token_id)
        raise

    await _log_attempt(
        services,
        token_id=capability.token_id,
        client_ip=client_ip,
        user_agent=user_agent,
        reason=None,
        now=now,
    )
    return TokenValidationResult(valid=True, capability=capability)


async def require_upload_capability(
    services: UploadLinkServices,
    token: str,
    *,
    client_ip: str = "unknown",
    user_agent: str = "unknown",
) -> UploadCapability:
    """
    Validate a token and return its capability, or raise.

    Raises:
        AuthenticationError: If the token is rejected (carries the reason code)
        DependencyError: If the audit record cannot be read
    """
    result = await validate_upload_token(
        services,
        token,
        client_ip=client_ip,
        user_agent=user_agent,
    )
    if not result.valid:
        raise AuthenticationError(result.message, reason=result.reason.value)
    return result.capability
