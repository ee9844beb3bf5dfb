"""Error taxonomy for upload link issuance, validation and uploads.

Each error carries the HTTP status the API layer answers with, so services
stay free of FastAPI imports and a single exception handler does the mapping.
"""

from fastapi import status


class UploadLinkError(Exception):
    """Base class for all domain errors raised by the upload link services."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        """Caller-facing error body."""
        return {"error": self.message}


class ValidationError(UploadLinkError):
    """Malformed caller input. Carries every problem found, not just the first."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.details = details or []

    def to_detail(self) -> dict:
        return {"error": self.message, "details": self.details}


class InvalidExpiresInFormat(ValidationError):
    """Duration string does not match ``<digits><s|m|h|d|w>``."""

    def __init__(self, value: object, message: str | None = None):
        super().__init__(
            message or 'Invalid expires_in format. Use format like "7d", "24h", "30m"',
            details=[f"expires_in={value!r} is not a valid duration"],
        )
        self.value = value


class AuthenticationError(UploadLinkError):
    """Bad, expired or revoked upload token."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason

    def to_detail(self) -> dict:
        return {"error": self.message, "reason": self.reason}


class AuthorizationError(UploadLinkError):
    """Valid token, but the request reaches outside its granted scope."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason

    def to_detail(self) -> dict:
        return {"error": self.message, "reason": self.reason}


class NotFoundError(UploadLinkError):
    """Requested record does not exist (or is not visible to the caller)."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(UploadLinkError):
    """Resource already exists or is in a state that forbids the change."""

    status_code = status.HTTP_409_CONFLICT


class DuplicateBlobError(ConflictError):
    """A blob already exists at the target path; stores never overwrite."""

    def __init__(self, path: str):
        super().__init__(f"File already exists at {path}")
        self.path = path


class DependencyError(UploadLinkError):
    """Persistence, blob store or signing failure."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
