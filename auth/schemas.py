"""JWT token payload schemas."""

from datetime import datetime

from pydantic import BaseModel, model_validator

UPLOAD_TOKEN_PURPOSE = "document_upload"
UPLOAD_TOKEN_SCHEMA_VERSION = "1.0"
SUPPORTED_SCHEMA_VERSIONS = frozenset({UPLOAD_TOKEN_SCHEMA_VERSION})


class TokenPayload(BaseModel):
    """Owner session JWT payload structure."""

    sub: str  # owner id (standard JWT claim)
    exp: datetime  # Expiration time (standard JWT claim)


class UploadTokenClaims(BaseModel):
    """Claims carried by a document upload capability token.

    ``iss`` and ``aud`` are added and checked by the signer, not stored here.
    """

    sub: str  # owner id
    client_name: str
    sections: list[str]
    folder_paths: list[str]
    iat: int
    exp: int
    jti: str  # token id, the revocation key
    purpose: str = UPLOAD_TOKEN_PURPOSE
    schema_version: str = UPLOAD_TOKEN_SCHEMA_VERSION

    @model_validator(mode="after")
    def check_alignment(self) -> "UploadTokenClaims":
        if len(self.sections) != len(self.folder_paths):
            raise ValueError("sections and folder_paths must have the same length")
        if self.exp <= self.iat:
            raise ValueError("exp must be after iat")
        return self
