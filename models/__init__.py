"""Database models."""

from db import Base

# Import all models so Alembic can detect them
from models.upload_link_audit import UploadLinkAudit
from models.token_validation_log import TokenValidationLog
from models.file_upload_audit import FileUploadAudit

__all__ = [
    "Base",
    "UploadLinkAudit",
    "TokenValidationLog",
    "FileUploadAudit",
]
