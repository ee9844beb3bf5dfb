"""Service container: the explicitly constructed collaborators of the upload link core."""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncEngine

import config
from auth.upload_token import UploadTokenSigner
from db import close_db, create_engine, create_session_factory, init_db
from services.persistence import SqlAlchemyUploadLinkStore, UploadLinkStore
from services.retry import RetryPolicy
from services.storage import BlobStore, LocalDiskBlobStore


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(UTC)


@dataclass
class UploadLinkServices:
    """Everything the issue/validate/upload operations need, injected as one object.

    Tests build this directly with in-memory doubles; the application builds
    it in its lifespan with ``build_services``.
    """

    store: UploadLinkStore
    blob_store: BlobStore
    signer: UploadTokenSigner
    base_url: str = "http://localhost:3001"
    default_expires_in: str = "7d"
    max_file_size_bytes: int = 50 * 1024 * 1024
    max_files_per_upload: int = 20
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    clock: Callable[[], datetime] = utc_now
    engine: AsyncEngine | None = None

    async def aclose(self) -> None:
        """Release pooled connections, if this container owns an engine."""
        if self.engine is not None:
            await close_db(self.engine)
            self.engine = None


async def build_services(settings: config.Settings | None = None) -> UploadLinkServices:
    """
    Construct the production service container from settings.

    Args:
        settings: Application settings (defaults to the global settings)

    Returns:
        UploadLinkServices wired to PostgreSQL and local-disk storage
    """
    settings = settings or config.settings

    engine = create_engine(settings.DATABASE_URL)
    if settings.AUTO_CREATE_TABLES:
        await init_db(engine)

    return UploadLinkServices(
        store=SqlAlchemyUploadLinkStore(create_session_factory(engine)),
        blob_store=LocalDiskBlobStore(settings.UPLOAD_STORAGE_DIR, settings.STORAGE_BUCKET),
        signer=UploadTokenSigner(
            settings.JWT_UPLOAD_SECRET,
            algorithm=settings.UPLOAD_TOKEN_ALGORITHM,
            issuer=settings.UPLOAD_TOKEN_ISSUER,
            audience=settings.UPLOAD_TOKEN_AUDIENCE,
        ),
        base_url=settings.APP_URL.rstrip("/"),
        default_expires_in=settings.DEFAULT_EXPIRES_IN,
        max_file_size_bytes=settings.MAX_FILE_SIZE_BYTES,
        max_files_per_upload=settings.MAX_FILES_PER_UPLOAD,
        retry_policy=RetryPolicy(
            max_attempts=settings.DB_RETRY_ATTEMPTS,
            base_delay=settings.DB_RETRY_DELAY_SECONDS,
        ),
        engine=engine,
    )
