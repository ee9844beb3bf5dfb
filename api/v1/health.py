"""Health check endpoint."""

from datetime import datetime, UTC

from fastapi import APIRouter

import config

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, environment and storage bucket
    """
    return {
        "status": "ok",
        "service": "Document Upload Links",
        "env": config.settings.ENV,
        "storage_bucket": config.settings.STORAGE_BUCKET,
        "timestamp": datetime.now(UTC).isoformat(),
    }
