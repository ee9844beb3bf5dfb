"""Main API router that includes versioned routers."""

from fastapi import APIRouter

from api.v1 import health, upload_documents, upload_links, validate_token

# Main API router
api_router = APIRouter()

# Include v1 routers
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(health.router, tags=["health"])
v1_router.include_router(upload_links.router, tags=["upload-links"])
v1_router.include_router(validate_token.router, tags=["upload-links"])
v1_router.include_router(upload_documents.router, tags=["uploads"])

api_router.include_router(v1_router)
