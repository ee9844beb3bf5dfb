"""Upload token validation endpoint used by the client-facing upload page."""

from datetime import datetime, UTC

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.deps import get_client_ip, get_services, get_user_agent
from services.container import UploadLinkServices
from services.token_validation_service import validate_upload_token

router = APIRouter()


class UploadTokenData(BaseModel):
    owner_id: str
    client_name: str
    sections: list[str]
    folder_paths: list[str]
    token_id: str
    expires_at: datetime


class ValidateTokenResponse(BaseModel):
    """Response schema for a valid token."""

    valid: bool = True
    data: UploadTokenData
    timestamp: datetime


class InvalidTokenResponse(BaseModel):
    """Response schema for a rejected token (sent with 401)."""

    valid: bool = False
    error: str
    reason: str
    timestamp: datetime


@router.get(
    "/validate-token/{token}",
    response_model=ValidateTokenResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": InvalidTokenResponse}},
)
async def validate_token(
    token: str,
    client_ip: str = Depends(get_client_ip),
    user_agent: str = Depends(get_user_agent),
    services: UploadLinkServices = Depends(get_services),
):
    """
    Validate an upload token before showing the upload form.

    Returns:
        200 with the granted client, sections and expiry, or 401 with the reason
    """
    result = await validate_upload_token(
        services,
        token,
        client_ip=client_ip,
        user_agent=user_agent,
    )
    now = datetime.now(UTC)

    if not result.valid:
        body = InvalidTokenResponse(
            error=result.message,
            reason=result.reason.value,
            timestamp=now,
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=body.model_dump(mode="json"),
        )

    capability = result.capability
    return ValidateTokenResponse(
        data=UploadTokenData(
            owner_id=capability.owner_id,
            client_name=capability.client_name,
            sections=capability.sections,
            folder_paths=capability.folder_paths,
            token_id=capability.token_id,
            expires_at=capability.expires_at,
        ),
        timestamp=now,
    )
