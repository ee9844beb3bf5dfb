"""Upload link endpoints - issue and revoke client document upload links."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import get_current_owner, get_services
from services.container import UploadLinkServices
from services.upload_link_service import issue_upload_link, revoke_upload_link

router = APIRouter()


class GenerateUploadLinkRequest(BaseModel):
    """Request schema for generating an upload link.

    Fields are loosely typed so that every problem is reported together by
    the service instead of failing on the first type error.
    """

    client_name: Any = None
    sections: Any = None
    expires_in: Any = None
    generated_by: str | None = None


class UploadLinkData(BaseModel):
    upload_url: str
    token_id: str
    client_name: str
    sections: list[str]
    expires_in: str
    expires_at: datetime
    generated_at: datetime


class FolderInfo(BaseModel):
    section: str
    storage_path: str


class SecurityInfo(BaseModel):
    signed: bool = True
    algorithm: str
    expiration_policy: str = "automatic"
    audit_logged: bool


class UploadLinkMetadata(BaseModel):
    folder_structure: list[FolderInfo]
    security_info: SecurityInfo


class GenerateUploadLinkResponse(BaseModel):
    """Response schema for a generated upload link."""

    success: bool = True
    data: UploadLinkData
    metadata: UploadLinkMetadata


class RevokeUploadLinkResponse(BaseModel):
    success: bool = True
    token_id: str
    status: str
    updated_at: datetime | None = None


@router.post("/upload-links", response_model=GenerateUploadLinkResponse)
async def generate_upload_link(
    request: GenerateUploadLinkRequest,
    owner_id: str = Depends(get_current_owner),
    services: UploadLinkServices = Depends(get_services),
):
    """
    Generate a signed upload link for a client.

    Args:
        request: Client name, sections and optional expiry (e.g. "7d")

    Returns:
        Upload URL, token id, expiry and the storage folder per section

    Raises:
        400 with every validation problem listed
    """
    issued = await issue_upload_link(
        services,
        owner_id=owner_id,
        client_name=request.client_name,
        sections=request.sections,
        expires_in=request.expires_in,
        generated_by=request.generated_by,
    )

    return GenerateUploadLinkResponse(
        data=UploadLinkData(
            upload_url=issued.upload_url,
            token_id=issued.token_id,
            client_name=issued.client_name,
            sections=issued.sections,
            expires_in=issued.expires_in,
            expires_at=issued.expires_at,
            generated_at=issued.generated_at,
        ),
        metadata=UploadLinkMetadata(
            folder_structure=[
                FolderInfo(section=section, storage_path=f"{owner_id}/{path}")
                for section, path in zip(issued.sections, issued.folder_paths)
            ],
            security_info=SecurityInfo(
                algorithm=services.signer.algorithm,
                audit_logged=issued.audit_logged,
            ),
        ),
    )


@router.post("/upload-links/{token_id}/revoke", response_model=RevokeUploadLinkResponse)
async def revoke_link(
    token_id: str,
    owner_id: str = Depends(get_current_owner),
    services: UploadLinkServices = Depends(get_services),
):
    """
    Revoke an upload link so its token stops validating immediately.

    Raises:
        404 if the link does not exist or belongs to another owner
        409 if the link already expired
    """
    record = await revoke_upload_link(services, owner_id=owner_id, token_id=token_id)
    return RevokeUploadLinkResponse(
        token_id=record.token_id,
        status=record.status.value,
        updated_at=record.updated_at,
    )
