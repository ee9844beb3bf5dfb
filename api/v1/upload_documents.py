"""Document upload endpoint - clients upload files with a link token, no account needed."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from api.deps import get_client_ip, get_services, get_user_agent
from services.container import UploadLinkServices
from services.errors import UploadLinkError, ValidationError
from services.upload_service import IncomingFile, UploadBatchResult, upload_documents

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadDocumentsResponse(BaseModel):
    """Response schema for a document upload batch."""

    success: bool = True
    data: UploadBatchResult


@router.post("/upload-documents", response_model=UploadDocumentsResponse)
async def upload_documents_endpoint(
    token: Optional[str] = Form(None),
    section: Optional[str] = Form(None),
    client_name: Optional[str] = Form(None),
    owner_id: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    client_ip: str = Depends(get_client_ip),
    user_agent: str = Depends(get_user_agent),
    services: UploadLinkServices = Depends(get_services),
):
    """
    Upload one or more files into a section granted by an upload token.

    Args:
        token: Upload token from the link
        section: Section to upload into
        client_name: Optional, must match the token's client
        owner_id: Optional, must match the token's owner
        files: Files to upload (multipart/form-data)

    Returns:
        Per-file results; failed files are listed under warnings

    Raises:
        400 if the request or a file breaks the upload policy
        401 if the token is rejected
        403 if the section/client/owner is outside the token's scope
    """
    files = files or []
    # Count is known from the parsed form, so reject before reading any part
    if len(files) > services.max_files_per_upload:
        raise ValidationError(
            "Upload request rejected",
            details=[f"Too many files. Maximum {services.max_files_per_upload} files allowed"],
        )

    incoming = []
    for upload in files:
        # One byte past the limit is enough for the size policy to reject the file
        data = await upload.read(services.max_file_size_bytes + 1)
        incoming.append(
            IncomingFile(
                filename=upload.filename or "unnamed",
                content_type=upload.content_type or "application/octet-stream",
                data=data,
            )
        )

    try:
        result = await upload_documents(
            services,
            token=token,
            section=section,
            files=incoming,
            client_name=client_name,
            owner_id=owner_id,
            client_ip=client_ip,
            user_agent=user_agent,
        )
    except UploadLinkError:
        raise
    except Exception:
        logger.exception("Upload endpoint error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during upload",
        )

    return UploadDocumentsResponse(data=result)
