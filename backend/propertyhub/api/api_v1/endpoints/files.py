"""Presigned URLs for attachments (photos, receipts, invoice PDFs)"""

from typing import Any
from fastapi import APIRouter, Depends

from propertyhub.core.deps import get_current_user
from propertyhub.models.user import User
from propertyhub.schemas.file import (
    UploadUrlRequest, UploadUrlResponse, DownloadUrlRequest, DownloadUrlResponse
)
from propertyhub.services import storage

router = APIRouter()


@router.post("/upload-url", response_model=UploadUrlResponse)
async def get_upload_url(
    *,
    current_user: User = Depends(get_current_user),
    request_in: UploadUrlRequest) -> Any:
    return storage.create_upload_url(request_in.file_name, request_in.file_type, request_in.is_public)


@router.post("/download-url", response_model=DownloadUrlResponse)
async def get_download_url(
    *,
    current_user: User = Depends(get_current_user),
    request_in: DownloadUrlRequest) -> Any:
    return DownloadUrlResponse(url=storage.create_download_url(request_in.file_url))
