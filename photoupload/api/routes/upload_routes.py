"""
Upload API routes.
Handles HTTP endpoints for starting, settling and tracking photo uploads.
"""
from fastapi import APIRouter, Depends, status
from photoupload.core.auth_dependencies import verify_token
from photoupload.core.dependencies import get_upload_service
from photoupload.models.dto.upload_dto import (
    InitiateUploadRequest,
    InitiateUploadResponse,
    ReportFailureRequest,
    SettlementResponse,
    UploadStatusResponse
)
from photoupload.services.upload_service import UploadService

router = APIRouter(prefix="/v1/api/uploads", tags=["Uploads"])


@router.post("", response_model=InitiateUploadResponse, status_code=status.HTTP_201_CREATED)
def initiate_upload(
    request: InitiateUploadRequest,
    upload_service: UploadService = Depends(get_upload_service),
    user_id: str = Depends(verify_token)
):
    """
    Start a photo upload.

    Creates a PENDING photo record and returns a presigned URL the client
    PUTs the file to, with the same Content-Type it declared here.
    """
    initiated = upload_service.initiate(
        owner_id=user_id,
        filename=request.filename,
        content_type=request.content_type,
        file_size=request.file_size,
        tags=request.tags,
        batch_id=request.batch_id
    )
    return InitiateUploadResponse(
        photo_id=initiated.record_id,
        presigned_url=initiated.grant_url,
        s3_key=initiated.storage_key,
        expiration_time=int(initiated.expires_at.timestamp() * 1000)
    )


@router.get("/{photo_id}/status", response_model=UploadStatusResponse)
def get_upload_status(
    photo_id: str,
    upload_service: UploadService = Depends(get_upload_service),
    user_id: str = Depends(verify_token)
):
    """Get the status of one upload."""
    record = upload_service.status(photo_id, user_id)
    return UploadStatusResponse(
        photo_id=record.record_id,
        status=record.status.value,
        upload_date=record.upload_date,
        error_message=record.error_message
    )


@router.post("/{photo_id}/complete", response_model=SettlementResponse)
def complete_upload(
    photo_id: str,
    upload_service: UploadService = Depends(get_upload_service),
    user_id: str = Depends(verify_token)
):
    """Report that the file reached storage."""
    record = upload_service.report_completion(photo_id, user_id)
    return SettlementResponse(photo_id=record.record_id, status=record.status.value)


@router.post("/{photo_id}/fail", response_model=SettlementResponse)
def fail_upload(
    photo_id: str,
    request: ReportFailureRequest,
    upload_service: UploadService = Depends(get_upload_service),
    user_id: str = Depends(verify_token)
):
    """Report that the upload failed on the client."""
    record = upload_service.report_failure(photo_id, user_id, request.error_message)
    return SettlementResponse(photo_id=record.record_id, status=record.status.value)
