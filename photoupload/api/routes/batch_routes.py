"""
Batch API routes.
"""
from fastapi import APIRouter, Depends, status
from photoupload.core.auth_dependencies import verify_token
from photoupload.core.dependencies import get_batch_service
from photoupload.models.dto.batch_dto import BatchResponse, CreateBatchRequest
from photoupload.services.batch_service import BatchProgressService

router = APIRouter(prefix="/v1/api/batches", tags=["Batches"])


@router.post("", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
def create_batch(
    request: CreateBatchRequest,
    batch_service: BatchProgressService = Depends(get_batch_service),
    user_id: str = Depends(verify_token)
):
    """
    Declare a batch of uploads.

    Pass the returned batchId with each file's upload request.
    """
    return BatchResponse.from_batch(batch_service.create_batch(user_id, request.total_files))


@router.get("/{batch_id}", response_model=BatchResponse)
def get_batch(
    batch_id: str,
    batch_service: BatchProgressService = Depends(get_batch_service),
    user_id: str = Depends(verify_token)
):
    """Get aggregate progress of a batch."""
    return BatchResponse.from_batch(batch_service.status(batch_id, user_id))


@router.post("/{batch_id}/abort", response_model=BatchResponse)
def abort_batch(
    batch_id: str,
    batch_service: BatchProgressService = Depends(get_batch_service),
    user_id: str = Depends(verify_token)
):
    """Abort a batch. Its counters stop changing."""
    return BatchResponse.from_batch(batch_service.abort(batch_id, user_id))
