"""
Data Transfer Objects for batch endpoints.
"""
from datetime import datetime
from pydantic import Field
from photoupload.models.dto.base_dto import CamelModel
from photoupload.models.upload_batch import UploadBatch


class CreateBatchRequest(CamelModel):
    """Request schema for declaring a batch."""
    total_files: int = Field(..., ge=1, description="Number of files in the batch")


class BatchResponse(CamelModel):
    """Response schema for batch progress."""
    batch_id: str
    status: str
    total_files: int
    registered_files: int
    completed_files: int
    succeeded_files: int
    failed_files: int
    progress_percent: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_batch(cls, batch: UploadBatch) -> "BatchResponse":
        return cls(
            batch_id=batch.batch_id,
            status=batch.status.value,
            total_files=batch.total_files,
            registered_files=batch.registered_files,
            completed_files=batch.completed_files,
            succeeded_files=batch.succeeded_files,
            failed_files=batch.failed_files,
            progress_percent=batch.progress_percent(),
            created_at=batch.created_at,
            updated_at=batch.updated_at
        )
