"""
Data Transfer Objects for upload endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator
from photoupload.models.dto.base_dto import CamelModel


class InitiateUploadRequest(CamelModel):
    """Request schema for starting one upload."""
    filename: str = Field(..., min_length=1, max_length=500, description="Original filename")
    content_type: str = Field(..., min_length=1, description="Image MIME type")
    file_size: int = Field(..., ge=1, description="File size in bytes")
    tags: List[str] = Field(default_factory=list, description="Initial tags")
    batch_id: Optional[str] = Field(default=None, description="Batch this file belongs to")

    @field_validator('filename')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or v.strip() == "":
            raise ValueError("Field cannot be empty")
        return v.strip()


class InitiateUploadResponse(CamelModel):
    """Response schema for a started upload."""
    photo_id: str = Field(..., description="Identifier of the new photo record")
    presigned_url: str = Field(..., description="URL to PUT the file to")
    s3_key: str = Field(..., description="Object key the file will be stored under")
    expiration_time: int = Field(..., description="URL expiry as epoch milliseconds")


class ReportFailureRequest(CamelModel):
    """Request schema for reporting a failed upload."""
    error_message: Optional[str] = Field(default=None, max_length=1000, description="Failure reason")


class UploadStatusResponse(CamelModel):
    """Response schema for upload status query."""
    photo_id: str
    status: str
    upload_date: datetime
    error_message: Optional[str] = None


class SettlementResponse(CamelModel):
    """Response schema after an upload settles."""
    photo_id: str
    status: str
