"""
Data Transfer Objects for photo and tag endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import Field
from photoupload.models.dto.base_dto import CamelModel
from photoupload.services.photo_service import PhotoPage, PhotoView


class TagsRequest(CamelModel):
    """Request schema for tag edits."""
    tags: List[str] = Field(default_factory=list, description="Tags to add, remove or set")


class PhotoResponse(CamelModel):
    """Response schema for one photo."""
    photo_id: str
    filename: str
    content_type: str
    file_size: int
    s3_key: str
    status: str
    upload_date: datetime
    tags: List[str]
    batch_id: Optional[str] = None
    error_message: Optional[str] = None
    download_url: Optional[str] = None

    @classmethod
    def from_view(cls, view: PhotoView) -> "PhotoResponse":
        record = view.record
        return cls(
            photo_id=record.record_id,
            filename=record.filename,
            content_type=record.content_type,
            file_size=record.file_size,
            s3_key=record.storage_key,
            status=record.status.value,
            upload_date=record.upload_date,
            tags=sorted(record.tags),
            batch_id=record.batch_id,
            error_message=record.error_message,
            download_url=view.download_url
        )


class PhotoListResponse(CamelModel):
    """Response schema for one page of photos."""
    photos: List[PhotoResponse]
    page: int
    size: int
    total_count: int
    total_pages: int

    @classmethod
    def from_page(cls, page: PhotoPage) -> "PhotoListResponse":
        return cls(
            photos=[PhotoResponse.from_view(view) for view in page.photos],
            page=page.page,
            size=page.size,
            total_count=page.total_count,
            total_pages=page.total_pages
        )


class DownloadUrlResponse(CamelModel):
    """Response schema for a download URL."""
    photo_id: str
    download_url: str
