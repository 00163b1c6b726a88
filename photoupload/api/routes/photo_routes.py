"""
Photo API routes.
Handles gallery listing, downloads, deletion and tag edits.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from photoupload.core.auth_dependencies import verify_token
from photoupload.core.dependencies import get_photo_service, get_tag_service
from photoupload.models.dto.photo_dto import (
    DownloadUrlResponse,
    PhotoListResponse,
    PhotoResponse,
    TagsRequest
)
from photoupload.services.photo_service import PhotoService
from photoupload.services.tag_service import TagOperation, TagService

router = APIRouter(prefix="/v1/api/photos", tags=["Photos"])


@router.get("", response_model=PhotoListResponse)
def list_photos(
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    size: Optional[int] = Query(default=None, description="Page size, 1 to 100"),
    tags: Optional[str] = Query(default=None, description="Comma-separated tags; photos must carry all"),
    sort_by: Optional[str] = Query(
        default=None, alias="sortBy", description="uploadDate (default), filename, fileSize or status"
    ),
    photo_service: PhotoService = Depends(get_photo_service),
    user_id: str = Depends(verify_token)
):
    """
    List the caller's photos, newest first.

    - **page**: Page number (default 0)
    - **size**: Items per page (default 20, max 100)
    - **tags**: Only photos carrying every listed tag
    - **sortBy**: Field to order by, descending (default uploadDate)
    """
    tag_filter = [t for t in tags.split(",") if t.strip()] if tags else None
    return PhotoListResponse.from_page(photo_service.list_photos(user_id, page, size, tag_filter, sort_by))


@router.get("/{photo_id}", response_model=PhotoResponse)
def get_photo(
    photo_id: str,
    photo_service: PhotoService = Depends(get_photo_service),
    user_id: str = Depends(verify_token)
):
    """Get one photo with a download URL."""
    return PhotoResponse.from_view(photo_service.get_photo(photo_id, user_id))


@router.get("/{photo_id}/download", response_model=DownloadUrlResponse)
def get_download_url(
    photo_id: str,
    photo_service: PhotoService = Depends(get_photo_service),
    user_id: str = Depends(verify_token)
):
    """Get a fresh download URL for one photo."""
    return DownloadUrlResponse(photo_id=photo_id, download_url=photo_service.download_url(photo_id, user_id))


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_photo(
    photo_id: str,
    photo_service: PhotoService = Depends(get_photo_service),
    user_id: str = Depends(verify_token)
):
    """Delete a photo and its stored file."""
    photo_service.delete_photo(photo_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{photo_id}/tags", response_model=PhotoResponse)
def add_tags(
    photo_id: str,
    request: TagsRequest,
    tag_service: TagService = Depends(get_tag_service),
    user_id: str = Depends(verify_token)
):
    """Add tags to a photo."""
    return PhotoResponse.from_view(tag_service.apply(photo_id, user_id, request.tags, TagOperation.ADD))


@router.delete("/{photo_id}/tags", response_model=PhotoResponse)
def remove_tags(
    photo_id: str,
    request: TagsRequest,
    tag_service: TagService = Depends(get_tag_service),
    user_id: str = Depends(verify_token)
):
    """Remove tags from a photo."""
    return PhotoResponse.from_view(tag_service.apply(photo_id, user_id, request.tags, TagOperation.REMOVE))


@router.put("/{photo_id}/tags", response_model=PhotoResponse)
def replace_tags(
    photo_id: str,
    request: TagsRequest,
    tag_service: TagService = Depends(get_tag_service),
    user_id: str = Depends(verify_token)
):
    """Replace all tags on a photo. An empty list clears them."""
    return PhotoResponse.from_view(tag_service.apply(photo_id, user_id, request.tags, TagOperation.REPLACE))
