"""
Photo Service for browsing, downloading and deleting uploaded photos.
"""
import logging
import math
from typing import Iterable, List, Optional
from photoupload.core import config
from photoupload.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from photoupload.models.upload_record import UploadRecord, normalize_tags
from photoupload.repositories.s3_repository import S3Repository
from photoupload.repositories.upload_repository import DEFAULT_SORT_FIELD, SORT_FIELDS, UploadRepository

logger = logging.getLogger(__name__)


class PhotoView:
    """A record paired with a fresh download URL."""

    def __init__(self, record: UploadRecord, download_url: Optional[str]):
        self.record = record
        self.download_url = download_url


class PhotoPage:
    """One page of an owner's photos."""

    def __init__(self, photos: List[PhotoView], page: int, size: int, total_count: int):
        self.photos = photos
        self.page = page
        self.size = size
        self.total_count = total_count

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.size) if self.size else 0


class PhotoService:
    """Service for gallery operations."""

    def __init__(self, upload_repository: UploadRepository, s3_repository: S3Repository):
        self.upload_repository = upload_repository
        self.s3_repository = s3_repository

    def list_photos(
        self,
        owner_id: str,
        page: int = 0,
        size: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
        sort_by: Optional[str] = None
    ) -> PhotoPage:
        """
        List an owner's photos, newest first unless sort_by names another field.

        Args:
            owner_id: Authenticated user
            page: Zero-based page number; negative values are treated as 0
            size: Page size, clamped to 1..pagination_max_size
            tags: Only photos carrying every one of these tags
            sort_by: One of SORT_FIELDS (default uploadDate); every order is descending

        Returns:
            PhotoPage with download URLs for each photo

        Raises:
            ValidationException: If sort_by is not a known field
        """
        sort_by = (sort_by or "").strip() or DEFAULT_SORT_FIELD
        if sort_by not in SORT_FIELDS:
            raise ValidationException(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
        page = max(page or 0, 0)
        if size is None:
            size = config.settings.pagination_default_size
        size = min(max(size, 1), config.settings.pagination_max_size)
        required = normalize_tags(tags)

        records = self.upload_repository.list_records(
            owner_id, page=page, size=size, tags=required, sort_by=sort_by
        )
        total_count = self.upload_repository.count_records(owner_id, tags=required)
        return PhotoPage(
            photos=[self.view(record) for record in records],
            page=page,
            size=size,
            total_count=total_count
        )

    def get_photo(self, record_id: str, owner_id: str) -> PhotoView:
        """
        Raises:
            NotFoundException, ForbiddenException
        """
        return self.view(self.load_owned(record_id, owner_id))

    def download_url(self, record_id: str, owner_id: str) -> str:
        record = self.load_owned(record_id, owner_id)
        return self.s3_repository.grant_download(record.storage_key, config.settings.download_url_ttl_minutes)

    def delete_photo(self, record_id: str, owner_id: str) -> None:
        """
        Delete the stored object, then the record.

        Raises:
            NotFoundException, ForbiddenException
            StorageUnavailableException: If the object cannot be deleted; the record is kept
        """
        record = self.load_owned(record_id, owner_id)
        self.s3_repository.revoke(record.storage_key)
        self.upload_repository.delete_record(record_id)
        logger.info("Deleted photo %s for user %s", record_id, owner_id)

    def load_owned(self, record_id: str, owner_id: str) -> UploadRecord:
        record = self.upload_repository.get_record(record_id)
        if record is None:
            raise NotFoundException("Photo", record_id)
        if not record.is_owned_by(owner_id):
            raise ForbiddenException(f"Photo '{record_id}' does not belong to the authenticated user")
        return record

    def view(self, record: UploadRecord) -> PhotoView:
        return PhotoView(
            record,
            self.s3_repository.grant_download(record.storage_key, config.settings.download_url_ttl_minutes)
        )
