"""
Upload Service orchestrating the photo upload lifecycle.
Creates records with upload grants and settles them together with their batch.
"""
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional
from photoupload.core import config
from photoupload.core.exceptions import ForbiddenException, NotFoundException, PhotoUploadException
from photoupload.models.upload_record import UploadRecord, build_storage_key
from photoupload.models.upload_status import UploadStatus
from photoupload.repositories.s3_repository import S3Repository
from photoupload.repositories.upload_repository import UploadRepository
from photoupload.services.batch_service import BatchProgressService
from photoupload.services.file_service import FileService
from photoupload.services.optimistic import retry_on_concurrent_modification

logger = logging.getLogger(__name__)

GRANT_FAILURE_REASON = "Upload URL could not be issued"


class InitiatedUpload:
    """Result of initiating one upload: the new record and where to PUT the bytes."""

    def __init__(self, record_id: str, grant_url: str, storage_key: str, expires_at: datetime):
        self.record_id = record_id
        self.grant_url = grant_url
        self.storage_key = storage_key
        self.expires_at = expires_at

    def __repr__(self):
        return f"InitiatedUpload(record_id={self.record_id}, storage_key={self.storage_key})"


class UploadService:
    """
    Service for the upload workflow.

    Records are never cached between calls: every settlement reloads the
    record and its batch, mutates them and commits both under their version
    checks, retrying when another writer got there first.
    """

    def __init__(
        self,
        upload_repository: UploadRepository,
        s3_repository: S3Repository,
        batch_service: BatchProgressService,
        file_service: Optional[FileService] = None
    ):
        self.upload_repository = upload_repository
        self.s3_repository = s3_repository
        self.batch_service = batch_service
        self.file_service = file_service or FileService()

    def initiate(
        self,
        owner_id: str,
        filename: str,
        content_type: str,
        file_size: int,
        tags: Optional[Iterable[str]] = None,
        batch_id: Optional[str] = None
    ) -> InitiatedUpload:
        """
        Create a PENDING record and a presigned upload URL for it.

        The record write and the grant request run concurrently. If the grant
        fails the stored record is settled FAILED so its batch slot is not
        held forever; if the record write fails the batch slot is released.

        Args:
            owner_id: Authenticated user
            filename: Original filename
            content_type: Image MIME type
            file_size: Size in bytes
            tags: Initial tags
            batch_id: Optional batch the file belongs to

        Returns:
            InitiatedUpload with record id, grant URL, storage key and expiry

        Raises:
            ValidationException: If the metadata is invalid
            NotFoundException: If batch_id does not exist
            ForbiddenException: If the batch belongs to someone else
            ConflictException: If the batch is terminal or full
            StorageUnavailableException: If the grant cannot be issued
            PersistenceException: If the record cannot be stored
        """
        metadata = self.file_service.validate_upload(filename, content_type, file_size, tags)

        if batch_id:
            self.batch_service.reserve_slot(batch_id, owner_id)

        record_id = str(uuid.uuid4())
        record = UploadRecord(
            record_id=record_id,
            owner_id=owner_id,
            filename=metadata.filename,
            storage_key=build_storage_key(owner_id, record_id, metadata.filename),
            content_type=metadata.content_type,
            file_size=metadata.file_size,
            batch_id=batch_id,
            tags=metadata.tags
        )
        ttl_minutes = config.settings.upload_url_ttl_minutes

        with ThreadPoolExecutor(max_workers=2) as pool:
            save_future = pool.submit(self.upload_repository.save_record, record)
            grant_future = pool.submit(
                self.s3_repository.grant_upload,
                record.storage_key,
                record.content_type,
                ttl_minutes
            )
            save_error = save_future.exception()
            grant_error = grant_future.exception()

        if save_error is not None:
            if batch_id:
                self.batch_service.release_slot(batch_id)
            raise save_error
        if grant_error is not None:
            self._abandon(record)
            raise grant_error
        grant_url = grant_future.result()

        logger.info("Initiated upload %s for user %s (batch=%s)", record_id, owner_id, batch_id)
        return InitiatedUpload(
            record_id=record_id,
            grant_url=grant_url,
            storage_key=record.storage_key,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)
        )

    def report_completion(self, record_id: str, owner_id: str) -> UploadRecord:
        """
        Settle a record as COMPLETED and count it against its batch.

        Raises:
            NotFoundException: If the record does not exist
            ForbiddenException: If the caller does not own it
            ConflictException: If the record is already COMPLETED or FAILED
        """
        def complete(record: UploadRecord) -> bool:
            record.mark_completed()
            return True

        record = self._settle(record_id, owner_id, complete, succeeded=True)
        logger.info("Upload %s completed", record_id)
        return record

    def report_failure(self, record_id: str, owner_id: str, reason: Optional[str] = None) -> UploadRecord:
        """
        Settle a record as FAILED and count it against its batch.

        Reporting failure on an already FAILED record changes nothing.

        Raises:
            NotFoundException: If the record does not exist
            ForbiddenException: If the caller does not own it
            ConflictException: If the record is already COMPLETED
        """
        record = self._settle(record_id, owner_id, lambda r: r.mark_failed(reason), succeeded=False)
        logger.info("Upload %s failed: %s", record_id, record.error_message)
        return record

    def status(self, record_id: str, owner_id: str) -> UploadRecord:
        """
        Load a record owned by the caller.

        Raises:
            NotFoundException, ForbiddenException
        """
        return self._load_owned(record_id, owner_id)

    def _abandon(self, record: UploadRecord) -> None:
        """Settle a record whose upload URL could not be issued."""
        logger.warning("Upload grant failed for %s, settling it as FAILED", record.record_id)
        try:
            self._settle(
                record.record_id,
                record.owner_id,
                lambda r: r.mark_failed(GRANT_FAILURE_REASON),
                succeeded=False
            )
        except PhotoUploadException:
            logger.exception("Could not settle upload %s after its grant failed", record.record_id)

    def _settle(
        self,
        record_id: str,
        owner_id: str,
        transition: Callable[[UploadRecord], bool],
        succeeded: bool
    ) -> UploadRecord:
        def attempt() -> UploadRecord:
            record = self._load_owned(record_id, owner_id)
            if not transition(record):
                return record

            batch = None
            if record.batch_id:
                batch = self.upload_repository.get_batch(record.batch_id)
                if batch is None:
                    logger.warning("Batch %s of upload %s no longer exists", record.batch_id, record_id)
                elif batch.status == UploadStatus.FAILED:
                    logger.info("Batch %s is aborted, settling upload %s alone", batch.batch_id, record_id)
                    batch = None
                else:
                    batch.on_file_settled(succeeded)

            self.upload_repository.commit_settlement(record, batch)
            if batch is not None:
                logger.info(
                    "Batch %s progress %d/%d (%s)",
                    batch.batch_id, batch.completed_files, batch.total_files, batch.status.value
                )
            return record

        return retry_on_concurrent_modification(attempt, f"upload {record_id} settlement")

    def _load_owned(self, record_id: str, owner_id: str) -> UploadRecord:
        record = self.upload_repository.get_record(record_id)
        if record is None:
            raise NotFoundException("Photo", record_id)
        if not record.is_owned_by(owner_id):
            raise ForbiddenException(f"Photo '{record_id}' does not belong to the authenticated user")
        return record
