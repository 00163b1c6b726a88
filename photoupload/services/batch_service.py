"""
Batch Service for aggregate upload progress.
Creates batches and applies settlements and aborts under optimistic concurrency.
"""
import logging
import uuid
from photoupload.core import config
from photoupload.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from photoupload.models.upload_batch import UploadBatch
from photoupload.repositories.upload_repository import UploadRepository
from photoupload.services.optimistic import retry_on_concurrent_modification

logger = logging.getLogger(__name__)


class BatchProgressService:
    """Service for batch lifecycle operations."""

    def __init__(self, upload_repository: UploadRepository):
        self.upload_repository = upload_repository

    def create_batch(self, owner_id: str, total_files: int) -> UploadBatch:
        """
        Create a PENDING batch for total_files uploads.

        Raises:
            ValidationException: If total_files is outside 1..max_batch_files
        """
        if total_files is None or total_files < 1:
            raise ValidationException("Total files must be at least 1")
        if total_files > config.settings.max_batch_files:
            raise ValidationException(
                f"A batch cannot contain more than {config.settings.max_batch_files} files"
            )

        batch = UploadBatch(batch_id=str(uuid.uuid4()), owner_id=owner_id, total_files=total_files)
        self.upload_repository.save_batch(batch)
        logger.info("Created batch %s with %d files for user %s", batch.batch_id, total_files, owner_id)
        return batch

    def status(self, batch_id: str, owner_id: str) -> UploadBatch:
        """
        Load a batch owned by the caller.

        Raises:
            NotFoundException: If the batch does not exist
            ForbiddenException: If the caller does not own it
        """
        return self._load_owned(batch_id, owner_id)

    def reserve_slot(self, batch_id: str, owner_id: str) -> UploadBatch:
        """
        Attach one upload to a batch.

        Raises:
            NotFoundException, ForbiddenException
            ConflictException: If the batch is terminal or full
        """
        def attempt() -> UploadBatch:
            batch = self._load_owned(batch_id, owner_id)
            batch.reserve_slot()
            self.upload_repository.save_batch(batch)
            return batch

        return retry_on_concurrent_modification(attempt, f"batch {batch_id} slot reservation")

    def release_slot(self, batch_id: str) -> UploadBatch:
        """Undo a reservation for an upload whose record was never stored."""
        def attempt() -> UploadBatch:
            batch = self._load(batch_id)
            batch.release_slot()
            self.upload_repository.save_batch(batch)
            return batch

        batch = retry_on_concurrent_modification(attempt, f"batch {batch_id} slot release")
        logger.info("Released a slot of batch %s (%d/%d registered)", batch_id, batch.registered_files, batch.total_files)
        return batch

    def on_file_settled(self, batch_id: str, succeeded: bool = True) -> UploadBatch:
        """
        Count one settled file against a batch.

        Raises:
            NotFoundException: If the batch does not exist
            ConflictException: If the batch is terminal or already fully settled
        """
        def attempt() -> UploadBatch:
            batch = self._load(batch_id)
            batch.on_file_settled(succeeded)
            self.upload_repository.save_batch(batch)
            return batch

        batch = retry_on_concurrent_modification(attempt, f"batch {batch_id} settlement")
        self._log_settlement(batch)
        return batch

    def abort(self, batch_id: str, owner_id: str) -> UploadBatch:
        """
        Mark a batch FAILED. Aborting a FAILED batch is a no-op.

        Raises:
            NotFoundException, ForbiddenException
            ConflictException: If the batch already completed
        """
        def attempt() -> UploadBatch:
            batch = self._load_owned(batch_id, owner_id)
            if batch.mark_failed():
                self.upload_repository.save_batch(batch)
                logger.info("Batch %s aborted at %d/%d files", batch_id, batch.completed_files, batch.total_files)
            return batch

        return retry_on_concurrent_modification(attempt, f"batch {batch_id} abort")

    def _load(self, batch_id: str) -> UploadBatch:
        batch = self.upload_repository.get_batch(batch_id)
        if batch is None:
            raise NotFoundException("Batch", batch_id)
        return batch

    def _load_owned(self, batch_id: str, owner_id: str) -> UploadBatch:
        batch = self._load(batch_id)
        if not batch.is_owned_by(owner_id):
            raise ForbiddenException(f"Batch '{batch_id}' does not belong to the authenticated user")
        return batch

    @staticmethod
    def _log_settlement(batch: UploadBatch) -> None:
        logger.info(
            "Batch %s progress %d/%d (%s)",
            batch.batch_id, batch.completed_files, batch.total_files, batch.status.value
        )
