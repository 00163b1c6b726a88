"""
Domain model for an upload batch.
Tracks aggregate progress of a client-declared group of files.
"""
from datetime import datetime, timezone
from typing import Optional

from photoupload.core.exceptions import ConflictException, ValidationException
from photoupload.models.upload_status import UploadStatus


class UploadBatch:
    """
    Progress state machine for a batch of uploads.

    completed_files counts settled files (succeeded or failed). The batch
    becomes COMPLETED on the settlement that makes completed_files equal
    total_files, and FAILED only when aborted.
    """

    def __init__(
        self,
        batch_id: str,
        owner_id: str,
        total_files: int,
        created_at: Optional[datetime] = None,
        status: UploadStatus = UploadStatus.PENDING,
        registered_files: int = 0,
        completed_files: int = 0,
        succeeded_files: int = 0,
        failed_files: int = 0,
        updated_at: Optional[datetime] = None,
        version: int = 0
    ):
        if not batch_id:
            raise ValidationException("Batch ID cannot be blank")
        if not owner_id:
            raise ValidationException("Owner ID cannot be blank")
        if total_files is None or total_files < 1:
            raise ValidationException("Total files must be at least 1")
        if not 0 <= completed_files <= total_files:
            raise ValidationException(f"Completed files must be between 0 and {total_files}")
        if not 0 <= registered_files <= total_files:
            raise ValidationException(f"Registered files must be between 0 and {total_files}")
        if succeeded_files + failed_files != completed_files:
            raise ValidationException("Succeeded and failed files must add up to completed files")

        self._batch_id = batch_id
        self._owner_id = owner_id
        self._total_files = total_files
        self._created_at = created_at or datetime.now(timezone.utc)
        self.status = UploadStatus(status)
        self.registered_files = registered_files
        self.completed_files = completed_files
        self.succeeded_files = succeeded_files
        self.failed_files = failed_files
        self.updated_at = updated_at or self._created_at
        self.version = version

    @property
    def batch_id(self) -> str:
        return self._batch_id

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def total_files(self) -> int:
        return self._total_files

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_owned_by(self, owner_id: str) -> bool:
        return self._owner_id == owner_id

    def progress_percent(self) -> float:
        if self._total_files == 0:
            return 0.0
        return self.completed_files * 100.0 / self._total_files

    def reserve_slot(self) -> None:
        """
        Attach one more file to the batch.

        Raises:
            ConflictException: If the batch is terminal or all slots are taken
        """
        if self.is_terminal:
            raise ConflictException(f"Batch '{self._batch_id}' is {self.status.value}")
        if self.registered_files >= self._total_files:
            raise ConflictException(
                f"Batch '{self._batch_id}' already has all {self._total_files} files registered"
            )
        self.registered_files += 1
        self._touch()

    def release_slot(self) -> None:
        """
        Give back a reserved slot whose upload was never recorded.

        Raises:
            ConflictException: If every registered file has already settled
        """
        if self.registered_files <= self.completed_files:
            raise ConflictException(f"Batch '{self._batch_id}' has no unsettled slot to release")
        self.registered_files -= 1
        self._touch()

    def on_file_settled(self, succeeded: bool = True) -> None:
        """
        Count one settled file.

        Raises:
            ConflictException: If the batch is terminal or every file is already settled
        """
        if self.status == UploadStatus.COMPLETED:
            raise ConflictException(f"Batch '{self._batch_id}' is already completed")
        if self.status == UploadStatus.FAILED:
            raise ConflictException(f"Batch '{self._batch_id}' has failed")
        if self.completed_files >= self._total_files:
            raise ConflictException(f"Batch '{self._batch_id}' has no unsettled files")

        self.completed_files += 1
        if succeeded:
            self.succeeded_files += 1
        else:
            self.failed_files += 1

        if self.completed_files == self._total_files:
            self.status = UploadStatus.COMPLETED
        elif self.status == UploadStatus.PENDING:
            self.status = UploadStatus.UPLOADING
        self._touch()

    def mark_failed(self) -> bool:
        """
        Abort the batch.

        Returns:
            True if the batch transitioned, False if it was already FAILED

        Raises:
            ConflictException: If the batch already COMPLETED
        """
        if self.status == UploadStatus.FAILED:
            return False
        if self.status == UploadStatus.COMPLETED:
            raise ConflictException(f"Batch '{self._batch_id}' is already completed")
        self.status = UploadStatus.FAILED
        self._touch()
        return True

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def __repr__(self):
        return (
            f"UploadBatch(batch_id={self._batch_id}, status={self.status.value}, "
            f"completed={self.completed_files}/{self._total_files}, "
            f"progress={self.progress_percent():.1f}%)"
        )
