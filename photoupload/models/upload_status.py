"""
Upload status values shared by photos and batches.
"""
from enum import Enum


class UploadStatus(str, Enum):
    """Lifecycle status of an upload record or batch."""

    PENDING = "PENDING"
    UPLOADING = "UPLOADING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.FAILED)
