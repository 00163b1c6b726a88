"""
Abstract base class for upload record stores.
Defines the contract for photo and batch persistence.

Every write is conditional on the version the caller loaded. A write that
loses to a concurrent writer raises ConcurrentModificationException and
leaves the stored item untouched; on success the object's version is
advanced to the stored value.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional
from photoupload.models.upload_batch import UploadBatch
from photoupload.models.upload_record import UploadRecord

DEFAULT_SORT_FIELD = "uploadDate"

# Listing orders by API field name; all descending, ties broken by record id.
SORT_FIELDS: Dict[str, Callable[[UploadRecord], Any]] = {
    "uploadDate": lambda r: r.upload_date,
    "filename": lambda r: r.filename.lower(),
    "fileSize": lambda r: r.file_size,
    "status": lambda r: r.status.value,
}


def sort_records(records: Iterable[UploadRecord], sort_by: str = DEFAULT_SORT_FIELD) -> List[UploadRecord]:
    """Order records for listing by one of SORT_FIELDS."""
    field = SORT_FIELDS[sort_by]
    return sorted(records, key=lambda r: (field(r), r.record_id), reverse=True)


class UploadRepository(ABC):
    """Repository interface for upload records and batches."""

    @abstractmethod
    def get_record(self, record_id: str) -> Optional[UploadRecord]:
        """Load one photo record, or None if absent."""
        pass

    @abstractmethod
    def save_record(self, record: UploadRecord) -> None:
        """Create (version 0) or update a photo record."""
        pass

    @abstractmethod
    def delete_record(self, record_id: str) -> None:
        """Delete a photo record. Deleting a missing record is a no-op."""
        pass

    @abstractmethod
    def list_records(
        self,
        owner_id: str,
        page: int = 0,
        size: int = 20,
        tags: Optional[Iterable[str]] = None,
        sort_by: str = DEFAULT_SORT_FIELD
    ) -> List[UploadRecord]:
        """List an owner's records ordered by sort_by, optionally requiring every tag given."""
        pass

    @abstractmethod
    def count_records(self, owner_id: str, tags: Optional[Iterable[str]] = None) -> int:
        """Count an owner's records, optionally requiring every tag given."""
        pass

    @abstractmethod
    def get_batch(self, batch_id: str) -> Optional[UploadBatch]:
        """Load one batch, or None if absent."""
        pass

    @abstractmethod
    def save_batch(self, batch: UploadBatch) -> None:
        """Create (version 0) or update a batch."""
        pass

    @abstractmethod
    def commit_settlement(self, record: UploadRecord, batch: Optional[UploadBatch] = None) -> None:
        """Write a record and, if given, its batch atomically. Neither is written if either check fails."""
        pass

    @abstractmethod
    def check_health(self) -> None:
        """Raise PersistenceException if the store cannot serve requests."""
        pass
