"""
In-memory upload record store.
Used for local development and tests; thread-safe.
"""
import copy
import threading
from typing import Dict, Iterable, List, Optional

from photoupload.core.exceptions import ConcurrentModificationException
from photoupload.models.upload_batch import UploadBatch
from photoupload.models.upload_record import UploadRecord, normalize_tags
from photoupload.repositories.upload_repository import DEFAULT_SORT_FIELD, UploadRepository, sort_records


class InMemoryUploadRepository(UploadRepository):
    """Repository that keeps deep copies of records and batches behind a lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._records: Dict[str, UploadRecord] = {}
        self._batches: Dict[str, UploadBatch] = {}

    def get_record(self, record_id: str) -> Optional[UploadRecord]:
        with self._lock:
            record = self._records.get(record_id)
            return copy.deepcopy(record) if record else None

    def save_record(self, record: UploadRecord) -> None:
        with self._lock:
            self._check_version(self._records.get(record.record_id), record.version, "Photo", record.record_id)
            self._store_record(record)

    def delete_record(self, record_id: str) -> None:
        with self._lock:
            self._records.pop(record_id, None)

    def list_records(
        self,
        owner_id: str,
        page: int = 0,
        size: int = 20,
        tags: Optional[Iterable[str]] = None,
        sort_by: str = DEFAULT_SORT_FIELD
    ) -> List[UploadRecord]:
        matching = sort_records(self._matching(owner_id, tags), sort_by)
        start = page * size
        return [copy.deepcopy(r) for r in matching[start:start + size]]

    def count_records(self, owner_id: str, tags: Optional[Iterable[str]] = None) -> int:
        return len(self._matching(owner_id, tags))

    def get_batch(self, batch_id: str) -> Optional[UploadBatch]:
        with self._lock:
            batch = self._batches.get(batch_id)
            return copy.deepcopy(batch) if batch else None

    def save_batch(self, batch: UploadBatch) -> None:
        with self._lock:
            self._check_version(self._batches.get(batch.batch_id), batch.version, "Batch", batch.batch_id)
            self._store_batch(batch)

    def commit_settlement(self, record: UploadRecord, batch: Optional[UploadBatch] = None) -> None:
        with self._lock:
            self._check_version(self._records.get(record.record_id), record.version, "Photo", record.record_id)
            if batch is not None:
                self._check_version(self._batches.get(batch.batch_id), batch.version, "Batch", batch.batch_id)
            self._store_record(record)
            if batch is not None:
                self._store_batch(batch)

    def check_health(self) -> None:
        pass

    def _matching(self, owner_id: str, tags: Optional[Iterable[str]]) -> List[UploadRecord]:
        required = normalize_tags(tags)
        with self._lock:
            matching = [
                r for r in self._records.values()
                if r.owner_id == owner_id and required.issubset(r.tags)
            ]
        return matching

    def _store_record(self, record: UploadRecord) -> None:
        record.version += 1
        self._records[record.record_id] = copy.deepcopy(record)

    def _store_batch(self, batch: UploadBatch) -> None:
        batch.version += 1
        self._batches[batch.batch_id] = copy.deepcopy(batch)

    @staticmethod
    def _check_version(current, expected: int, entity: str, entity_id: str) -> None:
        stored = current.version if current is not None else 0
        if stored != expected:
            raise ConcurrentModificationException(
                f"{entity} '{entity_id}' was modified concurrently (expected version {expected}, found {stored})"
            )
