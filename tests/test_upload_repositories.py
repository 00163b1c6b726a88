"""
Tests for the upload record stores.
The same behavior is checked against the in-memory store and DynamoDB via moto.
"""
from datetime import datetime, timedelta, timezone
import uuid
from unittest.mock import patch
import boto3
import pytest
from photoupload.core.exceptions import ConcurrentModificationException, PersistenceException
from photoupload.models.upload_batch import UploadBatch
from photoupload.models.upload_record import UploadRecord, build_storage_key
from photoupload.models.upload_status import UploadStatus
from photoupload.repositories.dynamo_upload_repository import DynamoUploadRepository
from photoupload.repositories.memory_upload_repository import InMemoryUploadRepository
from conftest import BATCHES_TABLE

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def new_record(owner_id="user-1", tags=None, minutes=0, batch_id=None, record_id=None, file_size=2048):
    record_id = record_id or str(uuid.uuid4())
    return UploadRecord(
        record_id=record_id,
        owner_id=owner_id,
        filename="photo.jpg",
        storage_key=build_storage_key(owner_id, record_id, "photo.jpg", BASE_TIME),
        content_type="image/jpeg",
        file_size=file_size,
        upload_date=BASE_TIME + timedelta(minutes=minutes),
        batch_id=batch_id,
        tags=tags
    )


@pytest.fixture(params=["memory", "dynamodb"])
def repository(request):
    if request.param == "memory":
        yield InMemoryUploadRepository()
    else:
        request.getfixturevalue("aws")
        yield DynamoUploadRepository()


class TestUploadRepository:
    """Test suite shared by both UploadRepository implementations."""

    def test_save_and_get_record(self, repository):
        record = new_record(tags=["Beach"])
        repository.save_record(record)

        assert record.version == 1
        loaded = repository.get_record(record.record_id)
        assert loaded.record_id == record.record_id
        assert loaded.storage_key == record.storage_key
        assert loaded.tags == {"beach"}
        assert loaded.status == UploadStatus.PENDING
        assert loaded.upload_date == record.upload_date
        assert loaded.version == 1

    def test_get_missing_record_returns_none(self, repository):
        assert repository.get_record("missing") is None

    def test_creating_existing_record_conflicts(self, repository):
        record = new_record()
        repository.save_record(record)
        duplicate = new_record(record_id=record.record_id)
        with pytest.raises(ConcurrentModificationException):
            repository.save_record(duplicate)

    def test_stale_update_conflicts(self, repository):
        record = new_record()
        repository.save_record(record)

        first = repository.get_record(record.record_id)
        second = repository.get_record(record.record_id)
        first.add_tag("one")
        repository.save_record(first)

        second.add_tag("two")
        with pytest.raises(ConcurrentModificationException):
            repository.save_record(second)
        assert repository.get_record(record.record_id).tags == {"one"}

    def test_error_message_round_trips(self, repository):
        record = new_record()
        repository.save_record(record)
        record.mark_failed("checksum mismatch")
        repository.save_record(record)

        loaded = repository.get_record(record.record_id)
        assert loaded.status == UploadStatus.FAILED
        assert loaded.error_message == "checksum mismatch"
        assert loaded.settled_at is not None

    def test_delete_record(self, repository):
        record = new_record()
        repository.save_record(record)
        repository.delete_record(record.record_id)
        assert repository.get_record(record.record_id) is None
        repository.delete_record(record.record_id)

    def test_list_records_newest_first_and_paged(self, repository):
        records = [new_record(minutes=i) for i in range(5)]
        for record in records:
            repository.save_record(record)
        repository.save_record(new_record(owner_id="user-2"))

        first_page = repository.list_records("user-1", page=0, size=2)
        second_page = repository.list_records("user-1", page=1, size=2)
        last_page = repository.list_records("user-1", page=2, size=2)

        assert [r.record_id for r in first_page] == [records[4].record_id, records[3].record_id]
        assert [r.record_id for r in second_page] == [records[2].record_id, records[1].record_id]
        assert [r.record_id for r in last_page] == [records[0].record_id]
        assert repository.count_records("user-1") == 5

    def test_list_records_by_file_size(self, repository):
        small = new_record(minutes=3, file_size=10)
        large = new_record(minutes=1, file_size=5000)
        medium = new_record(minutes=2, file_size=700)
        for record in (small, large, medium):
            repository.save_record(record)

        ordered = repository.list_records("user-1", sort_by="fileSize")
        assert [r.record_id for r in ordered] == [large.record_id, medium.record_id, small.record_id]

    def test_list_records_requires_every_tag(self, repository):
        both = new_record(tags=["beach", "sunset"], minutes=1)
        beach_only = new_record(tags=["beach"], minutes=2)
        repository.save_record(both)
        repository.save_record(beach_only)

        matched = repository.list_records("user-1", tags=["Beach", "sunset"])
        assert [r.record_id for r in matched] == [both.record_id]
        assert repository.count_records("user-1", tags=["beach"]) == 2

    def test_save_and_get_batch(self, repository):
        batch = UploadBatch(batch_id=str(uuid.uuid4()), owner_id="user-1", total_files=3)
        repository.save_batch(batch)

        batch.reserve_slot()
        repository.save_batch(batch)

        loaded = repository.get_batch(batch.batch_id)
        assert loaded.total_files == 3
        assert loaded.registered_files == 1
        assert loaded.version == 2

    def test_commit_settlement_writes_both(self, repository):
        batch = UploadBatch(batch_id=str(uuid.uuid4()), owner_id="user-1", total_files=2)
        repository.save_batch(batch)
        record = new_record(batch_id=batch.batch_id)
        repository.save_record(record)

        record.mark_completed()
        batch.on_file_settled(True)
        repository.commit_settlement(record, batch)

        assert repository.get_record(record.record_id).status == UploadStatus.COMPLETED
        stored_batch = repository.get_batch(batch.batch_id)
        assert stored_batch.completed_files == 1
        assert stored_batch.status == UploadStatus.UPLOADING

    def test_commit_settlement_is_all_or_nothing(self, repository):
        batch = UploadBatch(batch_id=str(uuid.uuid4()), owner_id="user-1", total_files=2)
        repository.save_batch(batch)
        record = new_record(batch_id=batch.batch_id)
        repository.save_record(record)

        stale_batch = repository.get_batch(batch.batch_id)
        fresh_batch = repository.get_batch(batch.batch_id)
        fresh_batch.reserve_slot()
        repository.save_batch(fresh_batch)

        record.mark_completed()
        stale_batch.on_file_settled(True)
        with pytest.raises(ConcurrentModificationException):
            repository.commit_settlement(record, stale_batch)

        assert repository.get_record(record.record_id).status == UploadStatus.PENDING
        assert repository.get_batch(batch.batch_id).completed_files == 0

    def test_commit_settlement_without_batch(self, repository):
        record = new_record()
        repository.save_record(record)
        record.mark_failed("gone")
        repository.commit_settlement(record)
        assert repository.get_record(record.record_id).status == UploadStatus.FAILED


class TestDynamoErrorMessages:
    """Unexpected driver errors are wrapped without their text."""

    def test_unexpected_error_message_omits_cause(self, aws):
        repository = DynamoUploadRepository()
        with patch.object(repository.photos_table, 'get_item', side_effect=RuntimeError("internal-host:5432")):
            with pytest.raises(PersistenceException) as exc_info:
                repository.get_record("photo-1")

        assert exc_info.value.message == "Unexpected error getting photo"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestStoreHealth:
    """Test suite for check_health."""

    def test_healthy_store(self, repository):
        repository.check_health()

    def test_missing_table_is_reported(self, aws):
        boto3.client('dynamodb', region_name='us-east-1').delete_table(TableName=BATCHES_TABLE)
        with pytest.raises(PersistenceException) as exc_info:
            DynamoUploadRepository().check_health()
        assert BATCHES_TABLE in str(exc_info.value)
