"""
Tests for BatchProgressService.
"""
from unittest.mock import patch
import pytest
from photoupload.core.exceptions import (
    ConcurrentModificationException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException
)
from photoupload.models.upload_status import UploadStatus
from photoupload.services.batch_service import BatchProgressService


class TestBatchProgressService:
    """Test suite for BatchProgressService."""

    @pytest.fixture
    def batch_service(self, memory_repository):
        return BatchProgressService(memory_repository)

    def test_create_batch(self, batch_service, memory_repository):
        batch = batch_service.create_batch("user-1", 3)

        stored = memory_repository.get_batch(batch.batch_id)
        assert stored.status == UploadStatus.PENDING
        assert stored.total_files == 3
        assert stored.owner_id == "user-1"

    @pytest.mark.parametrize("total", [0, 101])
    def test_create_batch_rejects_invalid_total(self, batch_service, total):
        with pytest.raises(ValidationException):
            batch_service.create_batch("user-1", total)

    def test_status_of_missing_batch(self, batch_service):
        with pytest.raises(NotFoundException):
            batch_service.status("missing", "user-1")

    def test_status_of_foreign_batch(self, batch_service):
        batch = batch_service.create_batch("user-1", 2)
        with pytest.raises(ForbiddenException):
            batch_service.status(batch.batch_id, "user-2")

    def test_on_file_settled_counts(self, batch_service):
        batch = batch_service.create_batch("user-1", 2)

        after_first = batch_service.on_file_settled(batch.batch_id)
        assert after_first.status == UploadStatus.UPLOADING

        after_second = batch_service.on_file_settled(batch.batch_id, succeeded=False)
        assert after_second.status == UploadStatus.COMPLETED
        assert after_second.failed_files == 1

        with pytest.raises(ConflictException):
            batch_service.on_file_settled(batch.batch_id)

    def test_abort(self, batch_service):
        batch = batch_service.create_batch("user-1", 2)
        aborted = batch_service.abort(batch.batch_id, "user-1")
        assert aborted.status == UploadStatus.FAILED
        assert batch_service.abort(batch.batch_id, "user-1").status == UploadStatus.FAILED

    def test_abort_foreign_batch(self, batch_service):
        batch = batch_service.create_batch("user-1", 2)
        with pytest.raises(ForbiddenException):
            batch_service.abort(batch.batch_id, "user-2")
        assert batch_service.status(batch.batch_id, "user-1").status == UploadStatus.PENDING

    def test_reserve_slot_caps_at_total(self, batch_service):
        batch = batch_service.create_batch("user-1", 1)
        batch_service.reserve_slot(batch.batch_id, "user-1")
        with pytest.raises(ConflictException):
            batch_service.reserve_slot(batch.batch_id, "user-1")

    def test_release_slot_reopens_full_batch(self, batch_service, memory_repository):
        batch = batch_service.create_batch("user-1", 1)
        batch_service.reserve_slot(batch.batch_id, "user-1")

        released = batch_service.release_slot(batch.batch_id)

        assert released.registered_files == 0
        assert memory_repository.get_batch(batch.batch_id).registered_files == 0
        batch_service.reserve_slot(batch.batch_id, "user-1")

    def test_retries_after_concurrent_modification(self, batch_service, memory_repository):
        batch = batch_service.create_batch("user-1", 3)
        original_save = memory_repository.save_batch
        calls = []

        def flaky_save(b):
            calls.append(b.version)
            if len(calls) == 1:
                raise ConcurrentModificationException("lost race")
            return original_save(b)

        with patch.object(memory_repository, 'save_batch', side_effect=flaky_save):
            result = batch_service.on_file_settled(batch.batch_id)

        assert len(calls) == 2
        assert result.completed_files == 1

    def test_gives_up_after_max_attempts(self, batch_service, memory_repository, test_settings):
        batch = batch_service.create_batch("user-1", 3)
        test_settings.settlement_max_attempts = 3

        with patch.object(
            memory_repository, 'save_batch', side_effect=ConcurrentModificationException("lost race")
        ) as save:
            with pytest.raises(ConcurrentModificationException):
                batch_service.on_file_settled(batch.batch_id)

        assert save.call_count == 3
