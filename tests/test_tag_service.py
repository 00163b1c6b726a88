"""
Tests for TagService.
"""
import pytest
from photoupload.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from photoupload.models.upload_record import UploadRecord
from photoupload.services.photo_service import PhotoService
from photoupload.services.tag_service import TagOperation, TagService

RECORD_ID = "9b2e5c1e-3c4f-4d59-9a53-6f0f2c1a7b11"


class TestTagService:
    """Test suite for TagService."""

    @pytest.fixture
    def tag_service(self, memory_repository, s3_stub):
        return TagService(PhotoService(memory_repository, s3_stub))

    @pytest.fixture
    def record(self, memory_repository):
        record = UploadRecord(
            record_id=RECORD_ID,
            owner_id="user-1",
            filename="beach.jpg",
            storage_key=f"user-1/2024/06/{RECORD_ID}-beach.jpg",
            content_type="image/jpeg",
            file_size=100,
            tags=["beach"]
        )
        memory_repository.save_record(record)
        return record

    def test_add_tags(self, tag_service, record):
        view = tag_service.apply(RECORD_ID, "user-1", ["Sunset", " summer "], TagOperation.ADD)
        assert view.record.tags == {"beach", "sunset", "summer"}
        assert view.download_url

    def test_add_is_idempotent(self, tag_service, memory_repository, record):
        tag_service.apply(RECORD_ID, "user-1", ["sunset"], TagOperation.ADD)
        version = memory_repository.get_record(RECORD_ID).version
        view = tag_service.apply(RECORD_ID, "user-1", ["SUNSET"], TagOperation.ADD)

        assert view.record.tags == {"beach", "sunset"}
        assert memory_repository.get_record(RECORD_ID).version == version

    def test_remove_tags(self, tag_service, memory_repository, record):
        tag_service.apply(RECORD_ID, "user-1", ["Beach", "absent"], TagOperation.REMOVE)
        assert memory_repository.get_record(RECORD_ID).tags == set()

    def test_remove_absent_is_noop(self, tag_service, record):
        view = tag_service.apply(RECORD_ID, "user-1", ["absent"], TagOperation.REMOVE)
        assert view.record.tags == {"beach"}

    def test_replace_tags(self, tag_service, memory_repository, record):
        tag_service.apply(RECORD_ID, "user-1", ["a", "b"], TagOperation.REPLACE)
        assert memory_repository.get_record(RECORD_ID).tags == {"a", "b"}

    def test_replace_with_empty_list_clears(self, tag_service, memory_repository, record):
        tag_service.apply(RECORD_ID, "user-1", [], TagOperation.REPLACE)
        assert memory_repository.get_record(RECORD_ID).tags == set()

    @pytest.mark.parametrize("operation", list(TagOperation))
    def test_blank_tag_rejected_for_every_operation(self, tag_service, record, operation):
        with pytest.raises(ValidationException):
            tag_service.apply(RECORD_ID, "user-1", ["ok", "  "], operation)

    @pytest.mark.parametrize("operation", list(TagOperation))
    def test_long_tag_rejected_for_every_operation(self, tag_service, record, operation):
        with pytest.raises(ValidationException):
            tag_service.apply(RECORD_ID, "user-1", ["x" * 101], operation)

    def test_tag_limit_enforced(self, tag_service, memory_repository, record):
        with pytest.raises(ValidationException):
            tag_service.apply(RECORD_ID, "user-1", [f"t{i}" for i in range(50)], TagOperation.ADD)
        assert memory_repository.get_record(RECORD_ID).tags == {"beach"}

    def test_download_grant_is_60_minutes(self, tag_service, s3_stub, record):
        tag_service.apply(RECORD_ID, "user-1", ["x"], TagOperation.ADD)
        s3_stub.grant_download.assert_called_with(record.storage_key, 60)

    def test_missing_photo(self, tag_service):
        with pytest.raises(NotFoundException):
            tag_service.apply("missing", "user-1", ["x"], TagOperation.ADD)

    def test_foreign_photo(self, tag_service, record):
        with pytest.raises(ForbiddenException):
            tag_service.apply(RECORD_ID, "user-2", ["x"], TagOperation.ADD)
