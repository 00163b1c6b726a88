"""
Unit tests for S3Repository.
Uses moto to mock AWS S3 service.
"""
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse
import boto3
import pytest
from botocore.exceptions import ClientError
from photoupload.core.exceptions import StorageUnavailableException, ValidationException
from photoupload.repositories.s3_repository import S3Repository
from conftest import TEST_BUCKET

KEY = "user-1/2024/06/0f8fad5b-d9cb-469f-a165-70867728950e-beach.jpg"


class TestS3Repository:
    """Test suite for S3Repository."""

    @pytest.fixture
    def repo(self, aws):
        return S3Repository()

    def test_grant_upload_returns_presigned_put_url(self, repo):
        url = repo.grant_upload(KEY, "image/jpeg", 15)

        parsed = urlparse(url)
        assert TEST_BUCKET in url
        assert parsed.path.endswith(KEY)
        query = parse_qs(parsed.query)
        assert query.get("X-Amz-Expires") == ["900"] or "Expires" in query

    def test_grant_download_returns_presigned_get_url(self, repo):
        url = repo.grant_download(KEY, 60)
        assert KEY in url

    @pytest.mark.parametrize("ttl", [0, 2000, -5, None])
    def test_grant_upload_rejects_ttl_out_of_range(self, repo, ttl):
        with pytest.raises(ValidationException):
            repo.grant_upload(KEY, "image/jpeg", ttl)

    @pytest.mark.parametrize("ttl", [1, 1440])
    def test_grant_upload_accepts_ttl_bounds(self, repo, ttl):
        assert repo.grant_upload(KEY, "image/jpeg", ttl)

    def test_grant_upload_rejects_blank_key(self, repo):
        with pytest.raises(ValidationException):
            repo.grant_upload("  ", "image/jpeg", 15)

    def test_grant_upload_rejects_blank_content_type(self, repo):
        with pytest.raises(ValidationException):
            repo.grant_upload(KEY, "", 15)

    def test_grants_are_not_tracked(self, repo):
        first = repo.grant_download(KEY, 60)
        second = repo.grant_download(KEY, 30)
        assert first and second

    def test_object_exists(self, repo):
        assert repo.object_exists(KEY) is False
        boto3.client('s3', region_name='us-east-1').put_object(Bucket=TEST_BUCKET, Key=KEY, Body=b"jpeg")
        assert repo.object_exists(KEY) is True

    def test_revoke_deletes_object(self, repo):
        s3 = boto3.client('s3', region_name='us-east-1')
        s3.put_object(Bucket=TEST_BUCKET, Key=KEY, Body=b"jpeg")

        repo.revoke(KEY)

        assert repo.object_exists(KEY) is False

    def test_revoke_failure_raises_storage_unavailable(self, repo):
        error = ClientError({'Error': {'Code': 'AccessDenied', 'Message': 'Denied'}}, 'DeleteObject')
        with patch.object(repo.s3_client, 'delete_object', side_effect=error):
            with pytest.raises(StorageUnavailableException) as exc_info:
                repo.revoke(KEY)
        assert "Failed to delete object" in str(exc_info.value)

    def test_presign_failure_raises_storage_unavailable(self, repo):
        error = ClientError({'Error': {'Code': 'InternalError', 'Message': 'boom'}}, 'GeneratePresignedUrl')
        with patch.object(repo.s3_client, 'generate_presigned_url', side_effect=error):
            with pytest.raises(StorageUnavailableException):
                repo.grant_upload(KEY, "image/jpeg", 15)

    def test_check_bucket_passes_for_existing_bucket(self, repo):
        repo.check_bucket()

    def test_check_bucket_fails_for_missing_bucket(self, repo):
        boto3.client('s3', region_name='us-east-1').delete_bucket(Bucket=TEST_BUCKET)
        with pytest.raises(StorageUnavailableException) as exc_info:
            repo.check_bucket()
        assert TEST_BUCKET in str(exc_info.value)
