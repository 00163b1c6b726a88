"""
Shared test fixtures and utilities.
"""
from unittest.mock import Mock
import boto3
import pytest
from moto import mock_aws
from photoupload.core import config, dependencies
from photoupload.repositories.memory_upload_repository import InMemoryUploadRepository
from photoupload.repositories.s3_repository import S3Repository
from photoupload.services.token_service import TokenService

TEST_JWT_SECRET = "test-secret-for-photo-upload-api-0123456789"
TEST_BUCKET = "test-bucket"
PHOTOS_TABLE = "Photos-test"
BATCHES_TABLE = "Batches-test"
USERS_TABLE = "Users-test"
TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Point settings at test resources and rebuild dependency singletons."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.setenv('AWS_REGION', 'us-east-1')
    monkeypatch.setenv('S3_BUCKET_NAME', TEST_BUCKET)
    monkeypatch.setenv('PHOTOS_TABLE_NAME', PHOTOS_TABLE)
    monkeypatch.setenv('BATCHES_TABLE_NAME', BATCHES_TABLE)
    monkeypatch.setenv('USERS_TABLE_NAME', USERS_TABLE)
    monkeypatch.setenv('STORE_BACKEND', 'dynamodb')
    monkeypatch.setenv('JWT_SECRET', TEST_JWT_SECRET)
    monkeypatch.setenv('JWT_SECRET_PARAMETER', '')
    monkeypatch.setenv('SETTLEMENT_RETRY_BACKOFF_SECONDS', '0.001')
    monkeypatch.setenv('ENVIRONMENT', 'test')

    original = config.settings
    config.settings = config.Settings()
    dependencies.clear_dependency_caches()

    yield config.settings

    config.settings = original
    dependencies.clear_dependency_caches()


def create_tables():
    """Create the photos, batches and users tables with their indexes."""
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
    dynamodb.create_table(
        TableName=PHOTOS_TABLE,
        KeySchema=[{'AttributeName': 'photo_id', 'KeyType': 'HASH'}],
        AttributeDefinitions=[
            {'AttributeName': 'photo_id', 'AttributeType': 'S'},
            {'AttributeName': 'owner_id', 'AttributeType': 'S'},
            {'AttributeName': 'upload_date', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': 'OwnerUploadDateIndex',
                'KeySchema': [
                    {'AttributeName': 'owner_id', 'KeyType': 'HASH'},
                    {'AttributeName': 'upload_date', 'KeyType': 'RANGE'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )
    dynamodb.create_table(
        TableName=BATCHES_TABLE,
        KeySchema=[{'AttributeName': 'batch_id', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'batch_id', 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST'
    )
    dynamodb.create_table(
        TableName=USERS_TABLE,
        KeySchema=[{'AttributeName': 'email', 'KeyType': 'HASH'}],
        AttributeDefinitions=[
            {'AttributeName': 'email', 'AttributeType': 'S'},
            {'AttributeName': 'user_id', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': 'UserIdIndex',
                'KeySchema': [{'AttributeName': 'user_id', 'KeyType': 'HASH'}],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )


@pytest.fixture
def aws():
    """Mocked AWS account with the bucket and tables created."""
    with mock_aws():
        boto3.client('s3', region_name='us-east-1').create_bucket(Bucket=TEST_BUCKET)
        create_tables()
        yield


@pytest.fixture
def memory_repository():
    return InMemoryUploadRepository()


@pytest.fixture
def s3_stub():
    """S3Repository double returning fixed URLs."""
    s3 = Mock(spec=S3Repository)
    s3.grant_upload.return_value = "https://test-bucket.s3.amazonaws.com/upload?signature=abc"
    s3.grant_download.return_value = "https://test-bucket.s3.amazonaws.com/download?signature=abc"
    return s3


@pytest.fixture
def token_service():
    return TokenService(secret=TEST_JWT_SECRET)


@pytest.fixture
def auth_headers(token_service):
    """Authorization headers carrying a valid access token for TEST_USER_ID."""
    token = token_service.issue_access(TEST_USER_ID, "user1@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(token_service):
    token = token_service.issue_access(OTHER_USER_ID, "user2@example.com")
    return {"Authorization": f"Bearer {token}"}
