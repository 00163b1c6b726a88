"""
S3 Repository for object grants.
Issues presigned URLs so clients move bytes directly to and from Amazon S3.
"""
import logging
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from photoupload.core import config
from photoupload.core.exceptions import StorageUnavailableException, ValidationException

logger = logging.getLogger(__name__)

MIN_GRANT_TTL_MINUTES = 1
MAX_GRANT_TTL_MINUTES = 1440


class S3Repository:
    """
    Repository for S3 grant and object operations.

    Grants are not tracked server-side: S3 verifies the signature and expiry,
    so several valid grants for the same key may coexist.
    """

    def __init__(self):
        self.s3_client = boto3.client('s3', region_name=config.settings.aws_region)
        self.bucket_name = config.settings.s3_bucket_name

    def grant_upload(self, key: str, content_type: str, ttl_minutes: int) -> str:
        """
        Generate a presigned PUT URL for one object.

        Args:
            key: Object key
            content_type: MIME type the client must send
            ttl_minutes: Validity in minutes, 1 to 1440

        Returns:
            Presigned URL

        Raises:
            ValidationException: If key or content type is blank or ttl is out of range
            StorageUnavailableException: If the URL cannot be generated
        """
        self._validate_key(key)
        if not content_type or not content_type.strip():
            raise ValidationException("Content type cannot be blank")
        self._validate_ttl(ttl_minutes)

        return self._presign(
            'put_object',
            {'Bucket': self.bucket_name, 'Key': key, 'ContentType': content_type},
            ttl_minutes
        )

    def grant_download(self, key: str, ttl_minutes: int) -> str:
        """
        Generate a presigned GET URL for one object.

        Raises:
            ValidationException: If key is blank or ttl is out of range
            StorageUnavailableException: If the URL cannot be generated
        """
        self._validate_key(key)
        self._validate_ttl(ttl_minutes)

        return self._presign('get_object', {'Bucket': self.bucket_name, 'Key': key}, ttl_minutes)

    def revoke(self, key: str) -> None:
        """
        Delete the object behind a key.

        Raises:
            StorageUnavailableException: If S3 rejects or fails the delete
        """
        self._validate_key(key)
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailableException(f"Failed to delete object from S3: {str(e)}") from e
        logger.info("Deleted object %s", key)

    def object_exists(self, key: str) -> bool:
        """
        Check whether an object has been written.

        Raises:
            StorageUnavailableException: If S3 fails for a reason other than a missing object
        """
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in ('404', 'NoSuchKey', 'NotFound'):
                return False
            raise StorageUnavailableException(f"Failed to check object in S3: {str(e)}") from e
        except BotoCoreError as e:
            raise StorageUnavailableException(f"Failed to check object in S3: {str(e)}") from e

    def check_bucket(self) -> None:
        """
        Confirm the bucket exists and is reachable with the current credentials.

        Raises:
            StorageUnavailableException: If the HEAD request fails
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            raise StorageUnavailableException(f"Bucket {self.bucket_name} is not accessible: {str(e)}") from e
        except BotoCoreError as e:
            raise StorageUnavailableException(f"Failed to reach S3: {str(e)}") from e

    def _presign(self, operation: str, params: dict, ttl_minutes: int) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                ClientMethod=operation,
                Params=params,
                ExpiresIn=ttl_minutes * 60
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailableException(f"Failed to generate presigned URL: {str(e)}") from e

    @staticmethod
    def _validate_key(key: str) -> None:
        if not key or not key.strip():
            raise ValidationException("Object key cannot be blank")

    @staticmethod
    def _validate_ttl(ttl_minutes: int) -> None:
        if ttl_minutes is None or not MIN_GRANT_TTL_MINUTES <= ttl_minutes <= MAX_GRANT_TTL_MINUTES:
            raise ValidationException(
                f"Grant TTL must be between {MIN_GRANT_TTL_MINUTES} and {MAX_GRANT_TTL_MINUTES} minutes"
            )
