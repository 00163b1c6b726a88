"""
DynamoDB Repository for photo records and upload batches.
Handles version-checked writes and owner-scoped listing in DynamoDB.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from photoupload.core import config
from photoupload.core.exceptions import ConcurrentModificationException, PersistenceException
from photoupload.models.upload_batch import UploadBatch
from photoupload.models.upload_record import UploadRecord, normalize_tags
from photoupload.models.upload_status import UploadStatus
from photoupload.repositories.upload_repository import DEFAULT_SORT_FIELD, UploadRepository, sort_records

OWNER_INDEX_NAME = "OwnerUploadDateIndex"

_RETRYABLE_CANCELLATIONS = {"ConditionalCheckFailed", "TransactionConflict"}


class DynamoUploadRepository(UploadRepository):
    """Repository for DynamoDB operations on photos and batches."""

    def __init__(self):
        self.dynamodb = boto3.resource('dynamodb', region_name=config.settings.aws_region)
        self.client = boto3.client('dynamodb', region_name=config.settings.aws_region)
        self.photos_table_name = config.settings.photos_table_name
        self.batches_table_name = config.settings.batches_table_name
        self.photos_table = self.dynamodb.Table(self.photos_table_name)
        self.batches_table = self.dynamodb.Table(self.batches_table_name)
        self._serializer = TypeSerializer()

    def get_record(self, record_id: str) -> Optional[UploadRecord]:
        """
        Retrieve a photo record by ID.

        Args:
            record_id: Photo identifier

        Returns:
            UploadRecord or None if not found

        Raises:
            PersistenceException: If the read fails
        """
        try:
            response = self.photos_table.get_item(Key={'photo_id': record_id}, ConsistentRead=True)
            if 'Item' not in response:
                return None
            return self._item_to_record(response['Item'])
        except ClientError as e:
            raise PersistenceException(f"Failed to get photo: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error getting photo") from e

    def save_record(self, record: UploadRecord) -> None:
        """
        Create or update a photo record, guarded by its version.

        Raises:
            ConcurrentModificationException: If the stored version differs
            PersistenceException: If the write fails
        """
        expected = record.version
        item = self._record_to_item(record, expected + 1)
        try:
            self.photos_table.put_item(
                Item=item,
                ConditionExpression=self._version_condition('photo_id', expected)
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConcurrentModificationException(
                    f"Photo '{record.record_id}' was modified concurrently"
                ) from e
            raise PersistenceException(f"Failed to save photo: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error saving photo") from e
        record.version = expected + 1

    def delete_record(self, record_id: str) -> None:
        try:
            self.photos_table.delete_item(Key={'photo_id': record_id})
        except ClientError as e:
            raise PersistenceException(f"Failed to delete photo: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error deleting photo") from e

    def list_records(
        self,
        owner_id: str,
        page: int = 0,
        size: int = 20,
        tags: Optional[Iterable[str]] = None,
        sort_by: str = DEFAULT_SORT_FIELD
    ) -> List[UploadRecord]:
        """
        List an owner's photos ordered by sort_by.

        Reads every matching item through the owner index and slices the
        requested page, so total counts and page offsets stay consistent.

        Raises:
            PersistenceException: If the query fails
        """
        records = sort_records(self._query_owner(owner_id, tags), sort_by)
        start = page * size
        return records[start:start + size]

    def count_records(self, owner_id: str, tags: Optional[Iterable[str]] = None) -> int:
        return len(self._query_owner(owner_id, tags))

    def get_batch(self, batch_id: str) -> Optional[UploadBatch]:
        try:
            response = self.batches_table.get_item(Key={'batch_id': batch_id}, ConsistentRead=True)
            if 'Item' not in response:
                return None
            return self._item_to_batch(response['Item'])
        except ClientError as e:
            raise PersistenceException(f"Failed to get batch: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error getting batch") from e

    def save_batch(self, batch: UploadBatch) -> None:
        """
        Create or update a batch, guarded by its version.

        Raises:
            ConcurrentModificationException: If the stored version differs
            PersistenceException: If the write fails
        """
        expected = batch.version
        item = self._batch_to_item(batch, expected + 1)
        try:
            self.batches_table.put_item(
                Item=item,
                ConditionExpression=self._version_condition('batch_id', expected)
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConcurrentModificationException(
                    f"Batch '{batch.batch_id}' was modified concurrently"
                ) from e
            raise PersistenceException(f"Failed to save batch: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error saving batch") from e
        batch.version = expected + 1

    def commit_settlement(self, record: UploadRecord, batch: Optional[UploadBatch] = None) -> None:
        """
        Write a photo and its batch in a single DynamoDB transaction.

        Raises:
            ConcurrentModificationException: If either version check fails
            PersistenceException: If the transaction fails for another reason
        """
        transact_items = [
            self._transact_put(self.photos_table_name, self._record_to_item(record, record.version + 1), record.version)
        ]
        if batch is not None:
            transact_items.append(
                self._transact_put(self.batches_table_name, self._batch_to_item(batch, batch.version + 1), batch.version)
            )

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            code = e.response['Error']['Code']
            if code == 'TransactionCanceledException':
                reasons = {r.get('Code') for r in e.response.get('CancellationReasons', [])}
                if not reasons or reasons & _RETRYABLE_CANCELLATIONS:
                    raise ConcurrentModificationException(
                        f"Photo '{record.record_id}' settlement lost to a concurrent update"
                    ) from e
            if code == 'TransactionConflictException':
                raise ConcurrentModificationException(
                    f"Photo '{record.record_id}' settlement lost to a concurrent update"
                ) from e
            raise PersistenceException(f"Failed to commit settlement: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error committing settlement") from e

        record.version += 1
        if batch is not None:
            batch.version += 1

    def check_health(self) -> None:
        """
        Confirm both tables exist and are ACTIVE.

        Raises:
            PersistenceException: If a table is missing, not ACTIVE or unreachable
        """
        for table_name in (self.photos_table_name, self.batches_table_name):
            try:
                table = self.client.describe_table(TableName=table_name)['Table']
            except ClientError as e:
                raise PersistenceException(f"Failed to describe table {table_name}: {str(e)}") from e
            except Exception as e:
                raise PersistenceException(f"Unexpected error describing table {table_name}") from e
            if table.get('TableStatus') != 'ACTIVE':
                raise PersistenceException(f"Table {table_name} is {table.get('TableStatus')}")

    def _query_owner(self, owner_id: str, tags: Optional[Iterable[str]]) -> List[UploadRecord]:
        required = sorted(normalize_tags(tags))
        query_kwargs: Dict[str, Any] = {
            'IndexName': OWNER_INDEX_NAME,
            'KeyConditionExpression': Key('owner_id').eq(owner_id),
            'ScanIndexForward': False
        }
        if required:
            condition = Attr('tags').contains(required[0])
            for tag in required[1:]:
                condition = condition & Attr('tags').contains(tag)
            query_kwargs['FilterExpression'] = condition

        try:
            items = []
            while True:
                response = self.photos_table.query(**query_kwargs)
                items.extend(response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                query_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            raise PersistenceException(f"Failed to query photos: {str(e)}") from e
        except Exception as e:
            raise PersistenceException("Unexpected error querying photos") from e

        return [self._item_to_record(item) for item in items]

    def _transact_put(self, table_name: str, item: dict, expected_version: int) -> dict:
        put = {
            'TableName': table_name,
            'Item': {k: self._serializer.serialize(v) for k, v in item.items()},
            'ExpressionAttributeNames': {'#v': 'version'}
        }
        if expected_version == 0:
            put['ConditionExpression'] = 'attribute_not_exists(#v)'
        else:
            put['ConditionExpression'] = '#v = :expected'
            put['ExpressionAttributeValues'] = {':expected': {'N': str(expected_version)}}
        return {'Put': put}

    @staticmethod
    def _version_condition(key_name: str, expected_version: int):
        if expected_version == 0:
            return Attr(key_name).not_exists()
        return Attr('version').eq(expected_version)

    def _record_to_item(self, record: UploadRecord, version: int) -> dict:
        item = {
            'photo_id': record.record_id,
            'owner_id': record.owner_id,
            'filename': record.filename,
            'storage_key': record.storage_key,
            'content_type': record.content_type,
            'file_size': record.file_size,
            'upload_date': record.upload_date.isoformat(),
            'tags': sorted(record.tags),
            'status': record.status.value,
            'version': version
        }
        if record.batch_id:
            item['batch_id'] = record.batch_id
        if record.error_message:
            item['error_message'] = record.error_message
        if record.settled_at:
            item['settled_at'] = record.settled_at.isoformat()
        return item

    def _item_to_record(self, item: dict) -> UploadRecord:
        """Convert DynamoDB item to UploadRecord domain model."""
        return UploadRecord(
            record_id=item['photo_id'],
            owner_id=item['owner_id'],
            batch_id=item.get('batch_id'),
            filename=item['filename'],
            storage_key=item['storage_key'],
            content_type=item.get('content_type', ''),
            file_size=int(item.get('file_size', 0)),
            upload_date=datetime.fromisoformat(item['upload_date']),
            tags=item.get('tags', []),
            status=UploadStatus(item['status']),
            error_message=item.get('error_message'),
            settled_at=datetime.fromisoformat(item['settled_at']) if item.get('settled_at') else None,
            version=int(item.get('version', 0))
        )

    def _batch_to_item(self, batch: UploadBatch, version: int) -> dict:
        return {
            'batch_id': batch.batch_id,
            'owner_id': batch.owner_id,
            'status': batch.status.value,
            'total_files': batch.total_files,
            'registered_files': batch.registered_files,
            'completed_files': batch.completed_files,
            'succeeded_files': batch.succeeded_files,
            'failed_files': batch.failed_files,
            'created_at': batch.created_at.isoformat(),
            'updated_at': batch.updated_at.isoformat(),
            'version': version
        }

    def _item_to_batch(self, item: dict) -> UploadBatch:
        """Convert DynamoDB item to UploadBatch domain model."""
        return UploadBatch(
            batch_id=item['batch_id'],
            owner_id=item['owner_id'],
            total_files=int(item['total_files']),
            status=UploadStatus(item['status']),
            registered_files=int(item.get('registered_files', 0)),
            completed_files=int(item.get('completed_files', 0)),
            succeeded_files=int(item.get('succeeded_files', 0)),
            failed_files=int(item.get('failed_files', 0)),
            created_at=datetime.fromisoformat(item['created_at']),
            updated_at=datetime.fromisoformat(item['updated_at']),
            version=int(item.get('version', 0))
        )
