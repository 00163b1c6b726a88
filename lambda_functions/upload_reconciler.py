"""
Lambda function to settle uploads when their object lands in S3.
Triggered by S3 ObjectCreated events.
"""
import json
import logging
import re
from urllib.parse import unquote_plus
from photoupload.core.dependencies import get_s3_repository, get_upload_repository, get_upload_service
from photoupload.core.exceptions import ConflictException, PhotoUploadException
from photoupload.core.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

# {owner}/{yyyy}/{mm}/{record uuid}-{sanitized filename}
_KEY_PATTERN = re.compile(
    r'^(?P<owner>[^/]+)/\d{4}/\d{2}/'
    r'(?P<record_id>[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})-.+$'
)


def handler(event, context):
    """
    Lambda handler for S3 event processing.

    Args:
        event: S3 event containing bucket and object information
        context: Lambda context object

    Returns:
        dict: statusCode and a JSON body with completed, skipped and failed counts
    """
    upload_repository = get_upload_repository()
    upload_service = get_upload_service()
    s3_repository = get_s3_repository()

    completed, skipped, failed = 0, 0, 0
    for record in event.get('Records', []):
        bucket = record['s3']['bucket']['name']
        s3_key = unquote_plus(record['s3']['object']['key'])

        parsed = parse_storage_key(s3_key)
        if not parsed:
            logger.info("Skipping s3://%s/%s: not a photo upload key", bucket, s3_key)
            skipped += 1
            continue

        owner_id, record_id = parsed
        try:
            upload = upload_repository.get_record(record_id)
            if upload is None or upload.storage_key != s3_key or not upload.is_owned_by(owner_id):
                logger.warning("Skipping s3://%s/%s: no matching upload record", bucket, s3_key)
                skipped += 1
                continue
            if not s3_repository.object_exists(s3_key):
                logger.warning("Skipping s3://%s/%s: object is not in the bucket", bucket, s3_key)
                skipped += 1
                continue

            upload_service.report_completion(record_id, owner_id)
            completed += 1
        except ConflictException as e:
            logger.info("Upload %s already settled: %s", record_id, e.message)
            skipped += 1
        except PhotoUploadException as e:
            logger.error("Failed to settle upload %s: %s", record_id, e.message)
            failed += 1
        except Exception:
            logger.exception("Unexpected error settling upload %s", record_id)
            failed += 1

    return {
        'statusCode': 500 if failed else 200,
        'body': json.dumps({
            'message': f'Settled {completed} uploads',
            'completed': completed,
            'skipped': skipped,
            'failed': failed
        })
    }


def parse_storage_key(s3_key: str):
    """
    Extract owner and record id from an object key.

    Args:
        s3_key: Decoded S3 object key

    Returns:
        (owner_id, record_id) or None if the key does not match
    """
    match = _KEY_PATTERN.match(s3_key)
    if not match:
        return None
    return match.group('owner'), match.group('record_id')
