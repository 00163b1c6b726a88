"""
Tag Service for editing photo tags.
"""
import logging
from enum import Enum
from typing import Iterable, Optional
from photoupload.core import config
from photoupload.core.exceptions import ValidationException
from photoupload.models.upload_record import normalize_tags
from photoupload.services.optimistic import retry_on_concurrent_modification
from photoupload.services.photo_service import PhotoService, PhotoView

logger = logging.getLogger(__name__)


class TagOperation(str, Enum):
    ADD = "ADD"
    REMOVE = "REMOVE"
    REPLACE = "REPLACE"


class TagService:
    """Service for tag edits on a single photo."""

    def __init__(self, photo_service: PhotoService):
        self.photo_service = photo_service
        self.upload_repository = photo_service.upload_repository

    def apply(
        self,
        record_id: str,
        owner_id: str,
        tags: Optional[Iterable[str]],
        operation: TagOperation
    ) -> PhotoView:
        """
        Add, remove or replace tags on a photo.

        Tags are trimmed and lowercased. Adding a present tag or removing an
        absent one changes nothing; replacing with an empty list clears all tags.

        Args:
            record_id: Photo to edit
            owner_id: Authenticated user
            tags: Tags to apply
            operation: ADD, REMOVE or REPLACE

        Returns:
            PhotoView with the updated record and a fresh download URL

        Raises:
            ValidationException: If a tag is blank or too long, or the result exceeds the tag limit
            NotFoundException: If the photo does not exist
            ForbiddenException: If the caller does not own it
        """
        normalized = normalize_tags(tags)
        operation = TagOperation(operation)

        def attempt():
            record = self.photo_service.load_owned(record_id, owner_id)
            before = record.tags

            if operation == TagOperation.ADD:
                for tag in normalized:
                    record.add_tag(tag)
            elif operation == TagOperation.REMOVE:
                for tag in normalized:
                    record.remove_tag(tag)
            else:
                record.replace_tags(normalized)

            if len(record.tags) > config.settings.max_tags_per_photo:
                raise ValidationException(
                    f"A photo cannot have more than {config.settings.max_tags_per_photo} tags"
                )
            if record.tags != before:
                self.upload_repository.save_record(record)
                logger.info("%s tags on photo %s: %d tags now", operation.value, record_id, len(record.tags))
            return record

        record = retry_on_concurrent_modification(attempt, f"photo {record_id} tags")
        return self.photo_service.view(record)
