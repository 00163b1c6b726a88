"""
Domain model for a single uploaded photo.
Database-agnostic representation of one file's upload lifecycle.
"""
import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Set

from photoupload.core.exceptions import ConflictException, ValidationException
from photoupload.models.upload_status import UploadStatus

MAX_FILENAME_LENGTH = 500
MAX_STORAGE_KEY_LENGTH = 1000
MAX_TAG_LENGTH = 100
MAX_ERROR_MESSAGE_LENGTH = 1000

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(filename: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with an underscore."""
    return _UNSAFE_KEY_CHARS.sub("_", filename)


def build_storage_key(owner_id: str, record_id: str, filename: str, now: Optional[datetime] = None) -> str:
    """
    Build the object key for a photo.

    Format: {owner}/{year}/{month}/{record_id}-{sanitized filename}
    """
    now = now or datetime.now(timezone.utc)
    return f"{owner_id}/{now.year}/{now.month:02d}/{record_id}-{sanitize_filename(filename)}"


def normalize_tag(tag: str) -> str:
    """
    Trim and lowercase a tag.

    Raises:
        ValidationException: If the tag is blank or longer than 100 characters
    """
    if tag is None or not str(tag).strip():
        raise ValidationException("Tag cannot be blank")
    normalized = str(tag).strip().lower()
    if len(normalized) > MAX_TAG_LENGTH:
        raise ValidationException(f"Tag cannot exceed {MAX_TAG_LENGTH} characters")
    return normalized


def normalize_tags(tags: Optional[Iterable[str]]) -> Set[str]:
    """Normalize a collection of tags into a set, collapsing duplicates."""
    return {normalize_tag(tag) for tag in (tags or [])}


def validate_filename(filename: str) -> str:
    if filename is None or not filename.strip():
        raise ValidationException("Filename cannot be blank")
    trimmed = filename.strip()
    if len(trimmed) > MAX_FILENAME_LENGTH:
        raise ValidationException(f"Filename cannot exceed {MAX_FILENAME_LENGTH} characters")
    return trimmed


class UploadRecord:
    """
    Domain model for one photo upload.

    Identity, owner, batch, filename, storage key and upload date are fixed
    at construction. Tags and status change over the record's life; tags may
    change in any status, status only moves from PENDING to a terminal state.
    """

    def __init__(
        self,
        record_id: str,
        owner_id: str,
        filename: str,
        storage_key: str,
        content_type: str,
        file_size: int,
        upload_date: Optional[datetime] = None,
        batch_id: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        status: UploadStatus = UploadStatus.PENDING,
        error_message: Optional[str] = None,
        settled_at: Optional[datetime] = None,
        version: int = 0
    ):
        if not record_id:
            raise ValidationException("Record ID cannot be blank")
        if not owner_id:
            raise ValidationException("Owner ID cannot be blank")
        if not storage_key or not storage_key.strip():
            raise ValidationException("Storage key cannot be blank")
        if len(storage_key.strip()) > MAX_STORAGE_KEY_LENGTH:
            raise ValidationException(f"Storage key cannot exceed {MAX_STORAGE_KEY_LENGTH} characters")

        self._record_id = record_id
        self._owner_id = owner_id
        self._batch_id = batch_id
        self._filename = validate_filename(filename)
        self._storage_key = storage_key.strip()
        self._content_type = content_type
        self._file_size = file_size
        self._upload_date = upload_date or datetime.now(timezone.utc)
        self._tags = normalize_tags(tags)
        self.status = UploadStatus(status)
        self.error_message = error_message
        self.settled_at = settled_at
        self.version = version

    @property
    def record_id(self) -> str:
        return self._record_id

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def batch_id(self) -> Optional[str]:
        return self._batch_id

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def upload_date(self) -> datetime:
        return self._upload_date

    @property
    def tags(self) -> Set[str]:
        return set(self._tags)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_owned_by(self, owner_id: str) -> bool:
        return self._owner_id == owner_id

    def add_tag(self, tag: str) -> None:
        self._tags.add(normalize_tag(tag))

    def remove_tag(self, tag: str) -> bool:
        """Remove a tag. Returns True if it was present."""
        normalized = normalize_tag(tag)
        if normalized in self._tags:
            self._tags.remove(normalized)
            return True
        return False

    def has_tag(self, tag: str) -> bool:
        if tag is None or not str(tag).strip():
            return False
        return str(tag).strip().lower() in self._tags

    def replace_tags(self, tags: Iterable[str]) -> None:
        self._tags = normalize_tags(tags)

    def mark_completed(self) -> None:
        """
        Move the record to COMPLETED.

        Raises:
            ConflictException: If the record is already COMPLETED or FAILED
        """
        if self.is_terminal:
            raise ConflictException(
                f"Photo '{self._record_id}' is already {self.status.value} and cannot be completed"
            )
        self.status = UploadStatus.COMPLETED
        self.settled_at = datetime.now(timezone.utc)

    def mark_failed(self, reason: Optional[str] = None) -> bool:
        """
        Move the record to FAILED and keep the failure reason.

        Returns:
            True if the record transitioned, False if it was already FAILED

        Raises:
            ConflictException: If the record is already COMPLETED
        """
        if self.status == UploadStatus.FAILED:
            return False
        if self.status == UploadStatus.COMPLETED:
            raise ConflictException(
                f"Photo '{self._record_id}' is already COMPLETED and cannot be failed"
            )
        self.status = UploadStatus.FAILED
        if reason:
            self.error_message = reason.strip()[:MAX_ERROR_MESSAGE_LENGTH]
        self.settled_at = datetime.now(timezone.utc)
        return True

    def __repr__(self):
        return (
            f"UploadRecord(record_id={self._record_id}, owner_id={self._owner_id}, "
            f"status={self.status.value}, tags={len(self._tags)})"
        )
