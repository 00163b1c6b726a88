"""
File Service for upload metadata validation.
Checks filename, content type, size and tags before any record is created.
"""
from typing import Iterable, Optional, Set
from photoupload.core import config
from photoupload.core.exceptions import ValidationException
from photoupload.models.upload_record import normalize_tags, validate_filename


class UploadMetadata:
    """Validated, normalized metadata for one file."""

    def __init__(self, filename: str, content_type: str, file_size: int, tags: Set[str]):
        self.filename = filename
        self.content_type = content_type
        self.file_size = file_size
        self.tags = tags

    def __repr__(self):
        return f"UploadMetadata(filename={self.filename}, content_type={self.content_type}, file_size={self.file_size})"


class FileService:
    """Service for upload metadata checks."""

    ALLOWED_CONTENT_TYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/gif', 'image/webp'}

    def validate_upload(
        self,
        filename: str,
        content_type: str,
        file_size: int,
        tags: Optional[Iterable[str]] = None
    ) -> UploadMetadata:
        """
        Validate and normalize upload metadata.

        Args:
            filename: Original filename
            content_type: MIME type, case-insensitive
            file_size: Size in bytes
            tags: Initial tags

        Returns:
            UploadMetadata with trimmed filename, lowercase content type and normalized tags

        Raises:
            ValidationException: If any field is invalid
        """
        return UploadMetadata(
            filename=validate_filename(filename),
            content_type=self.validate_content_type(content_type),
            file_size=self.validate_file_size(file_size),
            tags=self.validate_tags(tags)
        )

    def validate_content_type(self, content_type: str) -> str:
        if not content_type or not content_type.strip():
            raise ValidationException("Content type cannot be blank")
        normalized = content_type.strip().lower()
        if normalized not in self.ALLOWED_CONTENT_TYPES:
            raise ValidationException(
                f"Content type must be one of: {', '.join(sorted(self.ALLOWED_CONTENT_TYPES))}"
            )
        return normalized

    def validate_file_size(self, file_size: int) -> int:
        if file_size is None:
            raise ValidationException("File size is required")
        if file_size < 1:
            raise ValidationException("File size must be at least 1 byte")
        max_bytes = config.settings.max_file_size_bytes
        if file_size > max_bytes:
            raise ValidationException(f"File size cannot exceed {config.settings.max_file_size_mb}MB")
        return file_size

    def validate_tags(self, tags: Optional[Iterable[str]]) -> Set[str]:
        normalized = normalize_tags(tags)
        if len(normalized) > config.settings.max_tags_per_photo:
            raise ValidationException(
                f"A photo cannot have more than {config.settings.max_tags_per_photo} tags"
            )
        return normalized
