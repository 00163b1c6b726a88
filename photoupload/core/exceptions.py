"""
Custom exceptions for the Photo Upload API.
Provides specific error types for different failure scenarios.
"""


class PhotoUploadException(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationException(PhotoUploadException):
    """Raised when caller input fails validation."""
    pass


class NotFoundException(PhotoUploadException):
    """Raised when a photo, batch or user does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class ForbiddenException(PhotoUploadException):
    """Raised when the caller does not own the resource."""
    pass


class ConflictException(PhotoUploadException):
    """Raised when a state transition is not allowed."""
    pass


class ConcurrentModificationException(ConflictException):
    """Raised when a version-checked write loses to a concurrent writer."""
    pass


class StorageUnavailableException(PhotoUploadException):
    """Raised when an object storage operation fails."""
    pass


class PersistenceException(PhotoUploadException):
    """Raised when the record store fails."""
    pass


class AuthenticationException(PhotoUploadException):
    """Raised when a caller cannot be authenticated."""
    pass


class TokenExpiredException(AuthenticationException):
    """Token signature is valid but the token has expired."""
    pass


class MalformedTokenException(AuthenticationException):
    """Token cannot be decoded."""
    pass


class BadSignatureException(AuthenticationException):
    """Token signature does not verify."""
    pass


class UnsupportedTokenException(AuthenticationException):
    """Token decodes but its claims or algorithm are not accepted."""
    pass
