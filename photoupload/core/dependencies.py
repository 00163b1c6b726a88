"""
Dependency injection container for FastAPI.
Provides singleton-like behavior for services and repositories.
"""
from datetime import timedelta
from functools import lru_cache
from photoupload.core import config
from photoupload.repositories.dynamo_upload_repository import DynamoUploadRepository
from photoupload.repositories.memory_upload_repository import InMemoryUploadRepository
from photoupload.repositories.s3_repository import S3Repository
from photoupload.repositories.upload_repository import UploadRepository
from photoupload.repositories.user_repository import (
    DynamoUserRepository,
    InMemoryUserRepository,
    UserRepository
)
from photoupload.services.auth_service import AuthService
from photoupload.services.batch_service import BatchProgressService
from photoupload.services.file_service import FileService
from photoupload.services.photo_service import PhotoService
from photoupload.services.tag_service import TagService
from photoupload.services.token_service import TokenRevocationStore, TokenService
from photoupload.services.upload_service import UploadService

MEMORY_BACKEND = "memory"


@lru_cache()
def get_upload_repository() -> UploadRepository:
    """Get the record store selected by STORE_BACKEND."""
    if config.settings.store_backend == MEMORY_BACKEND:
        return InMemoryUploadRepository()
    return DynamoUploadRepository()


@lru_cache()
def get_user_repository() -> UserRepository:
    """Get the account store selected by STORE_BACKEND."""
    if config.settings.store_backend == MEMORY_BACKEND:
        return InMemoryUserRepository()
    return DynamoUserRepository()


@lru_cache()
def get_s3_repository() -> S3Repository:
    """Get S3Repository singleton instance."""
    return S3Repository()


@lru_cache()
def get_token_service() -> TokenService:
    """Get TokenService singleton instance."""
    return TokenService(
        secret=config.settings.jwt_secret,
        algorithm=config.settings.jwt_algorithm,
        issuer=config.settings.jwt_issuer,
        access_ttl=timedelta(minutes=config.settings.access_token_ttl_minutes),
        refresh_ttl=timedelta(days=config.settings.refresh_token_ttl_days)
    )


@lru_cache()
def get_revocation_store() -> TokenRevocationStore:
    """Get the application-wide refresh token revocation store."""
    return TokenRevocationStore()


@lru_cache()
def get_file_service() -> FileService:
    """Get FileService singleton instance."""
    return FileService()


@lru_cache()
def get_batch_service() -> BatchProgressService:
    """Get BatchProgressService singleton instance."""
    return BatchProgressService(upload_repository=get_upload_repository())


@lru_cache()
def get_upload_service() -> UploadService:
    """Get UploadService singleton instance with injected dependencies."""
    return UploadService(
        upload_repository=get_upload_repository(),
        s3_repository=get_s3_repository(),
        batch_service=get_batch_service(),
        file_service=get_file_service()
    )


@lru_cache()
def get_photo_service() -> PhotoService:
    """Get PhotoService singleton instance."""
    return PhotoService(
        upload_repository=get_upload_repository(),
        s3_repository=get_s3_repository()
    )


@lru_cache()
def get_tag_service() -> TagService:
    """Get TagService singleton instance."""
    return TagService(photo_service=get_photo_service())


@lru_cache()
def get_auth_service() -> AuthService:
    """Get AuthService singleton instance."""
    return AuthService(
        user_repository=get_user_repository(),
        token_service=get_token_service(),
        revocation_store=get_revocation_store()
    )


def clear_dependency_caches() -> None:
    """Drop every cached singleton so the next request rebuilds them from current settings."""
    for getter in (
        get_upload_repository,
        get_user_repository,
        get_s3_repository,
        get_token_service,
        get_revocation_store,
        get_file_service,
        get_batch_service,
        get_upload_service,
        get_photo_service,
        get_tag_service,
        get_auth_service,
    ):
        getter.cache_clear()
