"""
Core configuration for the Photo Upload API.
Manages environment variables and AWS service settings.
"""
import logging
import os
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-secret-change-in-production-0123456789"


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # AWS Configuration
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    s3_bucket_name: str = os.getenv("S3_BUCKET_NAME", "")
    photos_table_name: str = os.getenv("PHOTOS_TABLE_NAME", "")
    batches_table_name: str = os.getenv("BATCHES_TABLE_NAME", "")
    users_table_name: str = os.getenv("USERS_TABLE_NAME", "")
    store_backend: str = os.getenv("STORE_BACKEND", "dynamodb")

    # API Configuration
    api_title: str = os.getenv("API_TITLE", "Photo Upload API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")

    # Upload Limits
    max_file_size_mb: int = int(os.getenv("MAX_FILE_SIZE_MB", "50"))
    max_batch_files: int = int(os.getenv("MAX_BATCH_FILES", "100"))
    max_tags_per_photo: int = int(os.getenv("MAX_TAGS_PER_PHOTO", "50"))

    # Grant lifetimes
    upload_url_ttl_minutes: int = int(os.getenv("UPLOAD_URL_TTL_MINUTES", "15"))
    download_url_ttl_minutes: int = int(os.getenv("DOWNLOAD_URL_TTL_MINUTES", "60"))

    # Pagination Configuration
    pagination_default_size: int = int(os.getenv("PAGINATION_DEFAULT_SIZE", "20"))
    pagination_max_size: int = int(os.getenv("PAGINATION_MAX_SIZE", "100"))

    # Optimistic concurrency
    settlement_max_attempts: int = int(os.getenv("SETTLEMENT_MAX_ATTEMPTS", "200"))
    settlement_retry_backoff_seconds: float = float(os.getenv("SETTLEMENT_RETRY_BACKOFF_SECONDS", "0.01"))

    # Authentication
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "photo-upload-api")
    jwt_secret_parameter: str = os.getenv("JWT_SECRET_PARAMETER", "")
    access_token_ttl_minutes: int = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "15"))
    refresh_token_ttl_days: int = int(os.getenv("REFRESH_TOKEN_TTL_DAYS", "7"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "text")

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "dev")

    @property
    def jwt_secret(self) -> str:
        """Get JWT secret from Parameter Store when configured, else from the environment."""
        if self.jwt_secret_parameter:
            from photoupload.core.parameter_store import get_parameter
            return get_parameter(self.jwt_secret_parameter, self.aws_region)
        secret = os.getenv("JWT_SECRET")
        if not secret:
            logger.warning("JWT_SECRET not set, using development secret")
            return DEFAULT_JWT_SECRET
        return secret

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
