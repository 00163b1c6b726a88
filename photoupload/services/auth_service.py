"""
Authentication service for account signup, login, token refresh and validation.
"""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional
import bcrypt
from photoupload.core.exceptions import AuthenticationException, ValidationException
from photoupload.models.user import User
from photoupload.repositories.user_repository import UserRepository
from photoupload.services.token_service import ACCESS_TOKEN_TYPE, TokenRevocationStore, TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(plain_password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(plain_password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The bcrypt hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


class TokenPair:
    """Access/refresh tokens issued for one user."""

    def __init__(self, user: User, access_token: str, refresh_token: Optional[str], expires_in: int):
        self.user = user
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_in = expires_in


class AuthService:
    """Service for account operations."""

    def __init__(
        self,
        user_repository: UserRepository,
        token_service: TokenService,
        revocation_store: TokenRevocationStore
    ):
        self.user_repository = user_repository
        self.token_service = token_service
        self.revocation_store = revocation_store

    def signup(self, email: str, password: str) -> TokenPair:
        """
        Register a new account and issue tokens.

        Raises:
            ValidationException: If email or password is invalid, or the email is taken
        """
        normalized_email = self._normalize_email(email)
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValidationException(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")

        user = User(
            user_id=str(uuid.uuid4()),
            email=normalized_email,
            password_hash=hash_password(password)
        )
        self.user_repository.create(user)
        logger.info("Registered user %s", user.user_id)
        return self._issue_pair(user)

    def login(self, email: str, password: str) -> TokenPair:
        """
        Authenticate by email and password.

        Raises:
            AuthenticationException: If the credentials do not match
        """
        normalized_email = (email or "").strip().lower()
        user = self.user_repository.find_by_email(normalized_email) if normalized_email else None
        if (not user or not password or len(password.encode('utf-8')) > MAX_PASSWORD_BYTES
                or not verify_password(password, user.password_hash)):
            raise AuthenticationException("Invalid email or password")
        logger.info("User %s logged in", user.user_id)
        return self._issue_pair(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new access token.

        Raises:
            AuthenticationException: If the token is not a live refresh token or the user is gone
        """
        if not refresh_token or not refresh_token.strip():
            raise AuthenticationException("Refresh token is required")
        if not self.token_service.is_refresh_token(refresh_token):
            raise AuthenticationException("Invalid refresh token")

        claims = self.token_service.validate(refresh_token)
        if self.revocation_store.is_revoked(claims.get("jti", "")):
            raise AuthenticationException("Refresh token has been revoked")

        user = self.user_repository.find_by_id(claims["sub"])
        if not user:
            raise AuthenticationException("User not found")

        return TokenPair(
            user=user,
            access_token=self.token_service.issue_access(user.user_id, user.email),
            refresh_token=None,
            expires_in=int(self.token_service.access_ttl.total_seconds())
        )

    def validate_token(self, access_token: str) -> str:
        """
        Check an access token and return the user it was issued to.

        Raises:
            AuthenticationException: If the token is invalid, expired, not an
                access token or its user no longer exists
        """
        claims = self.token_service.validate(access_token)
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise AuthenticationException("Access token required")
        user = self.user_repository.find_by_id(claims["sub"])
        if not user:
            raise AuthenticationException("User not found")
        return user.user_id

    def logout(self, refresh_token: str) -> None:
        """
        Revoke a refresh token.

        Raises:
            AuthenticationException: If the token is not a valid refresh token
        """
        if not self.token_service.is_refresh_token(refresh_token):
            raise AuthenticationException("Invalid refresh token")
        claims = self.token_service.validate(refresh_token)
        self.revocation_store.revoke(
            claims.get("jti", ""),
            datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        )
        logger.info("Revoked refresh token for user %s", claims["sub"])

    def _issue_pair(self, user: User) -> TokenPair:
        return TokenPair(
            user=user,
            access_token=self.token_service.issue_access(user.user_id, user.email),
            refresh_token=self.token_service.issue_refresh(user.user_id),
            expires_in=int(self.token_service.access_ttl.total_seconds())
        )

    @staticmethod
    def _normalize_email(email: str) -> str:
        if not email or not email.strip():
            raise ValidationException("Email cannot be blank")
        normalized = email.strip().lower()
        if len(normalized) > 255 or not _EMAIL_PATTERN.match(normalized):
            raise ValidationException("Email is not valid")
        return normalized
