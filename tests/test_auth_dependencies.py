"""
Tests for JWT authentication dependency.
"""
import pytest
from photoupload.core.auth_dependencies import verify_token
from photoupload.core.exceptions import AuthenticationException, TokenExpiredException
from photoupload.services.token_service import TokenService
from datetime import timedelta
from conftest import TEST_JWT_SECRET


class TestVerifyToken:
    """Test suite for verify_token dependency."""

    def test_valid_access_token(self, token_service):
        token = token_service.issue_access("user-1", "alice@example.com")
        assert verify_token(f"Bearer {token}", token_service) == "user-1"

    def test_missing_header(self, token_service):
        with pytest.raises(AuthenticationException) as exc_info:
            verify_token(None, token_service)
        assert "Missing authorization header" in str(exc_info.value)

    def test_invalid_header_format(self, token_service):
        token = token_service.issue_access("user-1", "alice@example.com")
        with pytest.raises(AuthenticationException) as exc_info:
            verify_token(f"Token {token}", token_service)
        assert "Invalid authorization header format" in str(exc_info.value)

    def test_refresh_token_rejected(self, token_service):
        token = token_service.issue_refresh("user-1")
        with pytest.raises(AuthenticationException) as exc_info:
            verify_token(f"Bearer {token}", token_service)
        assert "Access token required" in str(exc_info.value)

    def test_expired_token(self, token_service):
        expired = TokenService(secret=TEST_JWT_SECRET, access_ttl=timedelta(seconds=-10))
        token = expired.issue_access("user-1", "alice@example.com")
        with pytest.raises(TokenExpiredException):
            verify_token(f"Bearer {token}", token_service)

    def test_garbage_token(self, token_service):
        with pytest.raises(AuthenticationException):
            verify_token("Bearer not.a.token", token_service)
