"""
Data Transfer Objects for authentication endpoints.
"""
from typing import Optional
from pydantic import Field
from photoupload.models.dto.base_dto import CamelModel
from photoupload.services.auth_service import TokenPair


class SignupRequest(CamelModel):
    """Request model for account signup."""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password, at least 8 characters")


class LoginRequest(CamelModel):
    """Request model for user login."""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class RefreshRequest(CamelModel):
    """Request model for token refresh and logout."""
    refresh_token: str = Field(..., description="Refresh token")


class AuthResponse(CamelModel):
    """Response model for successful authentication."""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: Optional[str] = Field(default=None, description="JWT refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user_id: str
    email: str

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "AuthResponse":
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in=pair.expires_in,
            user_id=pair.user.user_id,
            email=pair.user.email
        )


class ValidateTokenRequest(CamelModel):
    """Request model for token validation."""
    token: str = Field(..., description="JWT access token to check")


class ValidateTokenResponse(CamelModel):
    """Response model for token validation."""
    valid: bool
    user_id: Optional[str] = None
