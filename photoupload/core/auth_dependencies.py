"""
FastAPI dependencies for JWT authentication.
"""
from typing import Optional
from fastapi import Depends, Header
from photoupload.core.dependencies import get_token_service
from photoupload.core.exceptions import AuthenticationException
from photoupload.services.token_service import ACCESS_TOKEN_TYPE, TokenService


def verify_token(
    authorization: Optional[str] = Header(None),
    token_service: TokenService = Depends(get_token_service)
) -> str:
    """
    Verify the access token from the Authorization header.

    Args:
        authorization: Authorization header value (Bearer <token>)
        token_service: Token validator

    Returns:
        User ID from the token subject

    Raises:
        AuthenticationException: If the header is missing, the token is invalid
            or expired, or it is not an access token
    """
    if not authorization:
        raise AuthenticationException("Missing authorization header")

    if not authorization.startswith('Bearer '):
        raise AuthenticationException("Invalid authorization header format")

    claims = token_service.validate(authorization[7:])
    if claims.get('type') != ACCESS_TOKEN_TYPE:
        raise AuthenticationException("Access token required")

    user_id = claims.get('sub')
    if not user_id:
        raise AuthenticationException("Invalid token payload")
    return user_id
