"""
Authentication API routes.
"""
import logging
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from photoupload.core.dependencies import get_auth_service
from photoupload.core.exceptions import AuthenticationException
from photoupload.models.dto.auth_dto import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    SignupRequest,
    ValidateTokenRequest,
    ValidateTokenResponse
)
from photoupload.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/api/auth", tags=["Authentication"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Register an account and return access and refresh tokens.

    - **email**: Email address, used to log in
    - **password**: At least 8 characters
    """
    return AuthResponse.from_pair(auth_service.signup(request.email, request.password))


@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Authenticate user and return JWT tokens.

    Returns an access token for protected endpoints and a refresh token
    for obtaining new access tokens.
    """
    return AuthResponse.from_pair(auth_service.login(request.email, request.password))


@router.post("/refresh", response_model=AuthResponse)
def refresh(request: RefreshRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new access token."""
    return AuthResponse.from_pair(auth_service.refresh(request.refresh_token))


@router.post("/validate", response_model=ValidateTokenResponse)
def validate(request: ValidateTokenRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Check an access token.

    Returns `{"valid": true, "userId": ...}` for a live access token, and
    401 with `{"valid": false, "userId": null}` otherwise.
    """
    try:
        user_id = auth_service.validate_token(request.token)
    except AuthenticationException as e:
        logger.info("Token validation rejected: %s", type(e).__name__)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ValidateTokenResponse(valid=False).model_dump(by_alias=True),
            headers={"WWW-Authenticate": "Bearer"}
        )
    return ValidateTokenResponse(valid=True, user_id=user_id)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: RefreshRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Revoke a refresh token."""
    auth_service.logout(request.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
