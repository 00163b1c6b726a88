"""
Token service for JWT access/refresh token issuance and validation.
"""
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import jwt
from photoupload.core.exceptions import (
    BadSignatureException,
    MalformedTokenException,
    TokenExpiredException,
    UnsupportedTokenException
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenService:
    """
    Issues and validates signed identity tokens.

    Holds only the signing secret and lifetimes; validation is a pure
    function of the secret and the token.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "photo-upload-api",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7)
    ):
        if not secret:
            raise ValueError("JWT secret must be configured")
        self._secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def issue_access(self, user_id: str, email: str) -> str:
        """
        Generate an access token.

        Args:
            user_id: Subject of the token
            email: User's email, carried as a claim

        Returns:
            Encoded JWT
        """
        return self._issue(user_id, ACCESS_TOKEN_TYPE, self.access_ttl, {"email": email})

    def issue_refresh(self, user_id: str) -> str:
        """Generate a refresh token."""
        return self._issue(user_id, REFRESH_TOKEN_TYPE, self.refresh_ttl, {})

    def validate(self, token: Optional[str]) -> dict:
        """
        Verify a token's signature, issuer and expiry.

        Returns:
            Decoded claims

        Raises:
            TokenExpiredException: Signature valid but token expired
            BadSignatureException: Signature does not match
            MalformedTokenException: Token is empty or cannot be decoded
            UnsupportedTokenException: Algorithm, issuer or claims are not accepted
        """
        if not token or not token.strip():
            raise MalformedTokenException("Token is empty")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "iss"]}
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredException("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise BadSignatureException("Invalid token signature") from e
        except jwt.DecodeError as e:
            raise MalformedTokenException("Token is malformed") from e
        except jwt.InvalidTokenError as e:
            raise UnsupportedTokenException(f"Token is unsupported: {str(e)}") from e

        if claims.get("type") not in (ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE):
            raise UnsupportedTokenException("Token type is unsupported")
        return claims

    def is_refresh_token(self, token: Optional[str]) -> bool:
        """Classify a token without raising; anything invalid is not a refresh token."""
        try:
            return self.validate(token).get("type") == REFRESH_TOKEN_TYPE
        except Exception:
            return False

    def _issue(self, user_id: str, token_type: str, ttl: timedelta, extra: dict) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            "iss": self.issuer,
            "jti": uuid.uuid4().hex,
            **extra
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)


class TokenRevocationStore:
    """
    Revoked refresh token ids, kept until the token would have expired.

    One instance per application; tests create their own.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._revoked: Dict[str, datetime] = {}

    def revoke(self, jti: str, expires_at: datetime) -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            self._revoked = {k: v for k, v in self._revoked.items() if v > now}
            self._revoked[jti] = expires_at

    def is_revoked(self, jti: str) -> bool:
        with self._lock:
            expires_at = self._revoked.get(jti)
        return expires_at is not None and expires_at > datetime.now(timezone.utc)
