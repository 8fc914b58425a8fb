"""
Security utilities - JWT token creation and verification.

Users sign in through the external auth service; its access tokens are
JWTs whose "sub" claim is the user id. We verify them here and turn them
into a SessionContext.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt  # python-jose library for JWT encoding/decoding

from aura.core.config import settings


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    Mainly used by tests and local tooling; production tokens come from
    the auth service signed with the same SECRET_KEY.

    Args:
        subject: The user id, stored in the "sub" claim
        expires_delta: Optional custom lifetime, defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        A signed JWT string
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": subject, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiration and return the claims.

    Raises:
        jose.JWTError: If the token is invalid or expired
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
