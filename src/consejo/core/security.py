"""Bearer token helpers built on python-jose."""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from consejo.core.settings import settings
from consejo.db.time import utcnow

__all__ = ["JWTError", "create_access_token", "decode_access_token"]


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Return a signed JWT whose subject is the user's primary key."""
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a token issued by :func:`create_access_token`.

    Raises:
        JWTError: If the signature or expiry check fails.
    """
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
