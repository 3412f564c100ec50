"""Password hashing and signed session tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from wellness.config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        # Keep timing similar to a real check for unknown accounts.
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(
    email: str,
    settings: Settings,
    *,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed token carrying ``email`` as its subject."""
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": email, "iat": issued_at, "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> Optional[str]:
    """Return the email embedded in a valid, unexpired token; None otherwise."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    subject = claims.get("sub")
    return subject if isinstance(subject, str) and subject else None
