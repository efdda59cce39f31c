"""Authentication utilities for password hashing and session cookie signing."""

from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
import bcrypt
from .config import settings


# ==================== Password Hashing ====================

def hash_password(password: str) -> str:
    """Hash a plain text password using bcrypt for secure storage."""
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
    # Return as string for database storage
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a plain text password against a hashed password.

    Users without a stored hash never verify.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ==================== Session Tokens ====================

def create_session_token(session_id: str, expires_delta: timedelta | None = None) -> str:
    """Sign a session id into the opaque value stored in the session cookie."""
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.SESSION_MAX_AGE)
    expire = datetime.now(timezone.utc) + expires_delta

    return jwt.encode(
        {"sid": session_id, "exp": expire},
        settings.SESSION_SECRET_KEY,
        algorithm=settings.SESSION_ALGORITHM,
    )


def decode_session_token(token: str) -> str | None:
    """Return the session id from a cookie value, or None if it is forged, expired or malformed."""
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET_KEY, algorithms=[settings.SESSION_ALGORITHM])
    except JWTError:
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) and session_id else None
