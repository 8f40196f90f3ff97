"""
Security primitives: password hashing and signed session tokens.

Uses bcrypt for password storage and python-jose for HS256 JWTs. Admin
bearer tokens and customer session cookies are both produced here; the
session layer in ``carquote.services.session`` decides what to do with
the decoded claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from carquote.core.errors import InvalidTokenError

# JWT Algorithm
ALGORITHM = "HS256"

# bcrypt ignores everything past 72 bytes
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hash.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The stored bcrypt hash

    Returns:
        True if password matches, False otherwise (including unparseable hashes)
    """
    if not hashed_password:
        return False

    if isinstance(hashed_password, str):
        hashed_bytes = hashed_password.encode("utf-8")
    else:
        hashed_bytes = hashed_password

    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_bytes)
    except ValueError:
        return False


def get_password_hash(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def create_token(
    payload: Dict[str, Any],
    secret: str,
    expires_delta: timedelta,
) -> str:
    """
    Create a signed, time-bounded JWT.

    ``iat`` and ``exp`` are added to a copy of the payload.

    Args:
        payload: Claims to encode (must identify a subject)
        secret: Signing secret
        expires_delta: Token lifetime; negative values produce an already
            expired token

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_token({"adminId": admin.id}, secret, timedelta(hours=24))
        >>> # Use token in Authorization header: Bearer <token>
    """
    issued_at = datetime.now(timezone.utc)
    to_encode = dict(payload)
    to_encode.update({
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    })
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Verify a JWT and return its claims.

    Args:
        token: JWT token string to decode
        secret: Secret the token must have been signed with

    Returns:
        Decoded claims

    Raises:
        InvalidTokenError: If the token is malformed, signed with another
            secret, or expired
    """
    if not token:
        raise InvalidTokenError("No token provided")

    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc) or "Invalid token") from exc
