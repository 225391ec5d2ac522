"""Password hashing and JWT issue/verification for authentication."""

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from storefront.core.errors import TokenExpiredError, TokenInvalidError

if TYPE_CHECKING:
    from storefront.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

NAME_MIN_LEN = 1
NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare inside bcrypt)."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def issue_token(
    user_id: int,
    settings: "Settings",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT with sub (user id), iat and exp. Nothing is persisted."""
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str, settings: "Settings") -> int:
    """
    Check signature and expiry; return the user id bound to the token.
    Raises TokenExpiredError or TokenInvalidError.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Not authorized, token expired") from e
    except jwt.PyJWTError as e:
        raise TokenInvalidError("Not authorized, token invalid") from e
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenInvalidError("Not authorized, token invalid") from e
