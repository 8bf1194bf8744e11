"""Password hashing and signed password-reset tokens."""
from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from travellers.config import get_settings
from travellers.errors import UnauthorizedError

RESET_TOKEN_TYPE = "password_reset"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(),
    ).decode("utf-8")


def create_reset_token(user_id: str, email: str, expires_delta: timedelta | None = None) -> str:
    """Create a short-lived JWT authorizing one password change."""
    settings = get_settings()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.reset_token_expire_minutes))
    to_encode = {"sub": user_id, "email": email, "exp": expire, "type": RESET_TOKEN_TYPE}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_reset_token(token: str) -> tuple[str, str]:
    """Verify a reset token and return ``(user_id, email)``."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

    user_id = payload.get("sub")
    email = payload.get("email")
    if payload.get("type") != RESET_TOKEN_TYPE or not user_id or not email:
        raise UnauthorizedError("Invalid or expired token")
    return user_id, email
