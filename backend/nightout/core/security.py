"""
Password hashing, JWT access tokens and opaque refresh/reset tokens.

Access tokens are short-lived JWTs. Refresh and password-reset tokens are
random opaque strings; only their SHA-256 digest is ever stored.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from nightout.core.config import get_settings
from nightout.core.errors import AuthenticationError, ErrorCode

settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {"sub": subject, "type": ACCESS_TOKEN_TYPE, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token.
    Raises AuthenticationError with AUTH_002 on expiry, AUTH_003 otherwise.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired", code=ErrorCode.TOKEN_EXPIRED)
    except JWTError:
        raise AuthenticationError("Invalid token", code=ErrorCode.TOKEN_INVALID)

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise AuthenticationError("Invalid token", code=ErrorCode.TOKEN_INVALID)
    return payload


def generate_secure_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
