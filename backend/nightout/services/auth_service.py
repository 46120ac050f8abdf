"""
Authentication service: registration, login with lockout, refresh-token
rotation, logout and password reset.

Refresh tokens are opaque; the sessions table only holds their SHA-256.
Rotation revokes the presented session and issues a new one in the same
transaction. Presenting a token whose session was already revoked is treated
as theft: every session of that user is revoked.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.config import get_settings
from nightout.core.errors import AuthenticationError, ConflictError, ErrorCode, ValidationError
from nightout.core.logging import get_logger
from nightout.core.metrics import record_login, record_refresh
from nightout.core.security import (
    create_access_token,
    generate_secure_token,
    hash_password,
    hash_token,
    verify_password,
)
from nightout.models.session import PasswordResetToken, Session
from nightout.models.user import User, UserPreferences
from nightout.schemas.auth import TokenPair
from nightout.schemas.user import UserCreate, UserLogin
from nightout.services.email_service import send_password_reset_email

logger = get_logger(__name__)
settings = get_settings()

FORGOT_PASSWORD_MESSAGE = "If an account exists, a reset email has been sent"


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def issue_tokens(
    db: AsyncSession,
    user: User,
    device_info: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> TokenPair:
    refresh_token = generate_secure_token()
    db.add(
        Session(
            user_id=user.id,
            refresh_token_hash=hash_token(refresh_token),
            device_info=device_info[:500] if device_info else None,
            ip_address=ip_address,
            expires_at=_now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
    )
    await db.flush()

    return TokenPair(
        access_token=create_access_token(str(user.id)),
        refresh_token=refresh_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def register_user(
    db: AsyncSession,
    user_data: UserCreate,
    device_info: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> tuple[User, TokenPair]:
    """
    Register a new user with hashed password and default preferences.
    Raises 409 AUTH_005 / AUTH_006 if email or username already exists.
    """
    result = await db.execute(select(User.id).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise ConflictError("Email already registered", ErrorCode.EMAIL_EXISTS)

    result = await db.execute(select(User.id).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise ConflictError("Username already taken", ErrorCode.USERNAME_EXISTS)

    user = User(
        email=user_data.email,
        username=user_data.username,
        display_name=user_data.display_name,
        password_hash=hash_password(user_data.password),
    )
    user.preferences = UserPreferences()
    db.add(user)
    await db.flush()
    await db.refresh(user)

    tokens = await issue_tokens(db, user, device_info, ip_address)

    logger.info("user_registered", user_id=str(user.id), email=user.email)
    return user, tokens


async def authenticate_user(
    db: AsyncSession,
    login_data: UserLogin,
    device_info: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> tuple[User, TokenPair]:
    """
    Verify credentials and issue a token pair.
    Raises 401 AUTH_001 on bad credentials, AUTH_004 while the account is locked.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        record_login("invalid")
        logger.warning("login_failed", reason="unknown_user", email=login_data.email)
        raise AuthenticationError("Invalid email or password", ErrorCode.INVALID_CREDENTIALS)

    now = _now()
    if user.locked_until is not None:
        if user.locked_until > now:
            record_login("locked")
            logger.warning("login_rejected_locked", user_id=str(user.id))
            raise AuthenticationError(
                "Account is temporarily locked. Try again later", ErrorCode.ACCOUNT_LOCKED
            )
        # lock expired: start counting from zero again
        user.failed_login_attempts = 0
        user.locked_until = None

    if not verify_password(login_data.password, user.password_hash):
        user.failed_login_attempts += 1
        if user.failed_login_attempts >= settings.ACCOUNT_LOCKOUT_ATTEMPTS:
            user.locked_until = now + timedelta(minutes=settings.ACCOUNT_LOCKOUT_MINUTES)
            logger.warning("account_locked", user_id=str(user.id), until=user.locked_until.isoformat())
        # the error below rolls the request back; keep the counter
        await db.commit()
        record_login("invalid")
        logger.warning("login_failed", reason="bad_password", user_id=str(user.id))
        raise AuthenticationError("Invalid email or password", ErrorCode.INVALID_CREDENTIALS)

    user.failed_login_attempts = 0
    user.locked_until = None
    user.last_active_at = now
    tokens = await issue_tokens(db, user, device_info, ip_address)

    record_login("success")
    logger.info("user_logged_in", user_id=str(user.id))
    return user, tokens


async def revoke_all_sessions(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(Session)
        .where(Session.user_id == user_id, Session.revoked_at.is_(None))
        .values(revoked_at=_now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def refresh_tokens(
    db: AsyncSession,
    refresh_token: str,
    device_info: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> TokenPair:
    token_hash = hash_token(refresh_token)
    now = _now()

    # Single conditional UPDATE: two concurrent refreshes cannot both win
    result = await db.execute(
        update(Session)
        .where(
            Session.refresh_token_hash == token_hash,
            Session.revoked_at.is_(None),
            Session.expires_at > now,
        )
        .values(revoked_at=now)
        .returning(Session.user_id)
        .execution_options(synchronize_session=False)
    )
    user_id = result.scalar_one_or_none()

    if user_id is None:
        result = await db.execute(select(Session).where(Session.refresh_token_hash == token_hash))
        session = result.scalar_one_or_none()
        if session is not None and session.revoked_at is not None:
            revoked = await revoke_all_sessions(db, session.user_id)
            await db.commit()
            record_refresh("reuse_detected")
            logger.warning(
                "refresh_token_reuse_detected",
                user_id=str(session.user_id),
                sessions_revoked=revoked,
            )
            raise AuthenticationError("Refresh token has been revoked", ErrorCode.TOKEN_INVALID)

        record_refresh("invalid")
        raise AuthenticationError("Invalid or expired refresh token", ErrorCode.TOKEN_INVALID)

    user = await db.get(User, user_id)
    if user is None:
        record_refresh("invalid")
        raise AuthenticationError("Invalid or expired refresh token", ErrorCode.TOKEN_INVALID)

    tokens = await issue_tokens(db, user, device_info, ip_address)
    record_refresh("rotated")
    logger.info("refresh_token_rotated", user_id=str(user.id))
    return tokens


async def logout(db: AsyncSession, user_id: UUID, refresh_token: Optional[str] = None) -> None:
    """Revoke the session behind `refresh_token`. Without a token only the
    short-lived access token remains, which the client discards."""
    if refresh_token:
        await db.execute(
            update(Session)
            .where(
                Session.refresh_token_hash == hash_token(refresh_token),
                Session.user_id == user_id,
                Session.revoked_at.is_(None),
            )
            .values(revoked_at=_now())
            .execution_options(synchronize_session=False)
        )
    logger.info("user_logged_out", user_id=str(user_id))


async def forgot_password(db: AsyncSession, email: str) -> str:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        logger.info("password_reset_unknown_email")
        return FORGOT_PASSWORD_MESSAGE

    token = generate_secure_token()
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=_now() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        )
    )
    await db.flush()

    await send_password_reset_email(user.email, token)
    logger.info("password_reset_requested", user_id=str(user.id))
    return FORGOT_PASSWORD_MESSAGE


async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
    now = _now()
    result = await db.execute(
        select(PasswordResetToken).where(
            PasswordResetToken.token_hash == hash_token(token),
            PasswordResetToken.used_at.is_(None),
            PasswordResetToken.expires_at > now,
        )
    )
    reset_token = result.scalar_one_or_none()
    if reset_token is None:
        raise ValidationError("Invalid or expired reset token")

    user = await db.get(User, reset_token.user_id)
    if user is None:
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    user.failed_login_attempts = 0
    user.locked_until = None
    reset_token.used_at = now
    await db.flush()

    revoked = await revoke_all_sessions(db, user.id)
    logger.info("password_reset_completed", user_id=str(user.id), sessions_revoked=revoked)


async def cleanup_expired_sessions(db: AsyncSession) -> int:
    """
    Delete sessions past their expiry and spent reset tokens.
    Revoked sessions are kept until they expire so a replayed token is still
    recognised as reuse.
    """
    now = _now()
    result = await db.execute(delete(Session).where(Session.expires_at < now))
    await db.execute(
        delete(PasswordResetToken).where(
            or_(PasswordResetToken.expires_at < now, PasswordResetToken.used_at.is_not(None))
        )
    )
    logger.info("expired_sessions_cleaned", deleted=result.rowcount)
    return result.rowcount
