"""
Shared FastAPI dependencies: authentication, rate limits, pagination and
client metadata.
"""

import time
from datetime import datetime, timezone
from typing import AsyncIterator, Optional
from uuid import UUID

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.config import get_settings
from nightout.core.errors import AppError, AuthenticationError, ErrorCode, RateLimitError
from nightout.core.logging import get_logger
from nightout.core.metrics import record_rate_limited
from nightout.core.security import decode_access_token
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from nightout.services import rate_limit

logger = get_logger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


async def _load_user(db: AsyncSession, token: str) -> User:
    payload = decode_access_token(token)
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise AuthenticationError("Invalid token", ErrorCode.TOKEN_INVALID)

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found", ErrorCode.TOKEN_INVALID)
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user and touch its last_active_at."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("No token provided", ErrorCode.TOKEN_INVALID)

    user = await _load_user(db, credentials.credentials)
    user.last_active_at = datetime.now(timezone.utc)
    request.state.user_id = user.id
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous or bad tokens just yield None."""
    if credentials is None:
        return None
    try:
        user = await _load_user(db, credentials.credentials)
    except AppError:
        return None
    request.state.user_id = user.id
    return user


async def get_current_user_id(user: User = Depends(get_current_user)) -> UUID:
    return user.id


def get_client_ip(request: Request) -> str:
    """
    Address of the connecting socket.

    X-Forwarded-For is only read when that socket belongs to one of
    TRUSTED_PROXIES; the hops are then walked from the right and the first
    address that is not a trusted proxy wins.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = settings.TRUSTED_PROXIES
    if peer not in trusted:
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


def get_device_info(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")


class Pagination:
    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    ):
        self.page = page
        self.page_size = page_size


class IPRateLimit:
    """Fixed-window limit keyed by client IP."""

    def __init__(self, kind: str, limit: int, window_seconds: int = 60, message: Optional[str] = None):
        self.kind = kind
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message or "Too many requests, please try again later"

    async def check(self, actor_id: str, now: Optional[float] = None) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        allowed = await rate_limit.allow(
            self.kind, actor_id, limit=self.limit, window_seconds=self.window_seconds, now=now
        )
        if not allowed:
            record_rate_limited(self.kind)
            logger.warning("rate_limited", kind=self.kind, actor=actor_id)
            raise RateLimitError(self.message, retry_after=rate_limit.retry_after(self.window_seconds, now))

    async def __call__(self, request: Request) -> None:
        await self.check(get_client_ip(request))


class UserRateLimit(IPRateLimit):
    """Fixed-window limit keyed by the authenticated user."""

    async def __call__(self, user: User = Depends(get_current_user)) -> None:
        await self.check(str(user.id))


class FailedAttemptLimit(IPRateLimit):
    """IP limit where only requests that end in an error use up the budget."""

    async def __call__(self, request: Request) -> AsyncIterator[None]:
        actor_id = get_client_ip(request)
        now = time.time()
        await self.check(actor_id, now)
        yield
        if settings.RATE_LIMIT_ENABLED:
            await rate_limit.release(self.kind, actor_id, window_seconds=self.window_seconds, now=now)


general_limit = IPRateLimit("general", settings.RATE_LIMIT_GENERAL_PER_MINUTE)
write_limit = UserRateLimit(
    "write",
    settings.RATE_LIMIT_WRITE_PER_MINUTE,
    message="Too many actions, please slow down",
)
auth_limit = IPRateLimit(
    "auth",
    settings.RATE_LIMIT_AUTH_ATTEMPTS,
    window_seconds=settings.RATE_LIMIT_AUTH_WINDOW_MINUTES * 60,
    message="Too many authentication attempts, please try again later",
)
login_limit = FailedAttemptLimit(
    "auth",
    settings.RATE_LIMIT_AUTH_ATTEMPTS,
    window_seconds=settings.RATE_LIMIT_AUTH_WINDOW_MINUTES * 60,
    message="Too many failed login attempts, please try again later",
)
