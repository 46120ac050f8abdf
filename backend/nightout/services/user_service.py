"""
Profile, preferences, location and user search.
"""

from uuid import UUID

from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import ConflictError, ErrorCode, NotFoundError
from nightout.core.logging import get_logger
from nightout.models.user import User, UserPreferences
from nightout.schemas.user import LocationUpdate, PreferencesUpdate, ProfileUpdate
from nightout.services.block_service import blocked_user_ids

logger = get_logger(__name__)

SEARCH_LIMIT = 20


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User")
    return user


async def get_preferences(db: AsyncSession, user: User) -> UserPreferences:
    if user.preferences is None:
        # Accounts created outside registration may predate their preferences row
        user.preferences = UserPreferences(user_id=user.id)
        await db.flush()
    return user.preferences


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    changes = data.model_dump(exclude_unset=True)

    username = changes.get("username")
    if username and username != user.username:
        result = await db.execute(
            select(User.id).where(User.username == username, User.id != user.id)
        )
        if result.scalar_one_or_none():
            raise ConflictError("Username already taken", ErrorCode.USERNAME_EXISTS)

    for field, value in changes.items():
        if field in ("display_name", "username") and value is None:
            continue
        setattr(user, field, value)

    await db.flush()
    logger.info("profile_updated", user_id=str(user.id), fields=sorted(changes))
    return user


async def update_preferences(db: AsyncSession, user: User, data: PreferencesUpdate) -> UserPreferences:
    preferences = await get_preferences(db, user)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    for field, value in changes.items():
        setattr(preferences, field, value)

    user.onboarding_completed = True
    await db.flush()

    logger.info("preferences_updated", user_id=str(user.id), fields=sorted(changes))
    return preferences


async def update_location(db: AsyncSession, user: User, data: LocationUpdate) -> User:
    user.latitude = data.latitude
    user.longitude = data.longitude
    await db.flush()
    logger.info("location_updated", user_id=str(user.id))
    return user


async def search_users(db: AsyncSession, current_user_id: UUID, q: str) -> list[User]:
    """
    Case-insensitive substring match on username or display name.
    Username prefix matches rank first. Blocked users in either direction are
    never returned.
    """
    q = q.strip()
    contains = f"%{q}%"
    prefix = f"{q}%"

    result = await db.execute(
        select(User)
        .where(
            User.id != current_user_id,
            or_(User.username.ilike(contains), User.display_name.ilike(contains)),
            User.id.not_in(blocked_user_ids(current_user_id)),
        )
        .order_by(case((User.username.ilike(prefix), 0), else_=1), User.username)
        .limit(SEARCH_LIMIT)
    )
    return list(result.scalars().all())
