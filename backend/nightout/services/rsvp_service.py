"""
RSVP upsert / removal. One row per (user, event).
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import NotFoundError
from nightout.core.logging import get_logger
from nightout.models.rsvp import RSVP, RSVPStatus
from nightout.services.event_service import get_event

logger = get_logger(__name__)


async def set_rsvp(
    db: AsyncSession,
    user_id: UUID,
    event_id: UUID,
    status: RSVPStatus,
    emoji_reaction: Optional[str] = None,
) -> RSVP:
    """Create or update the caller's RSVP. A missing emoji keeps the previous one."""
    await get_event(db, event_id)

    stmt = pg_insert(RSVP).values(
        user_id=user_id,
        event_id=event_id,
        status=status.value,
        emoji_reaction=emoji_reaction,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[RSVP.user_id, RSVP.event_id],
        set_={
            "status": stmt.excluded.status,
            "emoji_reaction": func.coalesce(stmt.excluded.emoji_reaction, RSVP.emoji_reaction),
            "updated_at": func.now(),
        },
    ).returning(RSVP.id)
    rsvp_id = (await db.execute(stmt)).scalar_one()

    result = await db.execute(
        select(RSVP).where(RSVP.id == rsvp_id).execution_options(populate_existing=True)
    )
    rsvp = result.scalar_one()

    logger.info("rsvp_set", user_id=str(user_id), event_id=str(event_id), status=rsvp.status)
    return rsvp


async def hide_event(db: AsyncSession, user_id: UUID, event_id: UUID) -> RSVP:
    return await set_rsvp(db, user_id, event_id, RSVPStatus.HIDDEN)


async def remove_rsvp(db: AsyncSession, user_id: UUID, event_id: UUID) -> None:
    result = await db.execute(
        delete(RSVP).where(RSVP.user_id == user_id, RSVP.event_id == event_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("RSVP")
    logger.info("rsvp_removed", user_id=str(user_id), event_id=str(event_id))
