"""
Event invites between friends.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import AuthorizationError, ConflictError, ErrorCode, NotFoundError
from nightout.core.logging import get_logger
from nightout.models.invite import EventInvite, InviteStatus
from nightout.models.notification import NotificationType
from nightout.models.user import User
from nightout.schemas.invite import InviteCreate
from nightout.services.event_service import get_event
from nightout.services.social_service import are_friends
from nightout.services.notification_service import notify

logger = get_logger(__name__)


async def create_invite(db: AsyncSession, sender: User, data: InviteCreate) -> EventInvite:
    if data.recipient_id == sender.id:
        raise ConflictError("Cannot invite yourself", ErrorCode.SELF_INVITE)

    event = await get_event(db, data.event_id)

    if await db.get(User, data.recipient_id) is None:
        raise NotFoundError("User")

    if not await are_friends(db, sender.id, data.recipient_id):
        raise AuthorizationError("You can only invite friends")

    result = await db.execute(
        select(EventInvite.id).where(
            EventInvite.event_id == data.event_id,
            EventInvite.sender_id == sender.id,
            EventInvite.recipient_id == data.recipient_id,
        )
    )
    if result.scalar_one_or_none():
        raise ConflictError("Invite already sent", ErrorCode.INVITE_EXISTS)

    invite = EventInvite(
        event_id=data.event_id,
        sender_id=sender.id,
        recipient_id=data.recipient_id,
        message=data.message,
    )
    db.add(invite)
    await db.flush()
    await db.refresh(invite, attribute_names=["event", "sender", "recipient"])

    await notify(
        db,
        data.recipient_id,
        NotificationType.EVENT_INVITE,
        "New event invite",
        f"{sender.display_name} invited you to {event.title}",
        {"invite_id": invite.id, "event_id": event.id},
    )

    logger.info("invite_created", invite_id=str(invite.id), event_id=str(event.id))
    return invite


async def respond_to_invite(
    db: AsyncSession, user_id: UUID, invite_id: UUID, status: str
) -> EventInvite:
    """Only the recipient may answer, and only while the invite is pending."""
    result = await db.execute(
        update(EventInvite)
        .where(
            EventInvite.id == invite_id,
            EventInvite.recipient_id == user_id,
            EventInvite.status == InviteStatus.PENDING.value,
        )
        .values(status=status, responded_at=datetime.now(timezone.utc), updated_at=func.now())
        .returning(EventInvite.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Invite")

    result = await db.execute(
        select(EventInvite)
        .where(EventInvite.id == invite_id)
        .execution_options(populate_existing=True)
    )
    invite = result.scalar_one()
    logger.info("invite_responded", invite_id=str(invite_id), status=status)
    return invite


async def _list(db: AsyncSession, condition, page: int, page_size: int) -> tuple[list[EventInvite], int]:
    total = (
        await db.execute(select(func.count(EventInvite.id)).where(condition))
    ).scalar()
    result = await db.execute(
        select(EventInvite)
        .where(condition)
        .order_by(EventInvite.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def received_invites(
    db: AsyncSession, user_id: UUID, page: int = 1, page_size: int = 20
) -> tuple[list[EventInvite], int]:
    return await _list(
        db,
        (EventInvite.recipient_id == user_id) & (EventInvite.status == InviteStatus.PENDING.value),
        page,
        page_size,
    )


async def sent_invites(
    db: AsyncSession, user_id: UUID, page: int = 1, page_size: int = 20
) -> tuple[list[EventInvite], int]:
    return await _list(db, EventInvite.sender_id == user_id, page, page_size)
