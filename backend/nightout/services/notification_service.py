"""
In-app notifications: creation (called by other services) and the inbox.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import NotFoundError
from nightout.core.logging import get_logger
from nightout.models.notification import Notification

logger = get_logger(__name__)


async def notify(
    db: AsyncSession,
    user_id: UUID,
    type: str,
    title: str,
    body: Optional[str] = None,
    data: Optional[dict[str, Any]] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        body=body,
        data={k: str(v) for k, v in (data or {}).items()},
    )
    db.add(notification)
    await db.flush()
    logger.info("notification_created", user_id=str(user_id), type=type)
    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: UUID,
    page: int = 1,
    page_size: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    result = await db.execute(
        query.order_by(Notification.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def unread_count(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.read.is_(False)
        )
    )
    return result.scalar()


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFoundError("Notification")

    if not notification.read:
        notification.read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
    return notification


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True, read_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def delete_notification(db: AsyncSession, user_id: UUID, notification_id: UUID) -> None:
    result = await db.execute(
        delete(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Notification")


async def delete_read(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        delete(Notification).where(Notification.user_id == user_id, Notification.read.is_(True))
    )
    return result.rowcount
