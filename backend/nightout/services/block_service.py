"""
User blocks.

A block is recorded twice: a row in user_blocks (the source of truth for
listing and checks) and a `blocked` friendship row that replaces any existing
friendship, so friendship lookups in either direction see it too.
"""

from uuid import UUID

from sqlalchemy import and_, delete, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import ConflictError, NotFoundError, ValidationError
from nightout.core.logging import get_logger
from nightout.models.block import Block
from nightout.models.friendship import Friendship, FriendshipStatus
from nightout.models.user import User

logger = get_logger(__name__)

BLOCK_EXISTS = "BLOCK_EXISTS"


def _pair(user_a: UUID, user_b: UUID):
    return or_(
        and_(Friendship.requester_id == user_a, Friendship.addressee_id == user_b),
        and_(Friendship.requester_id == user_b, Friendship.addressee_id == user_a),
    )


def blocked_user_ids(user_id: UUID):
    """Ids the user blocked, plus ids that blocked the user."""
    return select(Block.blocked_id).where(Block.blocker_id == user_id).union(
        select(Block.blocker_id).where(Block.blocked_id == user_id)
    )


async def is_blocked_between(db: AsyncSession, user_a: UUID, user_b: UUID) -> bool:
    result = await db.execute(
        select(
            exists().where(
                or_(
                    and_(Block.blocker_id == user_a, Block.blocked_id == user_b),
                    and_(Block.blocker_id == user_b, Block.blocked_id == user_a),
                )
            )
        )
    )
    return bool(result.scalar())


async def block_user(db: AsyncSession, blocker_id: UUID, blocked_id: UUID) -> Block:
    if blocker_id == blocked_id:
        raise ValidationError("Cannot block yourself")

    if await db.get(User, blocked_id) is None:
        raise NotFoundError("User")

    existing = await db.execute(
        select(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
    )
    if existing.scalar_one_or_none():
        raise ConflictError("User already blocked", code=BLOCK_EXISTS)

    await db.execute(delete(Friendship).where(_pair(blocker_id, blocked_id)))

    block = Block(blocker_id=blocker_id, blocked_id=blocked_id)
    db.add(block)
    db.add(
        Friendship(
            requester_id=blocker_id,
            addressee_id=blocked_id,
            status=FriendshipStatus.BLOCKED.value,
        )
    )
    await db.flush()

    logger.info("user_blocked", blocker_id=str(blocker_id), blocked_id=str(blocked_id))
    return block


async def unblock_user(db: AsyncSession, blocker_id: UUID, blocked_id: UUID) -> None:
    result = await db.execute(
        delete(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
    )
    await db.execute(
        delete(Friendship).where(
            Friendship.requester_id == blocker_id,
            Friendship.addressee_id == blocked_id,
            Friendship.status == FriendshipStatus.BLOCKED.value,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Block")

    logger.info("user_unblocked", blocker_id=str(blocker_id), blocked_id=str(blocked_id))


async def list_blocked(db: AsyncSession, blocker_id: UUID) -> list[Block]:
    result = await db.execute(
        select(Block).where(Block.blocker_id == blocker_id).order_by(Block.created_at.desc())
    )
    return list(result.scalars().all())


async def has_blocked(db: AsyncSession, blocker_id: UUID, target_id: UUID) -> bool:
    result = await db.execute(
        select(
            exists().where(Block.blocker_id == blocker_id, Block.blocked_id == target_id)
        )
    )
    return bool(result.scalar())
