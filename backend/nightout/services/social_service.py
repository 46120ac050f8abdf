"""
Friendships: requests, responses and friend listings.

Each pair of users has at most one friendship row, in whichever direction
the request was sent; every lookup checks both directions.
"""

from uuid import UUID

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import ConflictError, ErrorCode, NotFoundError
from nightout.core.logging import get_logger
from nightout.models.friendship import Friendship, FriendshipStatus
from nightout.models.notification import NotificationType
from nightout.models.user import User
from nightout.services.block_service import is_blocked_between
from nightout.services.notification_service import notify

logger = get_logger(__name__)


def pair_condition(user_a: UUID, user_b: UUID):
    return or_(
        and_(Friendship.requester_id == user_a, Friendship.addressee_id == user_b),
        and_(Friendship.requester_id == user_b, Friendship.addressee_id == user_a),
    )


def friend_ids(user_id: UUID):
    """SELECT of the ids of the user's accepted friends, for use in IN (...)."""
    other = case(
        (Friendship.requester_id == user_id, Friendship.addressee_id),
        else_=Friendship.requester_id,
    )
    return select(other).where(
        or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
        Friendship.status == FriendshipStatus.ACCEPTED.value,
    )


async def get_friendship(db: AsyncSession, user_a: UUID, user_b: UUID):
    result = await db.execute(select(Friendship).where(pair_condition(user_a, user_b)))
    return result.scalars().first()


async def are_friends(db: AsyncSession, user_a: UUID, user_b: UUID) -> bool:
    friendship = await get_friendship(db, user_a, user_b)
    return friendship is not None and friendship.status == FriendshipStatus.ACCEPTED.value


async def send_friend_request(db: AsyncSession, requester: User, addressee_id: UUID) -> Friendship:
    if requester.id == addressee_id:
        raise ConflictError("Cannot send a friend request to yourself", ErrorCode.CANNOT_FRIEND_SELF)

    if await db.get(User, addressee_id) is None:
        raise NotFoundError("User")

    if await is_blocked_between(db, requester.id, addressee_id):
        raise ConflictError("Cannot send a friend request to this user", ErrorCode.USER_BLOCKED)

    existing = await get_friendship(db, requester.id, addressee_id)
    if existing:
        if existing.status == FriendshipStatus.ACCEPTED.value:
            raise ConflictError("Already friends", ErrorCode.ALREADY_FRIENDS)
        if existing.status == FriendshipStatus.BLOCKED.value:
            raise ConflictError("Cannot send a friend request to this user", ErrorCode.USER_BLOCKED)
        raise ConflictError("Friend request already exists", ErrorCode.REQUEST_EXISTS)

    friendship = Friendship(
        requester_id=requester.id,
        addressee_id=addressee_id,
        status=FriendshipStatus.PENDING.value,
    )
    db.add(friendship)
    await db.flush()

    await notify(
        db,
        addressee_id,
        NotificationType.FRIEND_REQUEST,
        "New friend request",
        f"{requester.display_name} wants to be your friend",
        {"friendship_id": friendship.id, "user_id": requester.id},
    )
    await db.refresh(friendship, attribute_names=["requester", "addressee"])

    logger.info("friend_request_sent", requester_id=str(requester.id), addressee_id=str(addressee_id))
    return friendship


async def _pending_request_for(db: AsyncSession, user_id: UUID, request_id: UUID) -> Friendship:
    result = await db.execute(
        select(Friendship).where(
            Friendship.id == request_id,
            Friendship.addressee_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
    )
    friendship = result.scalar_one_or_none()
    if not friendship:
        raise NotFoundError("Friend request")
    return friendship


async def accept_friend_request(db: AsyncSession, user: User, request_id: UUID) -> Friendship:
    friendship = await _pending_request_for(db, user.id, request_id)
    friendship.status = FriendshipStatus.ACCEPTED.value
    await db.flush()

    await notify(
        db,
        friendship.requester_id,
        NotificationType.FRIEND_ACCEPTED,
        "Friend request accepted",
        f"{user.display_name} accepted your friend request",
        {"friendship_id": friendship.id, "user_id": user.id},
    )

    logger.info("friend_request_accepted", friendship_id=str(friendship.id))
    return friendship


async def decline_friend_request(db: AsyncSession, user_id: UUID, request_id: UUID) -> None:
    friendship = await _pending_request_for(db, user_id, request_id)
    await db.delete(friendship)
    await db.flush()
    logger.info("friend_request_declined", friendship_id=str(request_id))


async def remove_friend(db: AsyncSession, user_id: UUID, friend_id: UUID) -> None:
    result = await db.execute(
        delete(Friendship).where(
            pair_condition(user_id, friend_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Friendship")
    logger.info("friend_removed", user_id=str(user_id), friend_id=str(friend_id))


async def list_friends(
    db: AsyncSession, user_id: UUID, page: int = 1, page_size: int = 20
) -> tuple[list[User], int]:
    ids = friend_ids(user_id)
    total = (
        await db.execute(select(func.count(User.id)).where(User.id.in_(ids)))
    ).scalar()
    result = await db.execute(
        select(User)
        .where(User.id.in_(ids))
        .order_by(User.display_name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def pending_requests(db: AsyncSession, user_id: UUID) -> list[Friendship]:
    result = await db.execute(
        select(Friendship)
        .where(
            Friendship.addressee_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        .order_by(Friendship.created_at.desc())
    )
    return list(result.scalars().all())
