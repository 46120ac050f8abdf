"""
Event comments. Threads are one level deep: a reply's parent must itself be
a top-level comment on the same event.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import AuthorizationError, NotFoundError, ValidationError
from nightout.core.logging import get_logger
from nightout.models.comment import Comment
from nightout.models.notification import NotificationType
from nightout.models.user import User
from nightout.schemas.comment import CommentCreate, CommentResponse
from nightout.services.event_service import get_event
from nightout.services.notification_service import notify

logger = get_logger(__name__)


async def list_comments(
    db: AsyncSession, event_id: UUID, page: int = 1, page_size: int = 20
) -> tuple[list[CommentResponse], int]:
    """Top-level comments newest first, each with its replies oldest first."""
    await get_event(db, event_id)

    top_level = select(Comment).where(
        Comment.event_id == event_id,
        Comment.parent_comment_id.is_(None),
        Comment.is_deleted.is_(False),
    )
    total = (await db.execute(select(func.count()).select_from(top_level.subquery()))).scalar()

    result = await db.execute(
        top_level.order_by(Comment.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    parents = list(result.scalars().all())
    if not parents:
        return [], total

    result = await db.execute(
        select(Comment)
        .where(
            Comment.parent_comment_id.in_([p.id for p in parents]),
            Comment.is_deleted.is_(False),
        )
        .order_by(Comment.created_at.asc())
    )
    replies: dict[UUID, list[CommentResponse]] = {}
    for reply in result.scalars().all():
        replies.setdefault(reply.parent_comment_id, []).append(CommentResponse.model_validate(reply))

    items = []
    for parent in parents:
        item = CommentResponse.model_validate(parent)
        item.replies = replies.get(parent.id, [])
        items.append(item)
    return items, total


async def create_comment(
    db: AsyncSession, author: User, event_id: UUID, data: CommentCreate
) -> Comment:
    event = await get_event(db, event_id)

    parent = None
    if data.parent_comment_id is not None:
        result = await db.execute(
            select(Comment).where(
                Comment.id == data.parent_comment_id,
                Comment.event_id == event_id,
                Comment.is_deleted.is_(False),
            )
        )
        parent = result.scalar_one_or_none()
        if parent is None:
            raise NotFoundError("Parent comment")
        if parent.parent_comment_id is not None:
            raise ValidationError(
                "Replies can only be made to top-level comments",
                details={"parent_comment_id": ["Cannot reply to a reply"]},
            )

    comment = Comment(
        event_id=event_id,
        user_id=author.id,
        parent_comment_id=data.parent_comment_id,
        content=data.content,
    )
    db.add(comment)
    await db.flush()
    await db.refresh(comment, attribute_names=["author"])

    if parent is not None and parent.user_id != author.id:
        await notify(
            db,
            parent.user_id,
            NotificationType.COMMENT_REPLY,
            "New reply",
            f"{author.display_name} replied to your comment on {event.title}",
            {"event_id": event_id, "comment_id": comment.id},
        )

    logger.info("comment_created", comment_id=str(comment.id), event_id=str(event_id))
    return comment


async def _own_comment(db: AsyncSession, user_id: UUID, event_id: UUID, comment_id: UUID) -> Comment:
    result = await db.execute(
        select(Comment).where(
            Comment.id == comment_id,
            Comment.event_id == event_id,
            Comment.is_deleted.is_(False),
        )
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment")
    if comment.user_id != user_id:
        raise AuthorizationError("You can only modify your own comments")
    return comment


async def update_comment(
    db: AsyncSession, user_id: UUID, event_id: UUID, comment_id: UUID, content: str
) -> Comment:
    comment = await _own_comment(db, user_id, event_id, comment_id)
    comment.content = content
    await db.flush()
    logger.info("comment_updated", comment_id=str(comment_id))
    return comment


async def delete_comment(db: AsyncSession, user_id: UUID, event_id: UUID, comment_id: UUID) -> None:
    comment = await _own_comment(db, user_id, event_id, comment_id)
    comment.is_deleted = True
    await db.flush()
    logger.info("comment_deleted", comment_id=str(comment_id))
