"""
Public feed query.

Pages are seeked on (created_at, id) of the cursor row rather than offset, so
posts inserted while a reader pages through the feed neither shift nor
duplicate items on later pages. The cursor row itself must still exist:
if it is deleted, a reader holding its id gets InvalidCursorError and has to
restart from the first page.
"""

import logging
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session, selectinload

from .errors import InvalidCursorError
from .models import Like, Post
from .schemas import FeedPage, PostView, PublisherOut

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 30


def like_counts(db: Session, post_ids: list[int]) -> dict[int, int]:
    if not post_ids:
        return {}
    rows = db.execute(
        select(Like.post_id, func.count(Like.id)).where(Like.post_id.in_(post_ids)).group_by(Like.post_id)
    ).all()
    return {post_id: count for post_id, count in rows}


def liked_post_ids(db: Session, viewer_id: int, post_ids: list[int]) -> set[int]:
    if not post_ids:
        return set()
    return set(
        db.execute(select(Like.post_id).where(Like.user_id == viewer_id, Like.post_id.in_(post_ids))).scalars()
    )


def query_feed(
    db: Session,
    cursor: Optional[int] = None,
    limit: int = DEFAULT_LIMIT,
    search: Optional[str] = None,
    viewer_id: Optional[int] = None,
) -> FeedPage:
    """
    Return one page of the feed, newest first.

    Args:
        db: Database session
        cursor: Id of the last item of the previous page; items strictly after it are returned
        limit: Page size
        search: Case-insensitive title filter; blank means no filter
        viewer_id: When given, each item reports whether this user liked it
    """
    stmt = (
        select(Post)
        .options(selectinload(Post.publisher))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )

    term = (search or "").strip()
    if term:
        stmt = stmt.where(Post.title.icontains(term, autoescape=True))

    if cursor is not None:
        anchor = db.get(Post, cursor)
        if anchor is None:
            raise InvalidCursorError(f"Cursor {cursor} does not match any post")
        stmt = stmt.where(
            or_(
                Post.created_at < anchor.created_at,
                and_(Post.created_at == anchor.created_at, Post.id < anchor.id),
            )
        )

    posts = list(db.execute(stmt.limit(limit + 1)).scalars())

    next_cursor = None
    if len(posts) > limit:
        posts = posts[:limit]
        next_cursor = posts[-1].id

    post_ids = [p.id for p in posts]
    counts = like_counts(db, post_ids)
    liked = liked_post_ids(db, viewer_id, post_ids) if viewer_id is not None else None

    items = [
        PostView(
            id=p.id,
            title=p.title,
            content=p.content,
            created_at=p.created_at,
            publisher=PublisherOut.model_validate(p.publisher),
            like_count=counts.get(p.id, 0),
            liked_by_viewer=(p.id in liked) if liked is not None else None,
        )
        for p in posts
    ]
    logger.debug("Feed page: %d items, search=%r, cursor=%s, next=%s", len(items), term, cursor, next_cursor)
    return FeedPage(items=items, next_cursor=next_cursor)
