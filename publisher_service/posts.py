import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .auth import AuthContext, authorize_post_owner, require_publisher
from .models import Like, Post
from .schemas import OkOut, PostCreate, PostOut, PostUpdate

logger = logging.getLogger(__name__)


def _post_out(post: Post, like_count: int = 0) -> PostOut:
    return PostOut(
        id=post.id,
        title=post.title,
        content=post.content,
        publisher_id=post.publisher_id,
        created_at=post.created_at,
        like_count=like_count,
    )


def list_mine(db: Session, ctx: AuthContext) -> list[PostOut]:
    require_publisher(ctx)
    rows = db.execute(
        select(Post, func.count(Like.id))
        .outerjoin(Like, Like.post_id == Post.id)
        .where(Post.publisher_id == ctx.user_id)
        .group_by(Post.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    ).all()
    return [_post_out(post, count) for post, count in rows]


def create_post(db: Session, ctx: AuthContext, data: PostCreate) -> PostOut:
    require_publisher(ctx)
    post = Post(title=data.title, content=data.content, publisher_id=ctx.user_id)
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Publisher %s created post %s", ctx.user_id, post.id)
    return _post_out(post)


def update_post(db: Session, ctx: AuthContext, post_id: int, data: PostUpdate) -> PostOut:
    post = authorize_post_owner(db.get(Post, post_id), ctx)
    post.title = data.title
    post.content = data.content
    db.commit()
    db.refresh(post)
    like_count = db.scalar(select(func.count(Like.id)).where(Like.post_id == post.id))
    logger.info("Publisher %s updated post %s", ctx.user_id, post.id)
    return _post_out(post, like_count or 0)


def delete_post(db: Session, ctx: AuthContext, post_id: int) -> OkOut:
    post = authorize_post_owner(db.get(Post, post_id), ctx)
    db.delete(post)
    db.commit()
    logger.info("Publisher %s deleted post %s", ctx.user_id, post_id)
    return OkOut()
