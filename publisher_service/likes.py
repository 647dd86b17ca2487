import logging

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import AuthContext
from .errors import NotFoundError
from .models import Like, Post
from .schemas import LikeToggleResult

logger = logging.getLogger(__name__)


def toggle_like(db: Session, ctx: AuthContext, post_id: int) -> LikeToggleResult:
    """
    Like the post if the caller has not liked it yet, otherwise remove the like.

    The delete is a single conditional statement and the insert is guarded by
    the (user_id, post_id) unique constraint, so two identical toggles racing
    each other never produce a duplicate row or a failed request.
    """
    removed = db.execute(
        delete(Like).where(Like.user_id == ctx.user_id, Like.post_id == post_id)
    ).rowcount
    if removed:
        db.commit()
        logger.info("User %s unliked post %s", ctx.user_id, post_id)
        return LikeToggleResult(liked=False)

    if db.get(Post, post_id) is None:
        db.rollback()
        raise NotFoundError("Post not found")

    db.add(Like(user_id=ctx.user_id, post_id=post_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Either a concurrent toggle inserted the same like, or the post vanished
        if db.get(Post, post_id) is None:
            raise NotFoundError("Post not found")
        logger.info("Like by user %s on post %s already recorded", ctx.user_id, post_id)
    else:
        logger.info("User %s liked post %s", ctx.user_id, post_id)
    return LikeToggleResult(liked=True)
