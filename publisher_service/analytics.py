"""
Per-publisher engagement analytics.

The window ends at the moment of the call, so today's bucket is partial and
two calls made at different times of day can differ for the same data. The
window starts at midnight UTC of the oldest emitted day; every fetched row
therefore falls into exactly one emitted bucket and the series always sums to
the totals. This deliberately departs from a strict days x 24h window ending
now; that window would reach into the day before the oldest bucket and count
rows that appear in no bucket.
"""

import logging
from collections import Counter
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth import AuthContext, require_publisher
from .errors import ForbiddenError
from .models import Like, Post, utcnow
from .schemas import AnalyticsOut, DayPoint

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 30
MIN_DAYS = 7
MAX_DAYS = 90

ONE_DAY = timedelta(days=1)


def day_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def window_start(now: datetime, days: int) -> datetime:
    """First instant of the oldest day in a `days`-long series ending today."""
    return datetime.combine((now - (days - 1) * ONE_DAY).date(), time.min)


def build_series(post_times: Iterable[datetime], like_times: Iterable[datetime], days: int, now: datetime) -> list[DayPoint]:
    """Bucket timestamps by UTC day and emit one point per day, oldest first, zero-filled."""
    posts_by_day = Counter(day_key(as_naive_utc(t)) for t in post_times)
    likes_by_day = Counter(day_key(as_naive_utc(t)) for t in like_times)

    series = []
    for offset in range(days - 1, -1, -1):
        key = day_key(now - offset * ONE_DAY)
        series.append(DayPoint(date=key, posts=posts_by_day.get(key, 0), likes=likes_by_day.get(key, 0)))
    return series


def compute_analytics(
    db: Session,
    ctx: AuthContext,
    days: int = DEFAULT_DAYS,
    publisher_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AnalyticsOut:
    require_publisher(ctx)
    publisher_id = ctx.user_id if publisher_id is None else publisher_id
    if publisher_id != ctx.user_id:
        logger.info("Publisher %s denied analytics for publisher %s", ctx.user_id, publisher_id)
        raise ForbiddenError()

    now = as_naive_utc(now) if now is not None else utcnow()
    since = window_start(now, days)

    post_times = db.execute(
        select(Post.created_at).where(
            Post.publisher_id == publisher_id,
            Post.created_at >= since,
            Post.created_at <= now,
        )
    ).scalars().all()

    like_times = db.execute(
        select(Like.created_at)
        .join(Post, Like.post_id == Post.id)
        .where(
            Post.publisher_id == publisher_id,
            Like.created_at >= since,
            Like.created_at <= now,
        )
    ).scalars().all()

    return AnalyticsOut(
        days=days,
        total_posts=len(post_times),
        total_likes=len(like_times),
        series=build_series(post_times, like_times, days, now),
    )
