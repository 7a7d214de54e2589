import datetime as dt
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.errors import QuotaExceeded
from app.models.research import ResearchRequest

logger = logging.getLogger(__name__)


def daily_limit(settings: Settings | None = None) -> int:
    """Per-user daily request ceiling, scaled by accumulated creator fees."""
    settings = settings or get_settings()
    bonus = int(settings.CREATOR_FEES * settings.CREATOR_FEE_SCALING_FACTOR)
    return max(0, settings.DAILY_REQUEST_BASE_LIMIT + bonus)


def local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


def local_day_bounds(now: dt.datetime | None = None) -> tuple[dt.datetime, dt.datetime]:
    """[start, end) of the server-local calendar day containing ``now``.

    Returned as naive UTC datetimes, comparable with stored ``created_at``.
    A naive ``now`` is taken to be server-local time.
    """
    day = (now or local_now()).astimezone().date()
    # Each midnight resolves its own UTC offset, so DST days run 23 or 25 hours
    start = dt.datetime.combine(day, dt.time()).astimezone()
    end = dt.datetime.combine(day + dt.timedelta(days=1), dt.time()).astimezone()
    return (
        start.astimezone(dt.timezone.utc).replace(tzinfo=None),
        end.astimezone(dt.timezone.utc).replace(tzinfo=None),
    )


def count_requests_today(db: Session, user_id: str, now: dt.datetime | None = None) -> int:
    start, end = local_day_bounds(now)
    return (
        db.query(func.count(ResearchRequest.id))
        .filter(
            ResearchRequest.user_id == user_id,
            ResearchRequest.created_at >= start,
            ResearchRequest.created_at < end,
        )
        .scalar()
    )


def admit(db: Session, user_id: str, now: dt.datetime | None = None) -> int:
    """Raise QuotaExceeded if ``user_id`` has used up today's requests.

    Returns the number of requests the user has made today.
    """
    limit = daily_limit()
    count = count_requests_today(db, user_id, now)
    if count >= limit:
        logger.info("Daily limit reached for user %s (%d/%d)", user_id, count, limit)
        raise QuotaExceeded(limit)
    return count
