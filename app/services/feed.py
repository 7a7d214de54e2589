import datetime as dt
import logging
from dataclasses import dataclass

from app.models.research import ResearchRequest
from app.services.quota import daily_limit, local_day_bounds

logger = logging.getLogger(__name__)

TOP_TAGS = 8
HISTORY_POINTS = 15
NOTICE_TTL_SECONDS = 5.0


def time_label(created_at: dt.datetime) -> str:
    """Clock label like "3:05 PM" in server-local time."""
    local = created_at.replace(tzinfo=dt.timezone.utc).astimezone()
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"


def summarize_feed(
    records: list[ResearchRequest],
    viewer_id: str | None = None,
    now: dt.datetime | None = None,
) -> dict:
    """Derived views over the live window.

    ``records`` must be ordered most recent first, as returned by
    ``recent_research``.
    """
    day_start, day_end = local_day_bounds(now)
    tag_counts: dict[str, int] = {}
    history = []
    completed = 0
    credits = 0.0
    daily_requests = 0

    for record in records:
        if record.status == "completed":
            completed += 1
            total_cost = (record.cost or {}).get("totalCost")
            if total_cost:
                credits += total_cost
                history.append({"time": time_label(record.created_at), "cost": total_cost})
            for tag in record.tags or []:
                tag_counts[tag] = tag_counts.get(tag, 0) + 1

        if viewer_id and record.user_id == viewer_id:
            if day_start <= record.created_at < day_end:
                daily_requests += 1

    history.reverse()

    task_counts: dict[str, int] = {}
    for point in history:
        task_counts[point["time"]] = task_counts.get(point["time"], 0) + 1

    # sorted() is stable, so equal counts keep first-seen order
    popular = sorted(tag_counts.items(), key=lambda item: item[1], reverse=True)

    return {
        "total_tasks": completed,
        "api_credits": credits,
        "daily_requests": daily_requests,
        "daily_limit": daily_limit(),
        "cost_history": history[-HISTORY_POINTS:],
        "task_history": [
            {"time": time, "count": count} for time, count in task_counts.items()
        ][-HISTORY_POINTS:],
        "popular_tags": [tag for tag, _ in popular[:TOP_TAGS]],
    }


@dataclass
class ActivityNotice:
    research_id: str
    username: str
    query: str
    expires_at: dt.datetime

    def to_dict(self) -> dict:
        return {"researchId": self.research_id, "username": self.username, "query": self.query}


class ActivityRibbon:
    """Tracks "someone started researching X" notices for one viewer.

    The first window observed only primes the set of known records; after
    that, each newly arrived running record from another user produces a
    notice that expires after ``ttl`` seconds.
    """

    def __init__(self, viewer_id: str | None = None, ttl: float = NOTICE_TTL_SECONDS):
        self.viewer_id = viewer_id
        self.ttl = dt.timedelta(seconds=ttl)
        self._seen: set[str] | None = None
        self._notices: list[ActivityNotice] = []

    def observe(self, records: list[ResearchRequest], now: dt.datetime | None = None) -> list[ActivityNotice]:
        now = now or dt.datetime.now(dt.timezone.utc)
        ids = {record.id for record in records}
        if self._seen is None:
            self._seen = ids
            return []

        fresh = []
        for record in records:
            if record.id in self._seen:
                continue
            if record.status != "running":
                continue
            if self.viewer_id and record.user_id == self.viewer_id:
                continue
            fresh.append(
                ActivityNotice(
                    research_id=record.id,
                    username=record.username or "Someone",
                    query=record.query,
                    expires_at=now + self.ttl,
                )
            )
        self._seen |= ids
        self._notices.extend(fresh)
        return fresh

    def active(self, now: dt.datetime | None = None) -> list[ActivityNotice]:
        now = now or dt.datetime.now(dt.timezone.utc)
        self._notices = [n for n in self._notices if n.expires_at > now]
        return list(self._notices)

    def seconds_until_expiry(self, now: dt.datetime | None = None) -> float | None:
        """Seconds until the next active notice lapses, or None if there are none."""
        notices = self.active(now)
        if not notices:
            return None
        now = now or dt.datetime.now(dt.timezone.utc)
        soonest = min(notice.expires_at for notice in notices)
        return max(0.0, (soonest - now).total_seconds())
