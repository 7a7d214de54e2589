import asyncio

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.events import KEEPALIVE_SECONDS, event_stream, next_snapshot, sse_event
from app.config import get_settings
from app.database import SessionLocal, get_db
from app.schemas.feed import FeedOut, FeedSummaryOut
from app.schemas.research import UserResearchOut
from app.services.feed import ActivityRibbon, summarize_feed
from app.services.live import FEED_CHANNEL, broadcaster
from app.services.research import completed_feed, recent_research, serialize, user_research

router = APIRouter()

# The per-user task list only looks at this many recent records
USER_WINDOW = 20


def _feed_payload(db: Session, viewer: str | None, ribbon: ActivityRibbon | None = None) -> dict:
    window_size = get_settings().FEED_WINDOW
    window = recent_research(db, window_size)
    summary = FeedSummaryOut.model_validate(summarize_feed(window, viewer_id=viewer))
    payload = {
        "items": [serialize(r) for r in completed_feed(window, limit=window_size)],
        "summary": summary.model_dump(mode="json", by_alias=True),
    }
    if ribbon is not None:
        ribbon.observe(window)
        payload["activity"] = [notice.to_dict() for notice in ribbon.active()]
    return payload


async def feed_updates(queue: asyncio.Queue, viewer: str | None, ribbon: ActivityRibbon):
    """Yield a fresh feed payload on every record change and whenever a notice lapses."""
    while True:
        session = SessionLocal()
        try:
            payload = _feed_payload(session, viewer, ribbon)
        finally:
            session.close()
        yield sse_event(payload)

        while True:
            expiry = ribbon.seconds_until_expiry()
            timeout = KEEPALIVE_SECONDS if expiry is None else min(expiry, KEEPALIVE_SECONDS)
            if await next_snapshot(queue, timeout=timeout) is not None or expiry is not None:
                break
            yield ": keepalive\n\n"


@router.get("/feed", response_model=FeedOut)
async def get_feed(viewer: str | None = None, db: Session = Depends(get_db)):
    """Completed research plus derived stats for the live window."""
    return _feed_payload(db, viewer)


@router.get("/feed/events")
async def feed_events(request: Request, viewer: str | None = None):
    """Server-sent feed payloads, recomputed whenever any record changes."""
    ribbon = ActivityRibbon(viewer_id=viewer)

    async def stream():
        async with broadcaster.subscribe(FEED_CHANNEL) as queue:
            async for chunk in feed_updates(queue, viewer, ribbon):
                yield chunk

    return event_stream(request, stream())


@router.get("/users/{user_id}/research", response_model=UserResearchOut)
async def get_user_research(user_id: str, db: Session = Depends(get_db)):
    """The user's own requests among the most recent records, with status counts."""
    return user_research(recent_research(db, USER_WINDOW), user_id)
