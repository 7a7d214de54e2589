import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.events import event_stream, next_snapshot, sse_event
from app.config import get_settings
from app.database import SessionLocal, get_db
from app.errors import ResearchError
from app.models.research import TERMINAL_STATUSES
from app.scheduler.runs import submit_research_run
from app.schemas.research import ResearchAccepted, ResearchCreate, ResearchOut
from app.services.live import broadcaster, research_channel
from app.services.quota import admit
from app.services.research import (
    completed_feed,
    create_research,
    get_research,
    recent_research,
    serialize,
    validate_submission,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=202, response_model=ResearchAccepted)
async def submit_research(
    data: ResearchCreate,
    db: Session = Depends(get_db),
):
    """Admit a research query and start its pipeline run on the worker pool."""
    try:
        query = validate_submission(data.query, data.user_id)
        admit(db, data.user_id)
        record = create_research(db, query, data.user_id, data.username)
    except ResearchError:
        raise
    except Exception as e:
        logger.exception("Research admission failed")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to start research"})

    submit_research_run(record.id, query)
    return ResearchAccepted(id=record.id)


@router.get("", response_model=list[ResearchOut])
async def list_completed_research(
    db: Session = Depends(get_db),
    tag: str | None = None,
    limit: int = Query(20, ge=1, le=50),
):
    """Completed records from the live window, optionally filtered by tag."""
    window = recent_research(db, get_settings().FEED_WINDOW)
    return completed_feed(window, tag=tag, limit=limit)


@router.get("/{research_id}", response_model=ResearchOut)
async def get_research_detail(research_id: str, db: Session = Depends(get_db)):
    return get_research(db, research_id)


@router.get("/{research_id}/events")
async def research_events(research_id: str, request: Request, db: Session = Depends(get_db)):
    """Server-sent snapshots of one record until it reaches a terminal state."""
    get_research(db, research_id)

    async def stream():
        async with broadcaster.subscribe(research_channel(research_id)) as queue:
            # Read after subscribing so no write can slip between the two
            session = SessionLocal()
            try:
                snapshot = serialize(get_research(session, research_id))
            finally:
                session.close()
            yield sse_event(snapshot)

            while snapshot["status"] not in TERMINAL_STATUSES:
                update = await next_snapshot(queue)
                if update is None:
                    yield ": keepalive\n\n"
                    continue
                snapshot = update
                yield sse_event(snapshot)

    return event_stream(request, stream())
