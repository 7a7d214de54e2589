import logging
from typing import Any

from sqlalchemy.orm import Session, selectinload

from app.errors import InvalidRequest, NotFound
from app.models.research import ResearchRequest, initial_stages
from app.schemas.research import ResearchOut
from app.services.live import FEED_CHANNEL, broadcaster, research_channel

logger = logging.getLogger(__name__)


def serialize(record: ResearchRequest) -> dict:
    return ResearchOut.model_validate(record).model_dump(mode="json", by_alias=True)


def publish(record: ResearchRequest) -> None:
    snapshot = serialize(record)
    broadcaster.publish(research_channel(record.id), snapshot)
    broadcaster.publish(FEED_CHANNEL, snapshot)


def validate_submission(query: Any, user_id: str | None) -> str:
    if not query or not isinstance(query, str):
        raise InvalidRequest("Invalid query provided")
    if not user_id:
        raise InvalidRequest("User authentication required", status_code=401)
    return query


def create_research(
    db: Session, query: str, user_id: str, username: str | None = None
) -> ResearchRequest:
    record = ResearchRequest(
        query=query,
        user_id=user_id,
        username=username or "Unknown",
        status="running",
        progress=0,
        current_stage="Initializing research pipeline...",
        stages=initial_stages(),
        stars=0,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Created research %s for user %s", record.id, user_id)
    publish(record)
    return record


def get_research(db: Session, research_id: str) -> ResearchRequest:
    record = db.get(ResearchRequest, research_id)
    if record is None:
        raise NotFound("Research not found")
    return record


def recent_research(db: Session, limit: int = 50) -> list[ResearchRequest]:
    """The live window: most recent records first."""
    return (
        db.query(ResearchRequest)
        .options(selectinload(ResearchRequest.star_rows))
        .order_by(ResearchRequest.created_at.desc(), ResearchRequest.id)
        .limit(limit)
        .all()
    )


def completed_feed(
    records: list[ResearchRequest], tag: str | None = None, limit: int = 20
) -> list[ResearchRequest]:
    items = [r for r in records if r.status == "completed"]
    if tag:
        items = [r for r in items if r.tags and tag in r.tags]
    return items[:limit]


def user_research(records: list[ResearchRequest], user_id: str) -> dict:
    """A user's own records within ``records`` plus per-status counts."""
    items = [r for r in records if r.user_id == user_id]
    stats = {"total": len(items), "running": 0, "completed": 0, "failed": 0, "total_cost": 0.0}
    for record in items:
        if record.status in ("running", "completed", "failed"):
            stats[record.status] += 1
        if record.cost and record.cost.get("totalCost"):
            stats["total_cost"] += record.cost["totalCost"]
    return {"items": items, "stats": stats}
