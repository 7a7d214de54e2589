import datetime as dt
import logging

from sqlalchemy.orm import Session

from app.database import utcnow
from app.errors import RecordClosed
from app.models.research import STATUS_RUNNING, ResearchRequest
from app.services.research import publish

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "status", "progress", "current_stage", "stages",
    "title", "content", "tags", "cost",
}


def stage_timestamp() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def set_stage(stages: list[dict], index: int, status: str) -> list[dict]:
    """Return a copy of ``stages`` with stage ``index`` moved to ``status``."""
    updated = [dict(stage) for stage in stages]
    updated[index]["status"] = status
    updated[index]["timestamp"] = stage_timestamp()
    return updated


def fail_stages(stages: list[dict]) -> list[dict]:
    updated = [dict(stage) for stage in stages]
    for stage in updated:
        if stage.get("status") == "in-progress":
            stage["status"] = "failed"
            stage["timestamp"] = stage_timestamp()
    return updated


def advance(db: Session, research_id: str, **fields) -> ResearchRequest:
    """Apply a partial update to a running record and publish the new snapshot.

    The write is conditional on ``status == running``, so a record that has
    already completed or failed is never modified again. Raises RecordClosed
    when the condition does not match.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    values = {getattr(ResearchRequest, name): value for name, value in fields.items()}
    values[ResearchRequest.updated_at] = utcnow()

    updated = (
        db.query(ResearchRequest)
        .filter(ResearchRequest.id == research_id, ResearchRequest.status == STATUS_RUNNING)
        .update(values, synchronize_session=False)
    )
    db.commit()
    if not updated:
        raise RecordClosed(f"Research {research_id} is not running")

    record = db.get(ResearchRequest, research_id)
    db.refresh(record)
    publish(record)
    return record
