import datetime as dt
import logging

from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import utcnow
from app.errors import RecordClosed
from app.models.research import STATUS_FAILED, STATUS_RUNNING, ResearchRequest
from app.services.progress import advance, fail_stages

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Error: Research timed out"


def find_stale_running(db: Session, older_than: dt.timedelta, now: dt.datetime | None = None) -> list[ResearchRequest]:
    cutoff = (now or utcnow()) - older_than
    return (
        db.query(ResearchRequest)
        .filter(ResearchRequest.status == STATUS_RUNNING, ResearchRequest.updated_at < cutoff)
        .order_by(ResearchRequest.updated_at)
        .all()
    )


def sweep_stale_running(db: Session, stale_minutes: int | None = None, now: dt.datetime | None = None) -> dict:
    """Fail records stuck in "running" with no update for ``stale_minutes``.

    Covers runs whose process died or whose failure write never landed.
    Returns summary stats.
    """
    if stale_minutes is None:
        stale_minutes = get_settings().STALE_RUNNING_MINUTES

    stale = find_stale_running(db, dt.timedelta(minutes=stale_minutes), now)
    stats = {"found": len(stale), "failed": 0, "skipped": 0}

    for record in stale:
        try:
            advance(
                db,
                record.id,
                stages=fail_stages(record.stages or []),
                status=STATUS_FAILED,
                progress=0,
                current_stage=TIMEOUT_MESSAGE,
            )
            stats["failed"] += 1
        except RecordClosed:
            # Finished between the query and the write
            stats["skipped"] += 1

    if stale:
        logger.info("Reconciliation sweep: %s", stats)
    return stats
