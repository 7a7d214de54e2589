import logging

from app.database import SessionLocal

logger = logging.getLogger(__name__)


def run_research_task(research_id: str, query: str):
    """Detached task: run the research pipeline for one admitted request."""
    db = SessionLocal()
    try:
        from app.services.pipeline import run_research

        status = run_research(db, research_id, query)
        logger.info("Research task %s finished: %s", research_id, status)
    except Exception:
        logger.exception("Research task %s crashed", research_id)
    finally:
        db.close()


def run_reconciliation():
    """Scheduled task: fail research records stuck in "running"."""
    db = SessionLocal()
    try:
        from app.services.reconciliation import sweep_stale_running

        result = sweep_stale_running(db)
        logger.debug("Reconciliation complete: %s", result)
    except Exception:
        logger.exception("Reconciliation task failed")
    finally:
        db.close()
