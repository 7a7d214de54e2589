import datetime as dt

from app.database import utcnow
from app.models.research import ResearchRequest
from app.services.reconciliation import TIMEOUT_MESSAGE, sweep_stale_running


def test_stale_running_records_are_failed(db_session, make_research):
    old = utcnow() - dt.timedelta(minutes=30)
    stuck = make_research(progress=40, updated_at=old)
    fresh = make_research(progress=40)
    done = make_research(status="completed", progress=100, updated_at=old)

    stats = sweep_stale_running(db_session, stale_minutes=15)
    assert stats == {"found": 1, "failed": 1, "skipped": 0}

    db_session.expire_all()
    stuck = db_session.get(ResearchRequest, stuck.id)
    assert stuck.status == "failed"
    assert stuck.progress == 0
    assert stuck.current_stage == TIMEOUT_MESSAGE
    assert db_session.get(ResearchRequest, fresh.id).status == "running"
    assert db_session.get(ResearchRequest, done.id).status == "completed"


def test_nothing_to_sweep(db_session, make_research):
    make_research()
    assert sweep_stale_running(db_session, stale_minutes=15)["found"] == 0
