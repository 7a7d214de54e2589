import pytest

from app.errors import RecordClosed
from app.models.research import ResearchRequest, initial_stages
from app.services import progress
from app.services.progress import advance, fail_stages, set_stage


def test_advance_updates_running_record(db_session, make_research):
    research = make_research()
    before = research.updated_at

    record = advance(db_session, research.id, progress=20, current_stage="Analyzing your query...")
    assert record.progress == 20
    assert record.current_stage == "Analyzing your query..."
    assert record.updated_at >= before


def test_advance_publishes_snapshot(db_session, make_research, monkeypatch):
    published = []
    monkeypatch.setattr(progress, "publish", published.append)
    research = make_research()

    advance(db_session, research.id, progress=5)
    assert [r.progress for r in published] == [5]


def test_terminal_record_is_never_rewritten(db_session, make_research):
    research = make_research(status="completed", progress=100)

    with pytest.raises(RecordClosed):
        advance(db_session, research.id, status="failed", progress=0)

    db_session.expire_all()
    record = db_session.get(ResearchRequest, research.id)
    assert record.status == "completed"
    assert record.progress == 100


def test_unknown_fields_are_rejected(db_session, make_research):
    research = make_research()
    with pytest.raises(ValueError):
        advance(db_session, research.id, stars=10)


def test_set_stage_returns_copy():
    stages = initial_stages()
    updated = set_stage(stages, 1, "in-progress")
    assert stages[1]["status"] == "pending"
    assert updated[1]["status"] == "in-progress"
    assert updated[1]["timestamp"]


def test_fail_stages_marks_in_flight_stage():
    stages = set_stage(set_stage(initial_stages(), 0, "completed"), 1, "in-progress")
    assert [s["status"] for s in fail_stages(stages)] == ["completed", "failed", "pending"]
