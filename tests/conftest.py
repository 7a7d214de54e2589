import os
import tempfile

# File-backed so request handlers, pipeline workers and test threads each get
# their own connection
_DB_DIR = tempfile.mkdtemp(prefix="research-feed-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["OPENAI_API_KEY"] = ""
os.environ["PROGRESS_STEP_DELAY"] = "0"
os.environ["SCHEDULER_ENABLED"] = "false"

import datetime as dt

import pytest

from app.clients.openai_chat import Completion, Usage
from app.database import Base, SessionLocal, engine, init_db, utcnow
from app.main import app
from app.models.research import ResearchRequest, initial_stages
from app.scheduler.runs import wait_for_runs
from app.services import pipeline

from fastapi.testclient import TestClient


@pytest.fixture
def db_engine():
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(db_engine):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db_engine):
    with TestClient(app) as c:
        yield c
        wait_for_runs(timeout=10)


class FakeProvider:
    """Stands in for the completion API, answering by system prompt."""

    def __init__(
        self,
        content="Ocean temperatures have risen steadily since 1970.",
        tags="Climate, Oceans, Research",
        title='"Ocean Warming Trends"',
        usage=None,
        fail_on_call=None,
    ):
        self.content = content
        self.tags = tags
        self.title = title
        self.usage = usage or Usage(prompt_tokens=1200, completion_tokens=800, total_tokens=2000)
        self.fail_on_call = fail_on_call
        self.calls = []

    def __call__(self, system_prompt, user_prompt, temperature, max_tokens, model=None):
        self.calls.append(
            {"system": system_prompt, "user": user_prompt, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise RuntimeError("provider unavailable")
        if system_prompt == pipeline.RESEARCH_SYSTEM_PROMPT:
            return Completion(text=self.content, usage=self.usage)
        if system_prompt == pipeline.TAGS_SYSTEM_PROMPT:
            return Completion(text=self.tags)
        return Completion(text=self.title)


@pytest.fixture
def provider(monkeypatch):
    fake = FakeProvider()
    monkeypatch.setattr(pipeline, "complete", fake)
    return fake


@pytest.fixture
def make_research(db_session):
    """Insert a ResearchRequest row directly, bypassing admission."""

    def _make(**overrides):
        values = {
            "query": "How are ocean temperatures changing?",
            "user_id": "user-1",
            "username": "alice",
            "status": "running",
            "progress": 0,
            "current_stage": "Initializing research pipeline...",
            "stages": initial_stages(),
            "stars": 0,
            "created_at": utcnow(),
            "updated_at": utcnow(),
        }
        values.update(overrides)
        record = ResearchRequest(**values)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


@pytest.fixture
def local_noon():
    """Today at 12:00 server-local time, far from either day boundary."""
    return dt.datetime.now().astimezone().replace(hour=12, minute=0, second=0, microsecond=0)

