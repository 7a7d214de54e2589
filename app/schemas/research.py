import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ResearchCreate(_CamelModel):
    # Loosely typed so the handler can tell "missing" from "wrong type"
    query: Any = None
    user_id: str | None = None
    username: str | None = None


class StarToggle(_CamelModel):
    research_id: str | None = None
    user_id: str | None = None


class StageOut(_CamelModel):
    name: str
    status: str
    timestamp: str | None = None


class CostOut(_CamelModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    prompt_cost: float
    completion_cost: float
    total_cost: float


class ResearchOut(_CamelModel):
    id: str
    query: str
    user_id: str
    username: str
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    status: str
    progress: int
    current_stage: str
    stages: list[StageOut]
    cost: CostOut | None = None
    stars: int
    starred_by: list[str]
    created_at: dt.datetime
    updated_at: dt.datetime


class ResearchAccepted(_CamelModel):
    success: bool = True
    id: str
    message: str = "Research started successfully"


class StarResult(_CamelModel):
    success: bool = True
    is_starred: bool
    stars: int


class UserResearchStats(_CamelModel):
    total: int
    running: int
    completed: int
    failed: int
    total_cost: float


class UserResearchOut(_CamelModel):
    items: list[ResearchOut]
    stats: UserResearchStats
