from app.schemas.research import ResearchOut, _CamelModel


class CostPoint(_CamelModel):
    time: str
    cost: float


class TaskPoint(_CamelModel):
    time: str
    count: int


class FeedSummaryOut(_CamelModel):
    total_tasks: int
    api_credits: float
    daily_requests: int
    daily_limit: int
    cost_history: list[CostPoint]
    task_history: list[TaskPoint]
    popular_tags: list[str]


class FeedOut(_CamelModel):
    items: list[ResearchOut]
    summary: FeedSummaryOut
