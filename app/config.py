from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    DATABASE_URL: str = "sqlite:///./research.db"

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Pricing per 1K tokens for the completion model
    PROMPT_PRICE_PER_1K: float = 0.00015
    COMPLETION_PRICE_PER_1K: float = 0.0006

    # Daily limit = base + creator_fees * scaling_factor
    DAILY_REQUEST_BASE_LIMIT: int = 5
    CREATOR_FEES: float = 0.0
    CREATOR_FEE_SCALING_FACTOR: float = 0.0

    # Seconds between simulated progress checkpoints
    PROGRESS_STEP_DELAY: float = 0.2

    # Reconciliation of stuck "running" records
    STALE_RUNNING_MINUTES: int = 15
    RECONCILE_INTERVAL_MINUTES: int = 5
    SCHEDULER_ENABLED: bool = True

    # Worker threads for detached pipeline runs, separate from request handling
    PIPELINE_WORKERS: int = 8

    FEED_WINDOW: int = 50

    APP_TITLE: str = "Research Feed"
    DEBUG: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
