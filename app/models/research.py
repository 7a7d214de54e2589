import datetime as dt
import uuid

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)

STAGE_NAMES = ("Analyzing Query", "Generating Research", "Finalizing Results")


def new_research_id() -> str:
    return uuid.uuid4().hex


def initial_stages() -> list[dict]:
    return [{"name": name, "status": "pending", "timestamp": None} for name in STAGE_NAMES]


class ResearchRequest(Base):
    __tablename__ = "research_requests"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_research_id)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    username: Mapped[str] = mapped_column(String(256), default="Unknown")

    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    # NULL means "no tags" (shown as N/A), never stored as an empty list
    tags: Mapped[list[str] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    cost: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    status: Mapped[str] = mapped_column(String(32), default=STATUS_RUNNING, index=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    current_stage: Mapped[str] = mapped_column(
        Text, default="Initializing research pipeline..."
    )
    stages: Mapped[list[dict]] = mapped_column(JSON, default=initial_stages)

    stars: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    star_rows: Mapped[list["ResearchStar"]] = relationship(
        back_populates="research", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_research_user_created", "user_id", "created_at"),)

    @property
    def starred_by(self) -> list[str]:
        return [row.user_id for row in self.star_rows]

    def __repr__(self) -> str:
        return f"<ResearchRequest {self.id}: {self.status} {self.progress}%>"


class ResearchStar(Base):
    __tablename__ = "research_stars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    research_id: Mapped[str] = mapped_column(
        ForeignKey("research_requests.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    research: Mapped["ResearchRequest"] = relationship(back_populates="star_rows")

    __table_args__ = (
        UniqueConstraint("research_id", "user_id", name="uq_research_star"),
    )
