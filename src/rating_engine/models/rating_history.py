from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class RatingHistoryRecord(SQLModel, table=True):
    """A snapshot of a user's rating stats at one point in time."""

    __tablename__ = "rating_history"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    simple_average: float = 0.0
    weighted_average: float = 0.0
    time_weighted_average: float = 0.0
    decayed_rating: float = 0.0
    quality_score: float = 0.0
    total_reviews: int = 0
    rating_distribution: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    trend_data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    calculation_trigger: str | None = None  # "new_review", "scheduled", "manual", ...
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
