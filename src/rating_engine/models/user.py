"""Marketplace user and activity tables read by the rating engine."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class UserRecord(SQLModel, table=True):
    """A marketplace user with its cached rating summary."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    # Denormalized rating summary, refreshed from RatingStats
    cached_average_rating: float = 0.0
    cached_weighted_rating: float = Field(default=0.0, index=True)
    cached_quality_score: float = Field(default=0.0, index=True)
    cached_total_reviews: int = 0
    rating_cache_updated_at: datetime | None = Field(default=None, index=True)
    is_rating_eligible: bool = False


class JobRecord(SQLModel, table=True):
    """A job posted by a user; completed jobs strengthen their reviews."""

    __tablename__ = "jobs"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    category_id: int | None = Field(default=None, index=True)
    status: str = "open"  # "open", "in_progress", "completed", "cancelled"
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SkillRecord(SQLModel, table=True):
    """A skill a user offers within a category."""

    __tablename__ = "skills"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    category_id: int = Field(index=True)
    is_active: bool = True
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MessageRecord(SQLModel, table=True):
    """A message sent by a user; only its timestamp matters here."""

    __tablename__ = "messages"

    id: int | None = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
