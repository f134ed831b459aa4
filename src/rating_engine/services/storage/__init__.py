from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from .history_repository import RatingHistoryRepository
from .repository import ReviewStore, SessionRepository, UserStore
from .review_repository import ReviewRepository
from .user_repository import UserRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


def create_db_engine(database_url: str) -> Engine:
    """Create an engine and make sure every table exists.

    In-memory SQLite shares one connection so all sessions see the same data.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url)
    SQLModel.metadata.create_all(engine)
    return engine


__all__ = [
    "RatingHistoryRepository",
    "ReviewRepository",
    "ReviewStore",
    "SessionRepository",
    "UserRepository",
    "UserStore",
    "create_db_engine",
]
