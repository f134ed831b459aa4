"""Shared fixtures: fixed clock, in-memory stores and a SQLite engine."""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import pytest

from rating_engine.core.errors import CacheUnavailableError
from rating_engine.models import Review
from rating_engine.ranking import select_eligible
from rating_engine.services.cache import InMemoryCache, RatingCache
from rating_engine.services.rating_service import RatingService
from rating_engine.services.storage import create_db_engine

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_review(
    review_id: int,
    rating: int,
    reviewee_id: int = 1,
    reviewer_id: int = 100,
    days_ago: float = 0,
    **kwargs,
) -> Review:
    return Review(
        id=review_id,
        rating=rating,
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        created_at=NOW - timedelta(days=days_ago),
        **kwargs,
    )


class StubReviewStore:
    """ReviewStore over a plain list of reviews."""

    def __init__(self, reviews: Iterable[Review] = (), skills: dict[int, set[int]] | None = None):
        self.reviews = list(reviews)
        self.skills = skills or {}
        self.calls: Counter[str] = Counter()

    def find_eligible_reviews_for_reviewee(self, user_id: int) -> list[Review]:
        self.calls["for_reviewee"] += 1
        return select_eligible(r for r in self.reviews if r.reviewee_id == user_id)

    def find_eligible_reviews_by_reviewer(self, user_id: int) -> list[Review]:
        self.calls["by_reviewer"] += 1
        return select_eligible(r for r in self.reviews if r.reviewer_id == user_id)

    def find_qualified_reviewees(self, min_reviews: int, category_id: int | None = None):
        self.calls["qualified"] += 1
        counts = Counter(r.reviewee_id for r in self.reviews if r.is_public)
        return sorted(
            user_id
            for user_id, count in counts.items()
            if count >= min_reviews
            and (category_id is None or category_id in self.skills.get(user_id, set()))
        )


class StubUserStore:
    """UserStore over dicts of activity and account creation times."""

    def __init__(self, activity=None, created=None):
        self.activity: dict[int, datetime] = activity or {}
        self.created: dict[int, datetime] = created or {}

    def get_last_activity_timestamp(self, user_id: int) -> datetime | None:
        return self.activity.get(user_id)

    def get_account_created_at(self, user_id: int) -> datetime | None:
        return self.created.get(user_id)


class BrokenCacheStore:
    """Cache backend that fails every operation."""

    def get(self, key):
        raise CacheUnavailableError("get", key, "connection refused")

    def put(self, key, value, ttl_minutes):
        raise CacheUnavailableError("put", key, "connection refused")

    def forget(self, key):
        raise CacheUnavailableError("forget", key, "connection refused")


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def review_store():
    return StubReviewStore()


@pytest.fixture
def user_store():
    return StubUserStore(activity={1: NOW})


@pytest.fixture
def cache_store(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def service(review_store, user_store, cache_store, clock):
    return RatingService(review_store, user_store, RatingCache(cache_store), clock=clock)


@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite://")
    yield engine
    engine.dispose()
