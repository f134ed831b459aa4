"""Tests for review change handling and batch refresh over SQLite."""

from datetime import timedelta

import pytest
from conftest import NOW
from sqlmodel import Session

from rating_engine.core.config import CacheConfig, EngineConfig
from rating_engine.core.errors import UserNotFoundError
from rating_engine.engine import RatingEngine
from rating_engine.models import ReviewRecord, UserRecord
from rating_engine.services.cache import InMemoryCache


@pytest.fixture
def engine(clock):
    rating_engine = RatingEngine(EngineConfig(database_url="sqlite://"), clock=clock)
    yield rating_engine
    rating_engine.close()


def _seed(engine, *records):
    with Session(engine.db_engine) as session:
        session.add_all(records)
        session.commit()


def _review(review_id, reviewee_id, rating, reviewer_id=9, **kwargs):
    return ReviewRecord(
        id=review_id,
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        rating=rating,
        created_at=NOW - timedelta(days=review_id),
        **kwargs,
    )


def _set_review(engine, review_id, **changes):
    with Session(engine.db_engine) as session:
        record = session.get(ReviewRecord, review_id)
        for field, value in changes.items():
            setattr(record, field, value)
        session.add(record)
        session.commit()


@pytest.fixture
def marketplace(engine):
    _seed(
        engine,
        UserRecord(id=1, name="ada", updated_at=NOW),
        UserRecord(id=2, name="bob", updated_at=NOW),
        UserRecord(id=9, name="cy", updated_at=NOW),
        _review(1, 1, 5),
        _review(2, 1, 5),
        _review(3, 1, 4),
    )
    return engine


class TestReviewChangeHandler:
    """Tests for cache maintenance on review events."""

    def test_created_updates_summary_and_history(self, marketplace):
        """Test a new review refreshes the cached summary and records history."""
        engine = marketplace
        engine.service.calculate_user_rating_stats(1)
        _seed(engine, _review(4, 1, 1))

        stats = engine.events.review_created(engine.reviews.get_review(4))

        assert stats is not None
        assert stats.total_reviews == 4
        user = engine.users.get(1)
        assert user.cached_total_reviews == 4
        assert user.is_rating_eligible is True
        assert engine.service.calculate_user_rating_stats(1).total_reviews == 4
        assert engine.history.latest(1).calculation_trigger == "new_review"

    def test_irrelevant_update_ignored(self, marketplace):
        """Test updates of unrelated fields do nothing."""
        engine = marketplace
        review = engine.reviews.get_review(1)

        assert engine.events.review_updated(review, {"updated_at"}) is None
        assert engine.users.get(1).rating_cache_updated_at is None

    def test_flagging_drops_review(self, marketplace):
        """Test flagging a review removes it from the stats."""
        engine = marketplace
        engine.events.review_created(engine.reviews.get_review(1))
        _set_review(engine, 3, is_flagged=True)

        stats = engine.events.review_updated(engine.reviews.get_review(3), {"is_flagged"})

        assert stats.total_reviews == 2
        assert stats.weighted_average == 5.0
        assert engine.users.get(1).is_rating_eligible is False

    def test_small_change_not_recorded(self, marketplace):
        """Test insignificant updates do not add history entries."""
        engine = marketplace
        engine.events.review_created(engine.reviews.get_review(1))
        _seed(engine, _review(20, 1, 4))
        engine.events.review_restored(engine.reviews.get_review(20))

        assert len(engine.history.recent(1)) == 1

    def test_deleted_review(self, marketplace):
        """Test deletion recomputes without the review."""
        engine = marketplace
        review = engine.reviews.get_review(3)
        with Session(engine.db_engine) as session:
            session.delete(session.get(ReviewRecord, 3))
            session.commit()

        stats = engine.events.review_deleted(review)

        assert stats.total_reviews == 2
        assert engine.history.latest(1).calculation_trigger == "review_deleted"

    def test_reviewer_credibility_invalidated(self, marketplace):
        """Test a reviewer who is also a reviewee gets their credibility recomputed."""
        engine = marketplace
        _seed(engine, _review(10, 9, 2, reviewer_id=2))
        before = engine.service.get_reviewer_credibility(9)

        _seed(engine, _review(11, 9, 5, reviewer_id=2), _review(12, 2, 4, reviewer_id=9))
        engine.events.review_created(engine.reviews.get_review(12))

        assert before.average_rating == 2.0
        assert engine.service.get_reviewer_credibility(9).average_rating == 3.5

    def test_reviewer_credibility_fresh_for_new_review(self, marketplace):
        """Test the reviewee is recomputed with the reviewer's new review count."""
        engine = marketplace
        _seed(engine, _review(10, 9, 4, reviewer_id=2))
        engine.service.calculate_user_rating_stats(1)
        assert engine.service.cache.get_credibility(9).review_count == 3

        _seed(engine, _review(13, 1, 5))
        engine.events.review_created(engine.reviews.get_review(13))

        assert engine.service.cache.get_credibility(9).review_count == 4

    def test_missing_reviewee_is_logged_not_raised(self, marketplace):
        """Test failures are swallowed and reported as None."""
        engine = marketplace
        _seed(engine, _review(30, 404, 5))

        assert engine.events.review_created(engine.reviews.get_review(30)) is None


class TestRatingRefresher:
    """Tests for batch refresh of cached summaries."""

    def test_refresh_user(self, marketplace):
        """Test single refresh stores the summary and skips when fresh."""
        engine = marketplace
        stats = engine.refresher.refresh_user(1)

        assert stats.total_reviews == 3
        assert engine.users.get(1).cached_weighted_rating == stats.weighted_average
        assert engine.refresher.refresh_user(1) is None
        assert engine.refresher.refresh_user(1, force=True) is not None

    def test_refresh_unknown_user(self, marketplace):
        """Test refreshing a missing user raises."""
        with pytest.raises(UserNotFoundError):
            marketplace.refresher.refresh_user(404)

    def test_refresh_all_stale(self, marketplace, clock):
        """Test batch refresh visits stale users only unless forced."""
        engine = marketplace
        engine.refresher.refresh_user(1)
        visited = []

        summary = engine.refresher.refresh_all(chunk_size=1, on_user=visited.append)

        assert summary.processed == 2
        assert summary.ok
        assert visited == [2, 9]
        assert engine.refresher.count_pending() == 0
        assert engine.refresher.count_pending(force=True) == 3

        clock.advance(minutes=61)
        assert engine.refresher.refresh_all(with_history=True).processed == 3
        assert engine.history.latest(2).calculation_trigger == "scheduled"

    def test_force_refresh_all(self, marketplace):
        """Test forced refresh includes fresh users."""
        engine = marketplace
        engine.refresher.refresh_all()
        assert engine.refresher.refresh_all().processed == 0
        assert engine.refresher.refresh_all(force=True).processed == 3


class TestEngineCacheFallback:
    """Tests for engine startup with an unusable cache file."""

    def test_blocked_duckdb_path_uses_memory_cache(self, tmp_path, clock):
        """Test the engine starts and computes when the cache file cannot be opened."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        config = EngineConfig(
            database_url="sqlite://",
            cache=CacheConfig(backend="duckdb", path=str(blocker / "cache.duckdb")),
        )
        engine = RatingEngine(config, clock=clock)
        try:
            _seed(engine, UserRecord(id=1, name="ada", updated_at=NOW), _review(1, 1, 5))

            assert isinstance(engine.service.cache.store, InMemoryCache)
            assert engine.service.calculate_user_rating_stats(1).total_reviews == 1
        finally:
            engine.close()
