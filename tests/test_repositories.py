"""Tests for SQLModel repositories on in-memory SQLite."""

from datetime import timedelta

import pytest
from conftest import NOW
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from rating_engine.core.errors import UserNotFoundError
from rating_engine.models import (
    JobRecord,
    MessageRecord,
    RatingStats,
    ReviewRecord,
    SkillRecord,
    UserRecord,
)
from rating_engine.services.storage import (
    RatingHistoryRepository,
    ReviewRepository,
    UserRepository,
)


def _seed(engine, *records):
    with Session(engine) as session:
        session.add_all(records)
        session.commit()


def _user(user_id, **kwargs):
    kwargs.setdefault("created_at", NOW - timedelta(days=200))
    kwargs.setdefault("updated_at", NOW - timedelta(days=100))
    return UserRecord(id=user_id, name=f"user-{user_id}", **kwargs)


def _review(review_id, reviewee_id, rating, reviewer_id=9, days_ago=0, **kwargs):
    return ReviewRecord(
        id=review_id,
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        rating=rating,
        created_at=NOW - timedelta(days=days_ago),
        **kwargs,
    )


class TestReviewRepository:
    """Tests for review queries."""

    @pytest.fixture
    def reviews(self, db_engine):
        _seed(
            db_engine,
            _user(1),
            _user(2),
            _user(9),
            JobRecord(id=1, user_id=1, status="completed"),
            JobRecord(id=2, user_id=1, status="cancelled"),
            _review(1, 1, 5, days_ago=3, job_id=1),
            _review(2, 1, 4, days_ago=1, job_id=2),
            _review(3, 1, 1, days_ago=2, is_public=False),
            _review(4, 1, 1, days_ago=0, is_flagged=True),
            _review(5, 2, 3, reviewer_id=1),
        )
        return ReviewRepository(db_engine)

    def test_eligible_for_reviewee(self, reviews):
        """Test only public, unflagged reviews are returned, newest first."""
        found = reviews.find_eligible_reviews_for_reviewee(1)
        assert [r.id for r in found] == [2, 1]

    def test_job_status_and_timezone(self, reviews):
        """Test job status is joined and timestamps come back in UTC."""
        found = {r.id: r for r in reviews.find_eligible_reviews_for_reviewee(1)}

        assert found[1].job_completed
        assert found[2].job_status == "cancelled"
        assert found[1].created_at == NOW - timedelta(days=3)

    def test_eligible_by_reviewer(self, reviews):
        """Test reviews written by a user."""
        assert [r.id for r in reviews.find_eligible_reviews_by_reviewer(1)] == [5]
        assert [r.id for r in reviews.find_eligible_reviews_by_reviewer(9)] == [2, 1]

    def test_qualified_reviewees_count_public_reviews(self, reviews):
        """Test qualification counts public reviews, flagged included."""
        assert reviews.find_qualified_reviewees(3) == [1]
        assert reviews.find_qualified_reviewees(4) == []
        assert reviews.find_qualified_reviewees(1) == [1, 2]

    def test_qualified_reviewees_in_category(self, db_engine, reviews):
        """Test category filter uses skills and does not inflate counts."""
        _seed(
            db_engine,
            SkillRecord(user_id=2, category_id=7),
            SkillRecord(user_id=2, category_id=7, is_active=False),
            SkillRecord(user_id=1, category_id=8),
        )
        assert reviews.find_qualified_reviewees(1, category_id=7) == [2]
        assert reviews.find_qualified_reviewees(2, category_id=7) == []

    def test_has_received_reviews(self, reviews):
        """Test reviewee check."""
        assert reviews.has_received_reviews(1)
        assert not reviews.has_received_reviews(9)

    def test_get_review(self, reviews):
        """Test single review lookup ignores visibility."""
        review = reviews.get_review(3)
        assert review is not None
        assert review.is_public is False
        assert reviews.get_review(404) is None

    def test_rating_out_of_range_rejected(self, db_engine):
        """Test the table rejects ratings outside 1-5."""
        _seed(db_engine, _user(1), _user(9))
        with pytest.raises(IntegrityError):
            _seed(db_engine, _review(1, 1, 6))


class TestUserRepository:
    """Tests for user activity and cached summaries."""

    @pytest.fixture
    def users(self, db_engine, clock):
        return UserRepository(db_engine, clock=clock)

    def test_last_activity_is_latest_source(self, db_engine, users):
        """Test last activity takes the newest of profile, jobs, skills and messages."""
        _seed(
            db_engine,
            _user(1, updated_at=NOW - timedelta(days=50)),
            JobRecord(user_id=1, updated_at=NOW - timedelta(days=40)),
            SkillRecord(user_id=1, category_id=3, updated_at=NOW - timedelta(days=30)),
            MessageRecord(sender_id=1, created_at=NOW - timedelta(days=5)),
            MessageRecord(sender_id=2, created_at=NOW),
        )
        assert users.get_last_activity_timestamp(1) == NOW - timedelta(days=5)

    def test_last_activity_unknown_user(self, users):
        """Test unknown users have no activity."""
        assert users.get_last_activity_timestamp(404) is None

    def test_account_created_at(self, db_engine, users):
        """Test account creation time is returned in UTC."""
        _seed(db_engine, _user(1))
        assert users.get_account_created_at(1) == NOW - timedelta(days=200)
        assert users.get_account_created_at(404) is None

    def test_update_rating_cache(self, db_engine, users):
        """Test summary columns and eligibility are stored."""
        _seed(db_engine, _user(1), _user(2))
        stats = RatingStats(
            user_id=1,
            total_reviews=3,
            simple_average=4.33,
            weighted_average=4.41,
            quality_score=120.5,
        )

        user = users.update_rating_cache(1, stats)

        assert user.cached_weighted_rating == 4.41
        assert user.cached_average_rating == 4.33
        assert user.cached_quality_score == 120.5
        assert user.is_rating_eligible is True

        few = users.update_rating_cache(2, RatingStats(user_id=2, total_reviews=2))
        assert few.is_rating_eligible is False

    def test_update_rating_cache_unknown_user(self, users):
        """Test updating a missing user raises."""
        with pytest.raises(UserNotFoundError):
            users.update_rating_cache(404, RatingStats(user_id=404))

    def test_staleness(self, db_engine, users, clock):
        """Test cache is stale when missing or older than the max age."""
        _seed(db_engine, _user(1))
        assert users.is_rating_cache_stale(1)

        users.update_rating_cache(1, RatingStats(user_id=1))
        assert not users.is_rating_cache_stale(1)

        clock.advance(minutes=61)
        assert users.is_rating_cache_stale(1)
        assert not users.is_rating_cache_stale(1, max_age_minutes=120)

    def test_staleness_unknown_user(self, users):
        """Test staleness check of a missing user raises."""
        with pytest.raises(UserNotFoundError):
            users.is_rating_cache_stale(404)

    def test_iter_user_ids_in_chunks(self, db_engine, users):
        """Test ids come in ascending chunks."""
        _seed(db_engine, *[_user(i) for i in range(1, 8)])
        assert list(users.iter_user_ids(chunk_size=3)) == [[1, 2, 3], [4, 5, 6], [7]]
        assert users.count_users() == 7

    def test_iter_stale_user_ids(self, db_engine, users):
        """Test only users with missing or old summaries are yielded."""
        _seed(
            db_engine,
            _user(1),
            _user(2, rating_cache_updated_at=NOW - timedelta(minutes=10)),
            _user(3, rating_cache_updated_at=NOW - timedelta(hours=3)),
        )
        assert list(users.iter_user_ids(stale_after_minutes=60)) == [[1, 3]]
        assert users.count_users(stale_after_minutes=60) == 2

    def test_top_rated(self, db_engine, users):
        """Test leaderboard ordering, eligibility and category filter."""
        _seed(
            db_engine,
            _user(1, is_rating_eligible=True, cached_total_reviews=5, cached_quality_score=90.0),
            _user(2, is_rating_eligible=True, cached_total_reviews=3, cached_quality_score=130.0),
            _user(3, is_rating_eligible=True, cached_total_reviews=4, cached_quality_score=90.0),
            _user(4, is_rating_eligible=False, cached_total_reviews=1, cached_quality_score=150.0),
            SkillRecord(user_id=3, category_id=7),
            SkillRecord(user_id=2, category_id=7, is_active=False),
        )

        assert [u.id for u in users.top_rated()] == [2, 1, 3]
        assert [u.id for u in users.top_rated(limit=1)] == [2]
        assert [u.id for u in users.top_rated(min_reviews=4)] == [1, 3]
        assert [u.id for u in users.top_rated(category_id=7)] == [3]


class TestRatingHistoryRepository:
    """Tests for rating history persistence."""

    def test_create_and_query(self, db_engine, clock):
        """Test snapshots are stored and returned newest first."""
        _seed(db_engine, _user(1))
        history = RatingHistoryRepository(db_engine, clock=clock)

        first = history.create_from_stats(1, RatingStats(user_id=1, weighted_average=4.0))
        clock.advance(hours=1)
        second = history.create_from_stats(
            1, RatingStats(user_id=1, weighted_average=4.5), trigger="new_review"
        )

        assert first.calculation_trigger == "manual"
        assert second.rating_distribution["5"] == {"count": 0, "percentage": 0.0}
        assert second.trend_data["direction"] == "stable"
        assert [e.id for e in history.recent(1)] == [second.id, first.id]
        assert history.latest(1).weighted_average == 4.5
        assert history.latest(2) is None

    def test_since_filters_time_and_category(self, db_engine, clock):
        """Test entries from a start time on, oldest first, optionally by category."""
        _seed(db_engine, _user(1), _user(2), SkillRecord(user_id=2, category_id=7))
        history = RatingHistoryRepository(db_engine, clock=clock)

        history.create_from_stats(1, RatingStats(user_id=1, weighted_average=3.0))
        clock.advance(days=10)
        start = clock()
        recent_one = history.create_from_stats(1, RatingStats(user_id=1, weighted_average=4.0))
        clock.advance(hours=1)
        recent_two = history.create_from_stats(2, RatingStats(user_id=2, weighted_average=4.5))

        assert [e.id for e in history.since(start)] == [recent_one.id, recent_two.id]
        assert [e.id for e in history.since(start, category_id=7)] == [recent_two.id]
        assert history.since(start, category_id=8) == []
