"""Rating service: cached rating stats, reviewer credibility and rankings."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from rating_engine.core.clock import utc_now
from rating_engine.core.config import EngineConfig
from rating_engine.models import RankingResult, RatingStats, ReviewerCredibility
from rating_engine.ranking import (
    compute_rating_stats,
    compute_reviewer_credibility,
    find_position,
    percentile,
    select_eligible,
    sort_by_quality,
)
from rating_engine.services.cache import RatingCache
from rating_engine.services.storage import ReviewStore, UserStore

logger = structlog.get_logger()


class RatingService:
    """Computes and caches user rating statistics.

    Review data is read through the injected stores; results are memoized in
    the rating cache. The engine never observes review changes itself: callers
    must invoke ``invalidate_user_cache`` whenever a review affecting a user is
    created, updated, flagged or deleted (see ``ReviewChangeHandler``).
    """

    def __init__(
        self,
        reviews: ReviewStore,
        users: UserStore,
        cache: RatingCache,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize rating service.

        Args:
            reviews: Source of review records.
            users: Source of account and activity data.
            cache: Cache for stats, credibility and rankings.
            config: Engine configuration.
            clock: Source of the current time.
        """
        self.reviews = reviews
        self.users = users
        self.cache = cache
        self.config = config or EngineConfig()
        self._clock = clock

    # ==================== Rating stats ====================

    def calculate_user_rating_stats(self, user_id: int, use_cache: bool = True) -> RatingStats:
        """Get rating statistics for a user.

        Args:
            user_id: The reviewee.
            use_cache: Return a cached value when present. Fresh results are
                written to the cache either way.

        Returns:
            RatingStats, the empty shape for users without eligible reviews.
        """
        if use_cache:
            cached = self.cache.get_stats(user_id)
            if cached is not None:
                return cached

        stats = self._compute_rating_stats(user_id)
        self.cache.put_stats(stats)
        return stats

    def invalidate_user_cache(self, user_id: int) -> None:
        """Evict the user's cached stats and reviewer credibility."""
        self.cache.forget_user(user_id)
        logger.info("rating_cache_invalidated", user_id=user_id)

    def bulk_calculate_ratings(self, user_ids: Iterable[int]) -> dict[int, RatingStats]:
        """Recompute stats for many users, refreshing their cache entries.

        Args:
            user_ids: Users to compute.

        Returns:
            User id -> stats, in input order.
        """
        results: dict[int, RatingStats] = {}
        for user_id in user_ids:
            results[user_id] = self.calculate_user_rating_stats(user_id, use_cache=False)

        logger.info("bulk_ratings_calculated", count=len(results))
        return results

    def _compute_rating_stats(self, user_id: int) -> RatingStats:
        now = self._clock()
        reviews = select_eligible(self.reviews.find_eligible_reviews_for_reviewee(user_id))

        if not reviews:
            logger.debug("no_eligible_reviews", user_id=user_id)
            return compute_rating_stats(user_id, [], {}, None, now)

        credibilities = {
            reviewer_id: self.get_reviewer_credibility(reviewer_id)
            for reviewer_id in {r.reviewer_id for r in reviews}
        }
        last_activity = self.users.get_last_activity_timestamp(user_id)

        stats = compute_rating_stats(user_id, reviews, credibilities, last_activity, now)
        logger.debug(
            "rating_stats_computed",
            user_id=user_id,
            total_reviews=stats.total_reviews,
            weighted_average=stats.weighted_average,
            quality_score=stats.quality_score,
        )
        return stats

    # ==================== Reviewer credibility ====================

    def get_reviewer_credibility(self, reviewer_id: int) -> ReviewerCredibility:
        """Get a reviewer's credibility, cached per reviewer.

        Args:
            reviewer_id: The reviewer.

        Returns:
            ReviewerCredibility, defaults (3.0 average, 0 reviews) without data.
        """
        cached = self.cache.get_credibility(reviewer_id)
        if cached is not None:
            return cached

        credibility = compute_reviewer_credibility(
            received=self.reviews.find_eligible_reviews_for_reviewee(reviewer_id),
            given=self.reviews.find_eligible_reviews_by_reviewer(reviewer_id),
            account_created_at=self.users.get_account_created_at(reviewer_id),
            now=self._clock(),
        )
        self.cache.put_credibility(reviewer_id, credibility)
        return credibility

    # ==================== Ranking ====================

    def get_user_ranking(self, user_id: int, category_id: int | None = None) -> RankingResult:
        """Rank a user among qualified peers by quality score.

        Qualified users have at least ``ranking.min_reviews`` public reviews
        (and a skill in ``category_id`` when given). Equal scores are ordered
        by user id.

        Args:
            user_id: The user to locate.
            category_id: Optional category to rank within.

        Returns:
            RankingResult; position and percentile are None for users outside
            the qualified set.
        """
        cached = self.cache.get_ranking(user_id, category_id)
        if cached is not None:
            return cached

        user_stats = self.calculate_user_rating_stats(user_id)
        qualified = self.reviews.find_qualified_reviewees(
            self.config.ranking.min_reviews, category_id
        )
        scores = {
            qualified_id: self.calculate_user_rating_stats(qualified_id).quality_score
            for qualified_id in qualified
        }

        leaderboard = sort_by_quality(scores)
        position = find_position(leaderboard, user_id)
        total = len(leaderboard)

        ranking = RankingResult(
            user_id=user_id,
            position=position,
            total_users=total,
            percentile=percentile(position, total),
            quality_score=user_stats.quality_score,
            category_id=category_id,
        )
        self.cache.put_ranking(ranking)
        logger.debug(
            "ranking_computed",
            user_id=user_id,
            category_id=category_id,
            position=position,
            total_users=total,
        )
        return ranking
