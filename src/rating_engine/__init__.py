"""Rating Engine.

Credibility-, recency- and completion-weighted rating statistics, quality
scores and rankings for marketplace users, with a best-effort cache.
"""

from rating_engine.engine import RatingEngine
from rating_engine.models import RankingResult, RatingStats, ReviewerCredibility
from rating_engine.services.rating_service import RatingService

__version__ = "0.1.0"
__all__ = [
    "RankingResult",
    "RatingEngine",
    "RatingService",
    "RatingStats",
    "ReviewerCredibility",
    "__version__",
]
