"""
ScoringService: The core algorithmic engine for the recommendation system.
Ranks moments with a linear weighted combination of independent signals.
"""
import logging
import math
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Set

from django.utils import timezone

from moments.models import Moment
from recommendations.affinity_service import (
    AffinityEstimator,
    EventStoreReader,
    merge_declared_interests,
)
from recommendations.constants import (
    BEHAVIORAL_MULTIPLIER,
    DISCOVERY_SCORE,
    FOLLOWED_AUTHOR_SCORE,
    FRESHNESS_DECAY_DAYS,
    NEW_POST_BOOST,
    NEW_POST_DAYS,
    QUALITY_CONFIDENCE_SAVES,
    SIGNAL_WEIGHTS,
    interest_for_category,
)
from recommendations.dtos import CandidateMoment, ScoredMoment
from user.models import UserProfile

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def fetch_candidates(user: UserProfile) -> List[CandidateMoment]:
    """
    Every rated moment not authored by the user.
    No geographic, recency or category pre-filtering; ordering is fixed so
    equal scores keep a reproducible order.
    """
    rows = (
        Moment.objects.rated()
        .exclude(author=user)
        .with_save_count()
        .order_by('-created_at', 'id')
        .values(
            'id', 'author_id', 'composite_score', 'created_at',
            'place__category', 'save_count', 'like_count', 'view_count',
        )
    )
    return [
        CandidateMoment(
            moment_id=row['id'],
            author_id=row['author_id'],
            composite_score=row['composite_score'],
            created_at=row['created_at'],
            category=row['place__category'],
            save_count=row['save_count'],
            like_count=row['like_count'],
            view_count=row['view_count'],
        )
        for row in rows
    ]


class ScoringService:
    """
    Algorithm Service: scores every candidate moment for one user on
    1. interest   - affinity for the moment's category
    2. social     - the author is followed
    3. behavioral - interest scaled by the user's own save rate
    4. quality    - composite score discounted until other users save it
    5. freshness  - exponential age decay with a new-post bump
    6. discovery  - the category is new to the user
    """

    def __init__(
        self,
        estimator: Optional[AffinityEstimator] = None,
        reader: Optional[EventStoreReader] = None,
        weights: Optional[Mapping[str, float]] = None,
    ):
        self.reader = reader or EventStoreReader()
        self.estimator = estimator or AffinityEstimator(self.reader)
        self.weights = dict(weights or SIGNAL_WEIGHTS)

    def generate_recommendations(self, user: UserProfile, now: Optional[datetime] = None) -> List[ScoredMoment]:
        """
        Orchestrator method that ranks all candidates for a user.

        Steps:
        1. Estimate behavioral affinities and blend declared interests
        2. Load the following set and the user's save rate
        3. Fetch candidates
        4. Score and sort them (highest first)

        Args:
            user: UserProfile instance
            now: Reference time for every decay; defaults to the current time

        Returns:
            List[ScoredMoment]: Every candidate, best first
        """
        now = now or timezone.now()

        behavioral = self.estimator.estimate(user, now=now)
        affinities = merge_declared_interests(
            behavioral,
            user.declared_interests(),
            self.reader.total_event_count(user),
        )

        candidates = fetch_candidates(user)
        if not candidates:
            return []

        logger.debug(
            "Scoring %d candidates for user %s (%d affinity categories)",
            len(candidates), user.id, len(affinities),
        )
        return self.score_candidates(
            candidates,
            affinities=affinities,
            following_ids=user.following_ids(),
            global_save_rate=self.reader.global_save_rate(user),
            now=now,
        )

    def score_candidates(
        self,
        candidates: Iterable[CandidateMoment],
        affinities: Mapping[str, float],
        following_ids: Set,
        global_save_rate: float,
        now: datetime,
    ) -> List[ScoredMoment]:
        """Pure scoring pass; the sort is stable so ties keep candidate order"""
        scored = [
            self.score_candidate(candidate, affinities, following_ids, global_save_rate, now)
            for candidate in candidates
        ]
        scored.sort(key=lambda item: item.score, reverse=True)
        return scored

    def score_candidate(
        self,
        candidate: CandidateMoment,
        affinities: Mapping[str, float],
        following_ids: Set,
        global_save_rate: float,
        now: datetime,
    ) -> ScoredMoment:
        interest = self.compute_interest(candidate.category, affinities)
        factors = {
            'interest': interest,
            'social': FOLLOWED_AUTHOR_SCORE if candidate.author_id in following_ids else 0.0,
            'behavioral': self.compute_behavioral(interest, global_save_rate),
            'quality': self.compute_quality(candidate.composite_score, candidate.save_count),
            'freshness': self.compute_freshness(candidate.created_at, now),
            'discovery': self.compute_discovery(candidate.category, affinities),
        }
        return ScoredMoment(
            moment_id=candidate.moment_id,
            score=self.combine(factors),
            factors=factors,
        )

    def combine(self, factors: Mapping[str, float]) -> float:
        """
        Weighted sum of the signals.

        Formula:
        Score = 3.0*interest + 2.0*social + 3.0*behavioral
              + 1.5*quality + 1.0*freshness + 0.5*discovery
        """
        return sum(self.weights[name] * factors[name] for name in self.weights)

    @staticmethod
    def compute_interest(category: Optional[str], affinities: Mapping[str, float]) -> float:
        """Affinity of the mapped interest category, else of the raw place category"""
        if not category:
            return 0.0
        interest_category = interest_for_category(category)
        if interest_category and interest_category in affinities:
            return float(affinities[interest_category])
        return float(affinities.get(category, 0.0))

    @staticmethod
    def compute_behavioral(interest: float, global_save_rate: float) -> float:
        if interest > 0:
            return interest * global_save_rate * BEHAVIORAL_MULTIPLIER
        return global_save_rate

    @staticmethod
    def compute_quality(composite_score: Optional[float], save_count: int) -> float:
        """
        Composite score on a 0-1 scale, weighted by confidence.
        The rating itself counts as one signal and saves stand in for the
        rest, so confidence = min(max(1, saves) / 5, 1).
        """
        if composite_score is None:
            return 0.0
        rating_signals = max(1, save_count)
        confidence = min(rating_signals / QUALITY_CONFIDENCE_SAVES, 1.0)
        return (composite_score / 10) * confidence

    @staticmethod
    def compute_freshness(created_at: datetime, now: datetime) -> float:
        """
        Formula: exp(-age_days / 14), times 1.5 while the post is under 2 days old.
        At 14 days the score is ~0.37.
        """
        age_days = (now - created_at).total_seconds() / SECONDS_PER_DAY
        decay = math.exp(-age_days / FRESHNESS_DECAY_DAYS)
        boost = NEW_POST_BOOST if age_days < NEW_POST_DAYS else 1.0
        return decay * boost

    @staticmethod
    def compute_discovery(category: Optional[str], affinities: Mapping[str, float]) -> float:
        """Rewards a place category that never appeared in the affinity map"""
        if category and category not in affinities:
            return DISCOVERY_SCORE
        return 0.0
