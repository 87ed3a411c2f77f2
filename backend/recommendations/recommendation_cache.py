"""
Per-user materialized ranking and the refresh that rebuilds it.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from django.db import transaction
from django.db.models import Count, Window

from recommendations.dtos import ScoredMoment
from recommendations.models import RecommendationScore
from recommendations.scoring_service import ScoringService
from user.models import UserProfile

logger = logging.getLogger(__name__)


class RecommendationCache:
    """
    Storage for cache generations.
    A generation is replaced as one transaction, so readers see either the
    old rows or the new rows, never a mix and never an empty interim.
    """

    def replace(self, user: UserProfile, scored: Sequence[ScoredMoment]) -> int:
        rows = [
            RecommendationScore(
                user=user,
                moment_id=item.moment_id,
                score=item.score,
                rank=position,
                factors=item.factors,
            )
            for position, item in enumerate(scored)
        ]
        with transaction.atomic():
            # Serializes concurrent refreshes of one user; the later one wins
            UserProfile.objects.select_for_update().get(pk=user.pk)
            RecommendationScore.objects.filter(user=user).delete()
            RecommendationScore.objects.bulk_create(rows)
        return len(rows)

    def _ordered(self, user: UserProfile):
        return RecommendationScore.objects.filter(user=user).order_by('-score', 'rank')

    def read_page(self, user: UserProfile, offset: int, limit: int) -> List:
        """Moment ids of one page, best first"""
        return list(self._ordered(user).values_list('moment_id', flat=True)[offset:offset + limit])

    def page_with_total(self, user: UserProfile, offset: int, limit: int) -> Tuple[List, int]:
        """
        One page of moment ids plus the size of the generation it came from.
        Both come from a single query, so a concurrent swap cannot pair a page
        with another generation's total.
        """
        rows = list(
            self._ordered(user)
            .annotate(total=Window(expression=Count('id')))
            .values_list('moment_id', 'total')[offset:offset + limit]
        )
        if rows:
            return [moment_id for moment_id, _ in rows], rows[0][1]
        if offset == 0:
            return [], 0
        return [], self.count(user)

    def ranked_ids(self, user: UserProfile) -> List:
        return list(self._ordered(user).values_list('moment_id', flat=True))

    def entries(self, user: UserProfile):
        return self._ordered(user).select_related('moment')

    def count(self, user: UserProfile) -> int:
        return RecommendationScore.objects.filter(user=user).count()


def refresh_recommendations_for_user(
    user: UserProfile,
    now: Optional[datetime] = None,
    scoring_service: Optional[ScoringService] = None,
    cache: Optional[RecommendationCache] = None,
) -> int:
    """
    Recomputes the user's full ranking and swaps it into the cache.

    An empty ranking leaves the previous generation in place. Errors from
    scoring or persistence propagate; the transaction guarantees the prior
    generation survives them.

    Returns:
        int: Number of rows written (0 when nothing changed)
    """
    scoring_service = scoring_service or ScoringService()
    cache = cache or RecommendationCache()

    scored = scoring_service.generate_recommendations(user, now=now)
    if not scored:
        logger.info("No candidates for user %s; keeping existing recommendations", user.id)
        return 0

    written = cache.replace(user, scored)
    logger.info("Stored %d recommendation scores for user %s", written, user.id)
    return written
