"""
Legacy inline ranking, computed per request when no cached ranking exists.
Uses declared interests only, so it works for users without any history.
"""
import math
from datetime import datetime
from typing import List, Optional

from django.utils import timezone

from recommendations.constants import (
    LEGACY_ENGAGEMENT_WEIGHT,
    LEGACY_FOLLOW_BONUS,
    LEGACY_FRESHNESS_DECAY_DAYS,
    LEGACY_INTEREST_WEIGHT,
    interest_for_category,
)
from recommendations.scoring_service import SECONDS_PER_DAY, fetch_candidates
from user.models import UserProfile


class LegacyRanker:
    """
    Score = 3 * declared weight of the mapped interest
          + 2 if the author is followed
          + 2 * engagement (likes + views, relative to the busiest candidate)
          + exp(-age_days / 10)
          + composite_score / 10
    """

    def rank(self, user: UserProfile, now: Optional[datetime] = None) -> List:
        """Ordered ids of every candidate moment, best first"""
        now = now or timezone.now()
        candidates = fetch_candidates(user)
        if not candidates:
            return []

        interests = user.declared_interests()
        following_ids = user.following_ids()
        max_engagement = max(max(c.like_count + c.view_count for c in candidates), 1)

        scored = []
        for candidate in candidates:
            score = 0.0

            interest_category = interest_for_category(candidate.category)
            if interest_category and interest_category in interests:
                score += LEGACY_INTEREST_WEIGHT * (interests[interest_category] or 1)

            if candidate.author_id in following_ids:
                score += LEGACY_FOLLOW_BONUS

            engagement = (candidate.like_count + candidate.view_count) / max_engagement
            score += engagement * LEGACY_ENGAGEMENT_WEIGHT

            age_days = (now - candidate.created_at).total_seconds() / SECONDS_PER_DAY
            score += math.exp(-age_days / LEGACY_FRESHNESS_DECAY_DAYS)

            score += (candidate.composite_score or 0) / 10

            scored.append((score, candidate.moment_id))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [moment_id for _, moment_id in scored]
