"""
Affinity estimation: turns a user's behavioral events into per-category
interest strengths, and blends in declared onboarding interests for users
with little history.
"""
import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from django.db.models import Count
from django.utils import timezone

from moments.models import Moment
from recommendations.constants import (
    AFFINITY_EVENT_TYPES,
    AFFINITY_HALF_LIFE_DAYS,
    AFFINITY_WINDOW_DAYS,
    COLD_START_EVENT_THRESHOLD,
    DECLARED_WEIGHT_DIVISOR,
    DEFAULT_SAVE_RATE,
    EVENT_BASE_WEIGHTS,
)
from recommendations.models import EventType, TargetType, UserEvent
from user.models import UserProfile

logger = logging.getLogger(__name__)


class EventStoreReader:
    """Read-only access to the behavioral event log"""

    def recent_moment_events(self, user: UserProfile, since: datetime) -> List[UserEvent]:
        """MOMENT-targeted VIEW/SAVE/LIKE events created at or after `since`"""
        return list(
            UserEvent.objects.filter(
                user=user,
                target_type=TargetType.MOMENT,
                event_type__in=AFFINITY_EVENT_TYPES,
                created_at__gte=since,
            ).exclude(target_id__isnull=True).order_by('created_at', 'id')
        )

    def total_event_count(self, user: UserProfile) -> int:
        return UserEvent.objects.filter(user=user).count()

    def global_save_rate(self, user: UserProfile) -> float:
        """
        Lifetime ratio of moment saves to moment views.
        Falls back to DEFAULT_SAVE_RATE for users with no recorded views.
        """
        counts = dict(
            UserEvent.objects.filter(
                user=user,
                target_type=TargetType.MOMENT,
                event_type__in=[EventType.VIEW, EventType.SAVE],
            ).order_by().values_list('event_type').annotate(total=Count('id'))
        )
        views = counts.get(EventType.VIEW, 0)
        saves = counts.get(EventType.SAVE, 0)
        if views == 0:
            return DEFAULT_SAVE_RATE
        return saves / views

    def moment_categories(self, moment_ids: Iterable[str]) -> Dict[str, str]:
        """Place category of each moment that still exists and has a place"""
        rows = Moment.objects.filter(
            id__in=[key for key in map(normalize_target_id, moment_ids) if key],
            place__isnull=False,
        ).values_list('id', 'place__category')
        return {str(moment_id): category for moment_id, category in rows if category}


class AffinityEstimator:
    """
    Derives {place category: affinity} from recent behavior.
    Each event contributes base(event_type) * exp(-age / half_life); the sums
    are divided by the largest one (floored at 1), so the user's strongest
    category scores 1.0 whenever its accumulated weight reaches 1.
    """

    def __init__(self, reader: Optional[EventStoreReader] = None):
        self.reader = reader or EventStoreReader()

    def estimate(self, user: UserProfile, now: Optional[datetime] = None) -> Dict[str, float]:
        now = now or timezone.now()
        since = now - timedelta(days=AFFINITY_WINDOW_DAYS)

        events = self.reader.recent_moment_events(user, since)
        if not events:
            return {}

        categories = self.reader.moment_categories({event.target_id for event in events})

        totals: Dict[str, float] = {}
        for event in events:
            category = categories.get(normalize_target_id(event.target_id))
            if not category:
                continue
            age = now - event.created_at
            totals[category] = totals.get(category, 0.0) + self.event_weight(event.event_type, age)

        if not totals:
            return {}

        max_total = max(max(totals.values()), 1.0)
        return {category: total / max_total for category, total in totals.items()}

    @staticmethod
    def event_weight(event_type: str, age: timedelta) -> float:
        """Base weight of the event type decayed by age (half-life ~15 days)"""
        base = EVENT_BASE_WEIGHTS.get(event_type, 1.0)
        half_life_seconds = AFFINITY_HALF_LIFE_DAYS * 86400
        return base * math.exp(-age.total_seconds() / half_life_seconds)


def merge_declared_interests(
    behavioral: Mapping[str, float],
    declared: Mapping[str, int],
    event_count: int,
) -> Dict[str, float]:
    """
    Cold-start blend of behavioral and declared affinities.

    Below COLD_START_EVENT_THRESHOLD events, each declared category absent from
    the behavioral map is added as weight / 5. Values above 1.0 are kept.
    Behavioral values always take precedence. Inputs are not modified.
    """
    merged = dict(behavioral)
    if event_count >= COLD_START_EVENT_THRESHOLD:
        return merged

    for category, weight in declared.items():
        if category not in merged:
            merged[category] = weight / DECLARED_WEIGHT_DIVISOR
    return merged


def normalize_target_id(value) -> Optional[str]:
    """Canonical string form of an event target id, or None if it is not a UUID"""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        logger.debug("Ignoring non-UUID event target %r", value)
        return None
