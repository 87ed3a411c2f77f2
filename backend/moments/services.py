"""
Domain service for the moments feed.
Serves recommended, top rated and most viewed listings, and the user's saved
moments. The recommended listing reads the precomputed ranking and degrades
to inline ranking, then to plain quality ordering.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from moments.models import Moment, MomentSave
from recommendations.legacy_ranker import LegacyRanker
from recommendations.recommendation_cache import RecommendationCache
from recommendations.tasks import schedule_refresh
from user.models import UserProfile

logger = logging.getLogger(__name__)


class FeedFilter:
    RECOMMENDED = 'recommended'
    TOP_RATED = 'topRated'
    MOST_VIEWED = 'mostViewed'

    CHOICES = (RECOMMENDED, TOP_RATED, MOST_VIEWED)


class FeedSource:
    CACHE = 'cache'
    LEGACY = 'legacy'
    QUALITY = 'quality'
    TOP_RATED = 'topRated'
    MOST_VIEWED = 'mostViewed'
    SAVED = 'saved'


@dataclass
class FeedPage:
    items: List[Moment]
    total: int
    page: int
    page_size: int
    has_more: bool
    source: str


class MomentFeedService:
    """
    Feed Query Adapter.

    Recommended fallback chain:
    1. cached ranking (RecommendationCache)
    2. inline LegacyRanker when the cache is empty
    3. composite_score descending when either step fails or yields nothing

    Every recommended read schedules a background refresh of the cache.
    """

    def __init__(
        self,
        cache: Optional[RecommendationCache] = None,
        legacy_ranker: Optional[LegacyRanker] = None,
        refresh_scheduler: Optional[Callable] = None,
    ):
        self.cache = cache or RecommendationCache()
        self.legacy_ranker = legacy_ranker or LegacyRanker()
        self.refresh_scheduler = refresh_scheduler or schedule_refresh

    def get_feed(
        self,
        profile: UserProfile,
        feed_filter: str = FeedFilter.RECOMMENDED,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        country: Optional[str] = None,
        saved: bool = False,
    ) -> FeedPage:
        if saved:
            return self._saved_feed(profile, page, page_size, search, country)

        if feed_filter == FeedFilter.TOP_RATED:
            queryset = self.eligible_moments(search, country).order_by('-composite_score', '-created_at', 'id')
            return self._page_from_queryset(queryset, page, page_size, FeedSource.TOP_RATED)

        if feed_filter == FeedFilter.MOST_VIEWED:
            queryset = self.eligible_moments(search, country).order_by('-view_count', '-created_at', 'id')
            return self._page_from_queryset(queryset, page, page_size, FeedSource.MOST_VIEWED)

        if feed_filter != FeedFilter.RECOMMENDED:
            raise ValueError(f"Unknown feed filter: {feed_filter}")

        try:
            return self._recommended_feed(profile, page, page_size, search, country)
        finally:
            self.refresh_scheduler(profile.id)

    def eligible_moments(self, search: Optional[str] = None, country: Optional[str] = None):
        """Rated moments matching the optional text and country filters"""
        queryset = Moment.objects.rated()
        if search:
            queryset = queryset.search(search)
        if country:
            queryset = queryset.in_country(country)
        return queryset

    def _recommended_feed(self, profile, page, page_size, search, country) -> FeedPage:
        filtered = bool(search or country)
        try:
            if not filtered:
                offset = (page - 1) * page_size
                ids, cached_total = self.cache.page_with_total(profile, offset, page_size)
                if cached_total:
                    return self._build_page(ids, cached_total, page, page_size, FeedSource.CACHE)
            else:
                ranked = self.cache.ranked_ids(profile)
                if ranked:
                    return self._page_from_ranking(ranked, page, page_size, search, country, FeedSource.CACHE)

            ranked = self.legacy_ranker.rank(profile)
            if ranked:
                return self._page_from_ranking(ranked, page, page_size, search, country, FeedSource.LEGACY)
        except Exception:
            logger.warning(
                "Recommended feed failed for user %s; falling back to quality ordering",
                profile.id, exc_info=True,
            )

        queryset = self.eligible_moments(search, country).order_by('-composite_score', '-created_at', 'id')
        return self._page_from_queryset(queryset, page, page_size, FeedSource.QUALITY)

    def _saved_feed(self, profile, page, page_size, search, country) -> FeedPage:
        saves = MomentSave.objects.filter(profile=profile)
        if search:
            saves = saves.filter(moment__in=Moment.objects.search(search))
        if country:
            saves = saves.filter(moment__place__country__iexact=country)
        ids = list(saves.order_by('-saved_at', '-id').values_list('moment_id', flat=True))

        offset = (page - 1) * page_size
        return self._build_page(ids[offset:offset + page_size], len(ids), page, page_size, FeedSource.SAVED)

    def _page_from_ranking(self, ranked: Sequence, page, page_size, search, country, source) -> FeedPage:
        """Intersects a ranking with the eligible set, preserving rank order"""
        allowed = set(self.eligible_moments(search, country).values_list('id', flat=True))
        ids = [moment_id for moment_id in ranked if moment_id in allowed]

        offset = (page - 1) * page_size
        return self._build_page(ids[offset:offset + page_size], len(ids), page, page_size, source)

    def _page_from_queryset(self, queryset, page, page_size, source) -> FeedPage:
        total = queryset.count()
        offset = (page - 1) * page_size
        items = list(queryset.select_related('author__user', 'place')[offset:offset + page_size])
        return FeedPage(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            has_more=offset + len(items) < total,
            source=source,
        )

    def _build_page(self, ids: Sequence, total: int, page, page_size, source) -> FeedPage:
        moments = Moment.objects.select_related('author__user', 'place').in_bulk(list(ids))
        items = [moments[moment_id] for moment_id in ids if moment_id in moments]
        offset = (page - 1) * page_size
        return FeedPage(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            has_more=offset + len(ids) < total,
            source=source,
        )
