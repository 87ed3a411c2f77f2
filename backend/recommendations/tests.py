"""
Tests for the recommendations module.
"""
import math
import uuid
from datetime import timedelta
from unittest.mock import Mock, patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from locations.models import Place
from moments.models import Moment
from user.models import UserProfile, InterestCategory
from recommendations.affinity_service import AffinityEstimator, EventStoreReader, merge_declared_interests
from recommendations.dtos import CandidateMoment, ScoredMoment
from recommendations.legacy_ranker import LegacyRanker
from recommendations.models import EventType, TargetType, UserEvent, RecommendationScore
from recommendations.recommendation_cache import RecommendationCache, refresh_recommendations_for_user
from recommendations.scoring_service import ScoringService
from recommendations.tasks import refresh_user_recommendations, schedule_refresh

User = get_user_model()


class EngineFixtureMixin:
    """Two users, two places and three rated moments by the author"""

    def create_fixtures(self):
        self.now = timezone.now()

        viewer = User.objects.create_user(username='viewer', password='password123')
        author = User.objects.create_user(username='author', password='password123')
        self.viewer = UserProfile.objects.create(user=viewer)
        self.author = UserProfile.objects.create(user=author)

        self.museum = Place.objects.create(name="Prado", country="Spain", category=Place.Category.MUSEUM)
        self.park = Place.objects.create(name="Retiro", country="Spain", category=Place.Category.PARK)

        self.museum_moment = Moment.objects.create(
            author=self.author, place=self.museum, composite_score=8.0,
            created_at=self.now - timedelta(days=3),
        )
        self.park_moment = Moment.objects.create(
            author=self.author, place=self.park, composite_score=6.0,
            created_at=self.now - timedelta(days=1),
        )
        self.old_moment = Moment.objects.create(
            author=self.author, place=self.park, composite_score=9.5,
            created_at=self.now - timedelta(days=60),
        )

    def track(self, event_type, moment, age_days=0, user=None):
        return UserEvent.objects.create(
            user=user or self.viewer,
            event_type=event_type,
            target_type=TargetType.MOMENT,
            target_id=str(moment.id),
            created_at=self.now - timedelta(days=age_days),
        )


class AffinityEstimatorTestCase(EngineFixtureMixin, TestCase):
    """Test cases for AffinityEstimator and the cold-start blend"""

    def setUp(self):
        self.create_fixtures()
        self.estimator = AffinityEstimator()

    def test_no_events_gives_empty_map(self):
        self.assertEqual(self.estimator.estimate(self.viewer, now=self.now), {})

    def test_strongest_category_is_normalized_to_one(self):
        self.track(EventType.SAVE, self.museum_moment)
        self.track(EventType.VIEW, self.park_moment)

        affinities = self.estimator.estimate(self.viewer, now=self.now)

        self.assertAlmostEqual(affinities[Place.Category.MUSEUM], 1.0)
        self.assertAlmostEqual(affinities[Place.Category.PARK], 1 / 3)
        self.assertTrue(all(0 < value <= 1.0 for value in affinities.values()))

    def test_recent_events_outweigh_old_ones(self):
        recent = AffinityEstimator.event_weight(EventType.SAVE, timedelta(days=1))
        older = AffinityEstimator.event_weight(EventType.SAVE, timedelta(days=10))

        self.assertGreater(recent, older)
        self.assertGreater(older, 0)
        self.assertAlmostEqual(AffinityEstimator.event_weight(EventType.LIKE, timedelta(0)), 2.0)

    def test_events_outside_window_are_ignored(self):
        self.track(EventType.SAVE, self.museum_moment, age_days=31)
        self.assertEqual(self.estimator.estimate(self.viewer, now=self.now), {})

    def test_non_moment_and_malformed_events_are_ignored(self):
        UserEvent.objects.create(
            user=self.viewer, event_type=EventType.SAVE,
            target_type=TargetType.PLACE, target_id=str(self.museum.id), created_at=self.now,
        )
        UserEvent.objects.create(
            user=self.viewer, event_type=EventType.VIEW,
            target_type=TargetType.MOMENT, target_id="not-a-uuid", created_at=self.now,
        )
        self.track(EventType.SHARE, self.museum_moment)

        self.assertEqual(self.estimator.estimate(self.viewer, now=self.now), {})

    def test_cold_start_adds_declared_interest(self):
        merged = merge_declared_interests({}, {InterestCategory.HISTORY: 10}, event_count=5)
        self.assertEqual(merged, {InterestCategory.HISTORY: 2.0})

    def test_declared_interests_ignored_with_enough_history(self):
        merged = merge_declared_interests({}, {InterestCategory.HISTORY: 10}, event_count=10)
        self.assertEqual(merged, {})

    def test_behavioral_value_takes_precedence(self):
        behavioral = {InterestCategory.HISTORY: 0.4}
        declared = {InterestCategory.HISTORY: 10, InterestCategory.MUSIC: 5}

        merged = merge_declared_interests(behavioral, declared, event_count=2)

        self.assertEqual(merged, {InterestCategory.HISTORY: 0.4, InterestCategory.MUSIC: 1.0})
        self.assertEqual(behavioral, {InterestCategory.HISTORY: 0.4})
        self.assertEqual(declared, {InterestCategory.HISTORY: 10, InterestCategory.MUSIC: 5})

    def test_global_save_rate(self):
        reader = EventStoreReader()
        self.assertEqual(reader.global_save_rate(self.viewer), 0.1)

        for _ in range(5):
            self.track(EventType.VIEW, self.park_moment)
        self.track(EventType.SAVE, self.park_moment)

        self.assertAlmostEqual(reader.global_save_rate(self.viewer), 0.2)


class ScoringServiceTestCase(EngineFixtureMixin, TestCase):
    """Test cases for ScoringService"""

    def setUp(self):
        self.create_fixtures()
        self.scoring_service = ScoringService()

    def test_end_to_end_scenario(self):
        """Followed author, museum moment with 5 saves, art affinity 0.8, save rate 0.2"""
        followed_author = uuid.uuid4()
        candidate = CandidateMoment(
            moment_id=uuid.uuid4(),
            author_id=followed_author,
            composite_score=8.0,
            created_at=self.now - timedelta(days=5),
            category=Place.Category.MUSEUM,
            save_count=5,
        )

        scored = self.scoring_service.score_candidates(
            [candidate],
            affinities={InterestCategory.ART_CULTURE: 0.8},
            following_ids={followed_author},
            global_save_rate=0.2,
            now=self.now,
        )

        factors = scored[0].factors
        self.assertAlmostEqual(factors['interest'], 0.8)
        self.assertAlmostEqual(factors['social'], 0.5)
        self.assertAlmostEqual(factors['behavioral'], 1.6)
        self.assertAlmostEqual(factors['quality'], 0.8)
        self.assertAlmostEqual(factors['discovery'], 1.0)
        self.assertAlmostEqual(scored[0].score, 9.9 + math.exp(-5 / 14))

    def test_discovery_only_for_unseen_categories(self):
        affinities = {Place.Category.MUSEUM: 1.0}
        self.assertEqual(ScoringService.compute_discovery(Place.Category.MUSEUM, affinities), 0.0)
        self.assertEqual(ScoringService.compute_discovery(Place.Category.PARK, affinities), 1.0)
        self.assertEqual(ScoringService.compute_discovery(None, affinities), 0.0)

    def test_behavioral_without_interest_is_save_rate(self):
        self.assertAlmostEqual(ScoringService.compute_behavioral(0.0, 0.3), 0.3)
        self.assertAlmostEqual(ScoringService.compute_behavioral(0.5, 0.3), 1.5)

    def test_quality_confidence(self):
        self.assertEqual(ScoringService.compute_quality(None, 10), 0.0)
        self.assertAlmostEqual(ScoringService.compute_quality(10.0, 0), 0.2)
        self.assertAlmostEqual(ScoringService.compute_quality(10.0, 3), 0.6)
        self.assertAlmostEqual(ScoringService.compute_quality(10.0, 50), 1.0)

    def test_freshness(self):
        fresh = ScoringService.compute_freshness(self.now - timedelta(days=1), self.now)
        two_weeks = ScoringService.compute_freshness(self.now - timedelta(days=14), self.now)

        self.assertAlmostEqual(fresh, 1.5 * math.exp(-1 / 14))
        self.assertAlmostEqual(two_weeks, 0.367, places=2)

    def test_generate_recommendations_excludes_own_and_unrated(self):
        Moment.objects.create(author=self.author, place=self.park, composite_score=None)
        Moment.objects.create(author=self.viewer, place=self.park, composite_score=7.0)

        recommendations = self.scoring_service.generate_recommendations(self.viewer, now=self.now)

        self.assertEqual(
            {item.moment_id for item in recommendations},
            {self.museum_moment.id, self.park_moment.id, self.old_moment.id},
        )
        scores = [item.score for item in recommendations]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_affinity_lifts_matching_moments(self):
        self.track(EventType.SAVE, self.museum_moment, age_days=1)

        recommendations = self.scoring_service.generate_recommendations(self.viewer, now=self.now)

        self.assertEqual(recommendations[0].moment_id, self.museum_moment.id)

    def test_cold_start_declared_interest_reaches_scores(self):
        monument = Place.objects.create(name="Alhambra", country="Spain", category=Place.Category.MONUMENT)
        alhambra_moment = Moment.objects.create(
            author=self.author, place=monument, composite_score=7.0,
            created_at=self.now - timedelta(days=2),
        )
        self.viewer.replace_interests([(InterestCategory.HISTORY, 10)])
        for _ in range(5):
            self.track(EventType.VIEW, self.park_moment)

        recommendations = self.scoring_service.generate_recommendations(self.viewer, now=self.now)

        factors = next(item.factors for item in recommendations if item.moment_id == alhambra_moment.id)
        self.assertAlmostEqual(factors['interest'], 2.0)
        self.assertEqual(recommendations[0].moment_id, alhambra_moment.id)

    def test_declared_interest_dropped_after_enough_history(self):
        monument = Place.objects.create(name="Alhambra", country="Spain", category=Place.Category.MONUMENT)
        alhambra_moment = Moment.objects.create(author=self.author, place=monument, composite_score=7.0)
        self.viewer.replace_interests([(InterestCategory.HISTORY, 10)])
        for _ in range(10):
            self.track(EventType.VIEW, self.park_moment)

        recommendations = self.scoring_service.generate_recommendations(self.viewer, now=self.now)

        factors = next(item.factors for item in recommendations if item.moment_id == alhambra_moment.id)
        self.assertEqual(factors['interest'], 0.0)

    def test_scoring_is_deterministic(self):
        self.track(EventType.LIKE, self.park_moment, age_days=2)
        self.viewer.follow(self.author)

        first = refresh_recommendations_for_user(self.viewer, now=self.now)
        first_rows = list(RecommendationScore.objects.filter(user=self.viewer).values_list('moment_id', 'score', 'factors'))
        second = refresh_recommendations_for_user(self.viewer, now=self.now)
        second_rows = list(RecommendationScore.objects.filter(user=self.viewer).values_list('moment_id', 'score', 'factors'))

        self.assertEqual(first, second)
        self.assertEqual(sorted(first_rows, key=str), sorted(second_rows, key=str))


class RecommendationCacheTestCase(EngineFixtureMixin, TestCase):
    """Test cases for the cache and the refresh orchestrator"""

    def setUp(self):
        self.create_fixtures()
        self.cache = RecommendationCache()

    def test_refresh_writes_full_ranking(self):
        written = refresh_recommendations_for_user(self.viewer, now=self.now)

        self.assertEqual(written, 3)
        self.assertEqual(self.cache.count(self.viewer), 3)
        ranks = list(RecommendationScore.objects.filter(user=self.viewer).order_by('rank').values_list('rank', flat=True))
        self.assertEqual(ranks, [0, 1, 2])

    def test_failed_write_keeps_previous_generation(self):
        self.cache.replace(self.viewer, [ScoredMoment(moment_id=self.park_moment.id, score=1.23)])

        with patch.object(RecommendationScore.objects, 'bulk_create', side_effect=RuntimeError("disk full")):
            with self.assertRaises(RuntimeError):
                refresh_recommendations_for_user(self.viewer, now=self.now)

        rows = list(RecommendationScore.objects.filter(user=self.viewer).values_list('moment_id', 'score'))
        self.assertEqual(rows, [(self.park_moment.id, 1.23)])

    def test_empty_ranking_keeps_previous_generation(self):
        self.cache.replace(self.viewer, [ScoredMoment(moment_id=self.park_moment.id, score=2.0)])
        scoring_service = Mock()
        scoring_service.generate_recommendations.return_value = []

        written = refresh_recommendations_for_user(self.viewer, scoring_service=scoring_service)

        self.assertEqual(written, 0)
        self.assertEqual(self.cache.ranked_ids(self.viewer), [self.park_moment.id])

    def test_equal_scores_page_in_generation_order(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.old_moment.id, score=9.1),
            ScoredMoment(moment_id=self.museum_moment.id, score=9.1),
            ScoredMoment(moment_id=self.park_moment.id, score=4.0),
        ])

        for _ in range(3):
            self.assertEqual(
                self.cache.read_page(self.viewer, 0, 2),
                [self.old_moment.id, self.museum_moment.id],
            )
        self.assertEqual(self.cache.read_page(self.viewer, 2, 2), [self.park_moment.id])

    def test_replace_does_not_touch_other_users(self):
        self.cache.replace(self.author, [ScoredMoment(moment_id=self.park_moment.id, score=1.0)])
        self.cache.replace(self.viewer, [ScoredMoment(moment_id=self.museum_moment.id, score=1.0)])

        self.assertEqual(self.cache.ranked_ids(self.author), [self.park_moment.id])

    def test_replace_locks_the_user_row(self):
        with patch.object(
            UserProfile.objects, 'select_for_update', wraps=UserProfile.objects.select_for_update
        ) as lock:
            self.cache.replace(self.viewer, [ScoredMoment(moment_id=self.park_moment.id, score=1.0)])

        lock.assert_called_once_with()

    def test_later_refresh_replaces_overlapping_generation(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.park_moment.id, score=2.0),
            ScoredMoment(moment_id=self.museum_moment.id, score=1.0),
        ])
        self.cache.replace(self.viewer, [ScoredMoment(moment_id=self.museum_moment.id, score=5.0)])

        rows = list(RecommendationScore.objects.filter(user=self.viewer).values_list('moment_id', 'score', 'rank'))
        self.assertEqual(rows, [(self.museum_moment.id, 5.0, 0)])

    def test_page_with_total(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.old_moment.id, score=3.0),
            ScoredMoment(moment_id=self.museum_moment.id, score=2.0),
            ScoredMoment(moment_id=self.park_moment.id, score=1.0),
        ])

        self.assertEqual(
            self.cache.page_with_total(self.viewer, 1, 1),
            ([self.museum_moment.id], 3),
        )
        self.assertEqual(self.cache.page_with_total(self.viewer, 5, 2), ([], 3))
        self.assertEqual(self.cache.page_with_total(self.author, 0, 2), ([], 0))


class LegacyRankerTestCase(EngineFixtureMixin, TestCase):

    def setUp(self):
        self.create_fixtures()

    def test_declared_interest_ranks_first(self):
        self.viewer.replace_interests([(InterestCategory.ART_CULTURE, 5)])

        ranked = LegacyRanker().rank(self.viewer, now=self.now)

        self.assertEqual(ranked[0], self.museum_moment.id)
        self.assertEqual(len(ranked), 3)

    def test_followed_author_bonus(self):
        other = UserProfile.objects.create(user=User.objects.create_user(username='other', password='x'))
        followed_moment = Moment.objects.create(
            author=other, place=self.park, composite_score=1.0, created_at=self.now - timedelta(days=1)
        )
        self.viewer.follow(other)

        ranked = LegacyRanker().rank(self.viewer, now=self.now)

        self.assertEqual(ranked[0], followed_moment.id)

    def test_no_candidates(self):
        self.assertEqual(LegacyRanker().rank(self.author, now=self.now), [])


class RefreshTaskTestCase(EngineFixtureMixin, TestCase):

    def setUp(self):
        self.create_fixtures()

    def test_task_refreshes_cache(self):
        self.assertEqual(refresh_user_recommendations(str(self.viewer.id)), 3)
        self.assertEqual(RecommendationCache().count(self.viewer), 3)

    def test_task_swallows_failures(self):
        with patch('recommendations.tasks.refresh_recommendations_for_user', side_effect=RuntimeError("boom")):
            with self.assertLogs('recommendations.tasks', level='ERROR'):
                self.assertEqual(refresh_user_recommendations(str(self.viewer.id)), 0)

    def test_task_with_unknown_user(self):
        self.assertEqual(refresh_user_recommendations(str(uuid.uuid4())), 0)

    def test_schedule_refresh_never_raises(self):
        with patch('recommendations.tasks.refresh_user_recommendations.delay', side_effect=ConnectionError("broker down")) as delay:
            with self.assertLogs('recommendations.tasks', level='ERROR'):
                schedule_refresh(self.viewer.id)
        delay.assert_called_once_with(str(self.viewer.id))


class RecommendationAPITestCase(EngineFixtureMixin, APITestCase):

    def setUp(self):
        self.create_fixtures()
        self.client.force_authenticate(user=self.viewer.user)

    def test_track_events(self):
        response = self.client.post('/api/recommendations/events/', {
            'events': [
                {'event_type': 'VIEW', 'target_type': 'MOMENT', 'target_id': str(self.park_moment.id)},
                {'event_type': 'SEARCH', 'metadata': {'query': 'madrid'}},
            ]
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['recorded'], 2)
        self.assertEqual(UserEvent.objects.filter(user=self.viewer).count(), 2)
        search = UserEvent.objects.get(user=self.viewer, event_type=EventType.SEARCH)
        self.assertEqual(search.metadata, {'query': 'madrid'})
        self.assertIsNone(search.target_id)

    def test_event_batch_limits(self):
        too_many = [{'event_type': 'VIEW'}] * 21
        response = self.client.post('/api/recommendations/events/', {'events': too_many}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/recommendations/events/', {'events': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/recommendations/events/', {'events': [{'event_type': 'DANCE'}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(UserEvent.objects.count(), 0)

    def test_refresh_and_list_scores(self):
        response = self.client.post('/api/recommendations/refresh/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['ok'])
        self.assertEqual(response.data['count'], 3)

        response = self.client.get('/api/recommendations/scores/')
        self.assertEqual(response.data['count'], 3)
        first = response.data['scores'][0]
        self.assertEqual(first['rank'], 0)
        self.assertEqual(
            set(first['factors']),
            {'interest', 'social', 'behavioral', 'quality', 'freshness', 'discovery'},
        )

    def test_refresh_failure_returns_500(self):
        with patch('recommendations.views.refresh_recommendations_for_user', side_effect=RuntimeError("boom")):
            response = self.client.post('/api/recommendations/refresh/')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn('error', response.data)
