import os
import time
from unittest.mock import Mock, patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from config.celery import celery_app
from config.env import Settings
from locations.models import Place
from recommendations.dtos import ScoredMoment
from recommendations.recommendation_cache import RecommendationCache
from user.models import UserProfile, InterestCategory
from .models import Moment, MomentSave
from .services import MomentFeedService, FeedFilter, FeedSource

User = get_user_model()


def make_profile(username):
    user = User.objects.create_user(username=username, password='password123')
    return UserProfile.objects.create(user=user)


class MomentFixtureMixin:
    def create_fixtures(self):
        self.viewer = make_profile('viewer')
        self.author = make_profile('author')

        self.louvre = Place.objects.create(
            name="Louvre", city="Paris", country="France", category=Place.Category.MUSEUM
        )
        self.park = Place.objects.create(
            name="Parque Eduardo VII", city="Lisbon", country="Portugal", category=Place.Category.PARK
        )

        self.high = Moment.objects.create(
            author=self.author, place=self.louvre, content="Mona Lisa at opening time", composite_score=9.0
        )
        self.mid = Moment.objects.create(
            author=self.author, place=self.park, content="Sunset walk", composite_score=6.0, view_count=50
        )
        self.low = Moment.objects.create(
            author=self.author, place=self.louvre, content="Crowded galleries", composite_score=3.0, view_count=10
        )
        self.unrated = Moment.objects.create(
            author=self.author, place=self.park, content="Draft", composite_score=None, view_count=999
        )


class MomentModelTests(MomentFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_save_for_is_idempotent(self):
        self.assertTrue(self.high.save_for(self.viewer))
        self.assertFalse(self.high.save_for(self.viewer))
        self.assertEqual(MomentSave.objects.filter(profile=self.viewer).count(), 1)
        self.assertTrue(self.high.is_saved_by(self.viewer))

    def test_unsave_for(self):
        self.high.save_for(self.viewer)
        self.assertTrue(self.high.unsave_for(self.viewer))
        self.assertFalse(self.high.unsave_for(self.viewer))
        self.assertFalse(self.high.is_saved_by(self.viewer))

    def test_rated_excludes_unscored_moments(self):
        self.assertNotIn(self.unrated, Moment.objects.rated())
        self.assertEqual(Moment.objects.rated().count(), 3)

    def test_search_and_country(self):
        self.assertEqual(set(Moment.objects.search("louvre")), {self.high, self.low})
        self.assertEqual(set(Moment.objects.search("sunset")), {self.mid})
        self.assertEqual(set(Moment.objects.rated().in_country("portugal")), {self.mid})


class MomentFeedServiceTests(MomentFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.cache = RecommendationCache()
        self.scheduler = Mock()
        self.service = MomentFeedService(cache=self.cache, refresh_scheduler=self.scheduler)

    def ids(self, feed):
        return [moment.id for moment in feed.items]

    def test_top_rated_orders_by_composite_score(self):
        feed = self.service.get_feed(self.viewer, FeedFilter.TOP_RATED)

        self.assertEqual(self.ids(feed), [self.high.id, self.mid.id, self.low.id])
        self.assertEqual(feed.source, FeedSource.TOP_RATED)
        self.assertEqual(feed.total, 3)
        self.scheduler.assert_not_called()

    def test_most_viewed_orders_by_view_count(self):
        feed = self.service.get_feed(self.viewer, FeedFilter.MOST_VIEWED)

        self.assertEqual(self.ids(feed), [self.mid.id, self.low.id, self.high.id])
        self.assertEqual(feed.source, FeedSource.MOST_VIEWED)

    def test_recommended_reads_cached_ranking(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.low.id, score=5.0),
            ScoredMoment(moment_id=self.high.id, score=4.0),
        ])

        feed = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED)

        self.assertEqual(feed.source, FeedSource.CACHE)
        self.assertEqual(self.ids(feed), [self.low.id, self.high.id])
        self.assertEqual(feed.total, 2)
        self.assertFalse(feed.has_more)
        self.scheduler.assert_called_once_with(self.viewer.id)

    def test_equal_scores_keep_order_across_pages(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.low.id, score=9.1),
            ScoredMoment(moment_id=self.mid.id, score=9.1),
            ScoredMoment(moment_id=self.high.id, score=4.0),
        ])

        first = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED, page=1, page_size=2)
        again = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED, page=1, page_size=2)
        second = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED, page=2, page_size=2)

        self.assertEqual(self.ids(first), [self.low.id, self.mid.id])
        self.assertEqual(self.ids(again), [self.low.id, self.mid.id])
        self.assertTrue(first.has_more)
        self.assertEqual(self.ids(second), [self.high.id])
        self.assertFalse(second.has_more)

    def test_filters_intersect_cached_ranking(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.low.id, score=8.0),
            ScoredMoment(moment_id=self.mid.id, score=7.0),
            ScoredMoment(moment_id=self.high.id, score=6.0),
        ])

        feed = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED, country="France")

        self.assertEqual(self.ids(feed), [self.low.id, self.high.id])
        self.assertEqual(feed.total, 2)
        self.assertEqual(feed.source, FeedSource.CACHE)

    def test_empty_cache_uses_legacy_ranking(self):
        self.viewer.replace_interests([(InterestCategory.ART_CULTURE, 10)])

        feed = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED)

        self.assertEqual(feed.source, FeedSource.LEGACY)
        self.assertEqual(feed.total, 3)
        self.assertEqual(set(self.ids(feed)[:2]), {self.high.id, self.low.id})
        self.assertEqual(self.ids(feed)[2], self.mid.id)
        self.scheduler.assert_called_once_with(self.viewer.id)

    def test_failing_legacy_ranker_falls_back_to_quality(self):
        legacy = Mock()
        legacy.rank.side_effect = RuntimeError("ranking unavailable")
        service = MomentFeedService(cache=self.cache, legacy_ranker=legacy, refresh_scheduler=self.scheduler)

        feed = service.get_feed(self.viewer, FeedFilter.RECOMMENDED)

        self.assertEqual(feed.source, FeedSource.QUALITY)
        self.assertEqual(self.ids(feed), [self.high.id, self.mid.id, self.low.id])
        self.scheduler.assert_called_once_with(self.viewer.id)

    def test_failing_cache_falls_back_to_quality(self):
        cache = Mock()
        cache.page_with_total.side_effect = RuntimeError("database unavailable")
        service = MomentFeedService(cache=cache, refresh_scheduler=self.scheduler)

        feed = service.get_feed(self.viewer, FeedFilter.RECOMMENDED)

        self.assertEqual(feed.source, FeedSource.QUALITY)
        self.assertEqual(self.ids(feed), [self.high.id, self.mid.id, self.low.id])

    def test_no_candidates_falls_back_to_quality(self):
        # The author has no candidates: every rated moment is their own
        feed = self.service.get_feed(self.author, FeedFilter.RECOMMENDED)

        self.assertEqual(feed.source, FeedSource.QUALITY)
        self.assertEqual(feed.total, 3)

    def test_saved_feed_lists_newest_save_first(self):
        self.mid.save_for(self.viewer)
        self.unrated.save_for(self.viewer)

        feed = self.service.get_feed(self.viewer, saved=True)

        self.assertEqual(feed.source, FeedSource.SAVED)
        self.assertEqual(self.ids(feed), [self.unrated.id, self.mid.id])
        self.scheduler.assert_not_called()

    def test_search_filter_on_quality_listing(self):
        feed = self.service.get_feed(self.viewer, FeedFilter.TOP_RATED, search="louvre")
        self.assertEqual(self.ids(feed), [self.high.id, self.low.id])

    def test_unknown_filter_raises(self):
        with self.assertRaises(ValueError):
            self.service.get_feed(self.viewer, "newest")

    def test_cached_page_and_total_come_from_one_read(self):
        self.cache.replace(self.viewer, [
            ScoredMoment(moment_id=self.low.id, score=3.0),
            ScoredMoment(moment_id=self.mid.id, score=2.0),
            ScoredMoment(moment_id=self.high.id, score=1.0),
        ])

        with patch.object(RecommendationCache, 'count', side_effect=AssertionError("separate count query")):
            feed = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED, page=1, page_size=2)

        self.assertEqual(feed.source, FeedSource.CACHE)
        self.assertEqual(self.ids(feed), [self.low.id, self.mid.id])
        self.assertEqual(feed.total, 3)
        self.assertTrue(feed.has_more)

    def test_page_past_the_end_of_cache(self):
        self.cache.replace(self.viewer, [ScoredMoment(moment_id=self.low.id, score=3.0)])

        feed = self.service.get_feed(self.viewer, FeedFilter.RECOMMENDED, page=3, page_size=2)

        self.assertEqual(feed.source, FeedSource.CACHE)
        self.assertEqual(feed.items, [])
        self.assertEqual(feed.total, 1)
        self.assertFalse(feed.has_more)


class BackgroundRefreshDispatchTests(MomentFixtureMixin, TestCase):
    """The recommended feed only enqueues the refresh when a worker is configured"""

    def setUp(self):
        self.create_fixtures()
        previous = celery_app.conf.task_always_eager
        celery_app.conf.task_always_eager = False
        self.addCleanup(setattr, celery_app.conf, 'task_always_eager', previous)

    def test_eager_mode_is_off_by_default(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop('CELERY_TASK_ALWAYS_EAGER', None)
            self.assertFalse(Settings(_env_file=None).celery_task_always_eager)

    def test_feed_returns_without_waiting_for_refresh(self):
        def slow_refresh(profile, **kwargs):
            time.sleep(2)
            return 0

        with patch('recommendations.tasks.refresh_recommendations_for_user', side_effect=slow_refresh) as refresh, \
                patch.object(celery_app, 'send_task') as send_task:
            started = time.monotonic()
            feed = MomentFeedService().get_feed(self.viewer, FeedFilter.RECOMMENDED)
            elapsed = time.monotonic() - started

        self.assertLess(elapsed, 1.0)
        self.assertEqual(feed.total, 3)
        refresh.assert_not_called()
        send_task.assert_called_once()
        self.assertEqual(send_task.call_args[0][0], 'recommendations.tasks.refresh_user_recommendations')
        self.assertEqual(send_task.call_args[0][1], (str(self.viewer.id),))


class MomentAPITests(MomentFixtureMixin, APITestCase):
    def setUp(self):
        self.create_fixtures()
        self.client.force_authenticate(user=self.viewer.user)

        patcher = patch('recommendations.tasks.refresh_user_recommendations.delay')
        self.delay = patcher.start()
        self.addCleanup(patcher.stop)

    def test_feed_response_shape(self):
        response = self.client.get('/api/moments/', {'filter': 'topRated', 'page_size': 2})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['page'], 1)
        self.assertEqual(response.data['page_size'], 2)
        self.assertTrue(response.data['has_more'])
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['items'][0]['id'], str(self.high.id))
        self.assertEqual(response.data['items'][0]['place']['name'], "Louvre")
        self.assertEqual(response.data['items'][0]['author']['username'], "author")

    def test_recommended_feed_schedules_refresh(self):
        response = self.client.get('/api/moments/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        self.delay.assert_called_once_with(str(self.viewer.id))

    def test_feed_survives_refresh_dispatch_failure(self):
        self.delay.side_effect = ConnectionError("broker down")

        response = self.client.get('/api/moments/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)

    def test_invalid_query_params(self):
        response = self.client.get('/api/moments/', {'page_size': 100})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

        response = self.client.get('/api/moments/', {'filter': 'newest'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/moments/', {'page': 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_save_and_unsave(self):
        url = f'/api/moments/{self.high.id}/save/'

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'saved': True})
        self.assertTrue(self.high.is_saved_by(self.viewer))

        detail = self.client.get(f'/api/moments/{self.high.id}/')
        self.assertTrue(detail.data['is_saved'])

        response = self.client.delete(url)
        self.assertEqual(response.data, {'saved': False})
        self.assertFalse(self.high.is_saved_by(self.viewer))

    def test_saved_listing(self):
        self.low.save_for(self.viewer)

        response = self.client.get('/api/moments/', {'saved': 'true'})

        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['items'][0]['id'], str(self.low.id))
        self.assertTrue(response.data['items'][0]['is_saved'])

    def test_missing_moment_returns_404(self):
        response = self.client.get('/api/moments/00000000-0000-0000-0000-000000000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/moments/')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
