"""Celery tasks for recommendation cache refreshes."""

import logging

from config.celery import celery_app
from recommendations.recommendation_cache import refresh_recommendations_for_user
from user.models import UserProfile

logger = logging.getLogger(__name__)


@celery_app.task(name="recommendations.tasks.refresh_user_recommendations")
def refresh_user_recommendations(profile_id: str) -> int:
    """
    Rebuilds one user's cached ranking.

    Dispatched after every recommended-feed read. Failures are logged and
    swallowed: the previous cache generation stays authoritative.
    """
    try:
        profile = UserProfile.objects.get(id=profile_id)
    except UserProfile.DoesNotExist:
        logger.warning("Skipping recommendation refresh: user %s not found", profile_id)
        return 0

    try:
        return refresh_recommendations_for_user(profile)
    except Exception:
        logger.exception("Background recommendation refresh failed for user %s", profile_id)
        return 0


def schedule_refresh(profile_id) -> None:
    """Fire-and-forget dispatch; never raises into the caller"""
    try:
        refresh_user_recommendations.delay(str(profile_id))
    except Exception:
        logger.exception("Could not dispatch recommendation refresh for user %s", profile_id)
