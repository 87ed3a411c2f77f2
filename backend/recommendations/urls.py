"""
URL configuration for the recommendations module.
"""
from django.urls import path
from recommendations.views import (
    TrackEventsView, RefreshRecommendationsView, RecommendationScoreListView
)

app_name = 'recommendations'

urlpatterns = [
    path('events/', TrackEventsView.as_view(), name='track_events'),
    path('refresh/', RefreshRecommendationsView.as_view(), name='refresh_recommendations'),
    path('scores/', RecommendationScoreListView.as_view(), name='recommendation_scores'),
]
