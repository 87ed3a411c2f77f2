"""
Views for the recommendations module.
"""
import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from recommendations.models import UserEvent
from recommendations.recommendation_cache import RecommendationCache, refresh_recommendations_for_user
from recommendations.serializers import EventBatchSerializer, RecommendationScoreSerializer

logger = logging.getLogger(__name__)


class TrackEventsView(APIView):
    """
    API endpoint for recording behavioral events.

    POST /api/recommendations/events/
    Body:
    {
        "events": [
            {"event_type": "SAVE", "target_type": "MOMENT", "target_id": "uuid"},
            {"event_type": "SEARCH", "metadata": {"query": "lisbon"}}
        ]
    }
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = EventBatchSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        profile = request.user.profile
        events = UserEvent.objects.bulk_create([
            UserEvent(
                user=profile,
                event_type=item['event_type'],
                target_type=item.get('target_type'),
                target_id=item.get('target_id'),
                metadata=item.get('metadata') or {},
            )
            for item in serializer.validated_data['events']
        ])
        return Response(
            {'ok': True, 'recorded': len(events)},
            status=status.HTTP_201_CREATED
        )


class RefreshRecommendationsView(APIView):
    """
    API endpoint for rebuilding the caller's recommendations synchronously.

    POST /api/recommendations/refresh/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        profile = request.user.profile
        try:
            count = refresh_recommendations_for_user(profile)
        except Exception as e:
            logger.exception("Manual recommendation refresh failed for user %s", profile.id)
            return Response(
                {'error': str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response(
            {'ok': True, 'message': f'Computed {count} recommendations', 'count': count},
            status=status.HTTP_200_OK
        )


class RecommendationScoreListView(APIView):
    """
    API endpoint listing the caller's cached ranking with factor breakdown.

    GET /api/recommendations/scores/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        entries = RecommendationCache().entries(request.user.profile)
        serializer = RecommendationScoreSerializer(entries, many=True)
        return Response(
            {'scores': serializer.data, 'count': len(serializer.data)},
            status=status.HTTP_200_OK
        )
