"""
API views for moments: the feed, moment detail and bookmarks.
"""
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from .models import Moment, MomentSave
from .serializers import MomentSerializer, FeedQuerySerializer
from .services import MomentFeedService


class MomentViewSet(viewsets.ViewSet):
    """
    GET    /api/moments/?filter=recommended&search=&country=&saved=&page=1&page_size=20
    GET    /api/moments/<id>/
    POST   /api/moments/<id>/save/
    DELETE /api/moments/<id>/save/
    """

    permission_classes = [IsAuthenticated]
    service = MomentFeedService()

    def list(self, request):
        query = FeedQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(
                {'error': query.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        params = query.validated_data
        profile = request.user.profile
        feed = self.service.get_feed(
            profile,
            feed_filter=params['filter'],
            page=params['page'],
            page_size=params['page_size'],
            search=params.get('search') or None,
            country=params.get('country') or None,
            saved=params['saved'],
        )

        serializer = MomentSerializer(
            feed.items,
            many=True,
            context={'saved_ids': self._saved_ids(profile, feed.items)}
        )
        return Response({
            'items': serializer.data,
            'total': feed.total,
            'page': feed.page,
            'page_size': feed.page_size,
            'has_more': feed.has_more,
        })

    def retrieve(self, request, pk=None):
        moment = get_object_or_404(
            Moment.objects.select_related('author__user', 'place'), id=pk
        )
        profile = request.user.profile
        serializer = MomentSerializer(
            moment, context={'saved_ids': self._saved_ids(profile, [moment])}
        )
        return Response(serializer.data)

    @action(detail=True, methods=['post', 'delete'])
    def save(self, request, pk=None):
        """Bookmark (POST) or remove the bookmark (DELETE); both are idempotent"""
        moment = get_object_or_404(Moment, id=pk)
        profile = request.user.profile

        if request.method == 'DELETE':
            moment.unsave_for(profile)
            return Response({'saved': False}, status=status.HTTP_200_OK)

        moment.save_for(profile)
        return Response({'saved': True}, status=status.HTTP_200_OK)

    @staticmethod
    def _saved_ids(profile, moments):
        return set(
            MomentSave.objects.filter(
                profile=profile, moment__in=[m.id for m in moments]
            ).values_list('moment_id', flat=True)
        )
