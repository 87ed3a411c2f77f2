"""
DRF Serializers for Moment listings and feed query parameters.
"""
from rest_framework import serializers

from locations.serializers import PlaceSummarySerializer
from .models import Moment
from .services import FeedFilter


class MomentAuthorSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    avatar_url = serializers.URLField(read_only=True)
    is_verified = serializers.BooleanField(read_only=True)


class MomentSerializer(serializers.ModelSerializer):
    """
    Moment as returned by the feed and detail endpoints.
    is_saved is resolved from the `saved_ids` set passed in the context.
    """
    author = MomentAuthorSerializer(read_only=True)
    place = PlaceSummarySerializer(read_only=True)
    is_saved = serializers.SerializerMethodField()

    class Meta:
        model = Moment
        fields = [
            'id',
            'author',
            'place',
            'content',
            'image_url',
            'composite_score',
            'like_count',
            'view_count',
            'is_saved',
            'created_at',
        ]
        read_only_fields = fields

    def get_is_saved(self, obj):
        return obj.id in self.context.get('saved_ids', set())


class FeedQuerySerializer(serializers.Serializer):
    """Query parameters of GET /api/moments/"""
    filter = serializers.ChoiceField(choices=FeedFilter.CHOICES, default=FeedFilter.RECOMMENDED)
    search = serializers.CharField(max_length=200, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    saved = serializers.BooleanField(default=False)
    page = serializers.IntegerField(min_value=1, default=1)
    page_size = serializers.IntegerField(min_value=1, max_value=50, default=20)
