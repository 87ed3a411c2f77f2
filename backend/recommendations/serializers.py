"""
Serializers for the recommendations module.
"""
from rest_framework import serializers
from recommendations.models import UserEvent, RecommendationScore, EventType, TargetType

MAX_EVENTS_PER_BATCH = 20


class UserEventSerializer(serializers.ModelSerializer):
    event_type = serializers.ChoiceField(choices=EventType.choices)
    target_type = serializers.ChoiceField(choices=TargetType.choices, required=False, allow_null=True)
    target_id = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)
    metadata = serializers.JSONField(required=False, allow_null=True)

    class Meta:
        model = UserEvent
        fields = ['id', 'event_type', 'target_type', 'target_id', 'metadata', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate(self, attrs):
        if attrs.get('target_id') and not attrs.get('target_type'):
            raise serializers.ValidationError("target_type is required when target_id is given")
        if attrs.get('target_id') == '':
            attrs['target_id'] = None
        return attrs


class EventBatchSerializer(serializers.Serializer):
    """
    Body of POST /api/recommendations/events/
    {"events": [{"event_type": "VIEW", "target_type": "MOMENT", "target_id": "uuid"}]}
    """
    events = UserEventSerializer(many=True)

    def validate_events(self, value):
        if not value:
            raise serializers.ValidationError("At least one event is required")
        if len(value) > MAX_EVENTS_PER_BATCH:
            raise serializers.ValidationError(
                f"At most {MAX_EVENTS_PER_BATCH} events can be sent at once"
            )
        return value


class RecommendationScoreSerializer(serializers.ModelSerializer):
    """Cached score with its per-signal breakdown"""
    moment_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = RecommendationScore
        fields = ['moment_id', 'score', 'rank', 'factors', 'created_at']
        read_only_fields = fields
