import uuid
from django.db import models
from django.utils import timezone
from moments.models import Moment
from user.models import UserProfile


class EventType(models.TextChoices):
    """Enumeration for tracked user event types"""
    VIEW = 'VIEW', 'View'
    SAVE = 'SAVE', 'Save'
    UNSAVE = 'UNSAVE', 'Unsave'
    LIKE = 'LIKE', 'Like'
    UNLIKE = 'UNLIKE', 'Unlike'
    CLICK = 'CLICK', 'Click'
    SEARCH = 'SEARCH', 'Search'
    FILTER_CHANGE = 'FILTER_CHANGE', 'Filter Change'
    SHARE = 'SHARE', 'Share'


class TargetType(models.TextChoices):
    """Enumeration for the kind of object an event refers to"""
    MOMENT = 'MOMENT', 'Moment'
    PLACE = 'PLACE', 'Place'
    TRIP = 'TRIP', 'Trip'
    USER = 'USER', 'User'


class UserEvent(models.Model):
    """
    Append-only behavioral log.
    MOMENT-targeted VIEW/SAVE/LIKE rows drive the affinity estimate; the
    recommendation engine only ever reads this table.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name='events')
    event_type = models.CharField(
        max_length=20,
        choices=EventType.choices,
        help_text="Type of user event: VIEW, SAVE, LIKE, ..."
    )
    target_type = models.CharField(max_length=10, choices=TargetType.choices, null=True, blank=True)
    target_id = models.CharField(max_length=64, null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    
    class Meta:
        db_table = 'recommendations_user_event'
        indexes = [
            models.Index(fields=['user', 'created_at'], name='rec_event_user_created_idx'),
            models.Index(fields=['user', 'target_type', 'event_type'], name='rec_event_user_type_idx'),
        ]
    
    def __str__(self):
        return f"{self.user} - {self.event_type} - {self.target_type}:{self.target_id}"


class RecommendationScore(models.Model):
    """
    Cached ranking row for one (user, moment) pair.
    All rows of a user form a single generation written by one refresh and
    replaced as a unit; rank keeps the generation's order for equal scores.
    """
    id = models.BigAutoField(primary_key=True)
    user = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name='recommendation_scores')
    moment = models.ForeignKey(Moment, on_delete=models.CASCADE, related_name='recommendation_scores')
    score = models.FloatField()
    rank = models.PositiveIntegerField(help_text="Position within the generation (0 = best)")
    factors = models.JSONField(
        default=dict,
        help_text="Per-signal breakdown: interest, social, behavioral, quality, freshness, discovery"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'recommendations_score'
        unique_together = ('user', 'moment')
        indexes = [
            models.Index(fields=['user', '-score', 'rank'], name='rec_score_user_rank_idx'),
        ]
    
    def __str__(self):
        return f"{self.user} -> {self.moment_id}: {self.score:.3f}"
