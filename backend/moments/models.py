"""
Relational models for moments: user-authored, place-tagged, rated travel posts.
"""
import uuid

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models, transaction
from django.utils import timezone

from locations.models import Place
from user.models import UserProfile


class MomentQuerySet(models.QuerySet):

    def rated(self):
        """Moments with a composite score; unrated ones never reach the feed"""
        return self.filter(composite_score__isnull=False)

    def search(self, term: str):
        """Case-insensitive match on content or place name"""
        return self.filter(
            models.Q(content__icontains=term) | models.Q(place__name__icontains=term)
        )

    def in_country(self, country: str):
        return self.filter(place__country__iexact=country)

    def with_save_count(self):
        return self.annotate(save_count=models.Count('saves'))


class Moment(models.Model):
    """
    A rated travel post.
    composite_score (0-10) is computed upstream from the star sub-ratings and
    is treated as an opaque number here; null means the moment is unrated.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    author = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name='moments')
    place = models.ForeignKey(
        Place,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='moments'
    )
    content = models.TextField(max_length=5000, blank=True, default="")
    image_url = models.URLField(max_length=500, blank=True, null=True)
    composite_score = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0.0), MaxValueValidator(10.0)],
        help_text="Precomputed quality score from 0.0 to 10.0"
    )

    # Aggregate counters
    like_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MomentQuerySet.as_manager()

    class Meta:
        db_table = 'moments_moment'
        indexes = [
            models.Index(fields=['author', '-created_at'], name='moments_author_created_idx'),
            models.Index(fields=['-composite_score'], name='moments_composite_idx'),
        ]

    def __str__(self):
        place_name = self.place.name if self.place else "no place"
        return f"Moment by {self.author} at {place_name}"

    def save_for(self, profile: UserProfile) -> bool:
        """
        Bookmarks the moment for a profile.
        Returns True if a new save was recorded, False if it already existed.
        """
        with transaction.atomic():
            _, created = MomentSave.objects.get_or_create(profile=profile, moment=self)
        return created

    def unsave_for(self, profile: UserProfile) -> bool:
        deleted, _ = MomentSave.objects.filter(profile=profile, moment=self).delete()
        return deleted > 0

    def is_saved_by(self, profile: UserProfile) -> bool:
        return MomentSave.objects.filter(profile=profile, moment=self).exists()


class MomentSave(models.Model):
    """A profile bookmarking a moment; the save count feeds the quality signal"""
    profile = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name='saved_moments')
    moment = models.ForeignKey(Moment, on_delete=models.CASCADE, related_name='saves')
    saved_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'moments_moment_save'
        unique_together = ('profile', 'moment')

    def __str__(self):
        return f"{self.profile} saved {self.moment_id}"
