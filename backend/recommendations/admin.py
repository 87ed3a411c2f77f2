"""
Django admin configuration for recommendations models.
"""
from django.contrib import admin
from recommendations.models import UserEvent, RecommendationScore


@admin.register(UserEvent)
class UserEventAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'event_type', 'target_type', 'target_id', 'created_at']
    list_filter = ['event_type', 'target_type', 'created_at']
    search_fields = ['user__user__username', 'target_id']
    readonly_fields = ['id', 'created_at']


@admin.register(RecommendationScore)
class RecommendationScoreAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'moment', 'score', 'rank', 'created_at']
    list_filter = ['created_at']
    search_fields = ['user__user__username']
    readonly_fields = ['id', 'created_at']
    ordering = ['user', '-score', 'rank']
