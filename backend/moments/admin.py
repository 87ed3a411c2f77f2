from django.contrib import admin
from .models import Moment, MomentSave


@admin.register(Moment)
class MomentAdmin(admin.ModelAdmin):
    list_display = ['id', 'author', 'place', 'composite_score', 'like_count', 'view_count', 'created_at']
    list_filter = ['created_at', 'place__category']
    search_fields = ['content', 'author__user__username', 'place__name']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(MomentSave)
class MomentSaveAdmin(admin.ModelAdmin):
    list_display = ['profile', 'moment', 'saved_at']
    search_fields = ['profile__user__username']
    readonly_fields = ['saved_at']
