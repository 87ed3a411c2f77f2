from django.contrib import admin
from .models import UserProfile, FollowRelation, UserInterest


class UserInterestInline(admin.TabularInline):
    model = UserInterest
    extra = 0


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'followers_count', 'following_count', 'is_verified']
    list_filter = ['is_verified']
    search_fields = ['user__username', 'user__email']
    readonly_fields = ['id', 'followers_count', 'following_count']
    inlines = [UserInterestInline]


@admin.register(FollowRelation)
class FollowRelationAdmin(admin.ModelAdmin):
    list_display = ['follower', 'following', 'created_at']
    search_fields = ['follower__user__username', 'following__user__username']
