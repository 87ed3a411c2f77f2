from django.urls import path
from .views import MeView, ProfileView, FollowView, UnfollowView, InterestsView

urlpatterns = [
    path("me/", MeView.as_view(), name="me"),
    path("me/interests/", InterestsView.as_view(), name="interests"),
    path("<uuid:id>/", ProfileView.as_view(), name="profile"),
    path("<uuid:id>/follow/", FollowView.as_view(), name="follow"),
    path("<uuid:id>/unfollow/", UnfollowView.as_view(), name="unfollow"),
]
