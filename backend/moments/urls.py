"""
URL routing for moments endpoints.
"""
from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import MomentViewSet

router = SimpleRouter()
router.register(r'', MomentViewSet, basename='moment')

urlpatterns = [
    path('', include(router.urls)),
]
