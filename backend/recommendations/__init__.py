"""
Recommendations Module Summary
==============================

Personalized ranking of travel moments for the recommended feed.

Components:
1. AffinityEstimator - per-category interest from recent behavior
2. ScoringService - weighted six-signal candidate scorer
3. RecommendationCache - per-user ranking, replaced atomically
4. refresh_user_recommendations - Celery task rebuilding one user's cache
5. LegacyRanker - inline ranking used while no cache exists
6. REST endpoints for event tracking, manual refresh and score inspection
"""
