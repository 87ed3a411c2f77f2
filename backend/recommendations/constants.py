"""
Shared constants for the recommendation engine.
Signal weights and windows are fixed by design; they are not learned or
configured per user.
"""
from types import MappingProxyType

from locations.models import Place
from user.models import InterestCategory
from recommendations.models import EventType


# Weights of the linear combination, one per signal.
SIGNAL_WEIGHTS = MappingProxyType({
    "interest": 3.0,
    "social": 2.0,
    "behavioral": 3.0,
    "quality": 1.5,
    "freshness": 1.0,
    "discovery": 0.5,
})

SIGNAL_NAMES = tuple(SIGNAL_WEIGHTS.keys())

# Affinity estimation
AFFINITY_WINDOW_DAYS = 30
AFFINITY_HALF_LIFE_DAYS = AFFINITY_WINDOW_DAYS / 2
AFFINITY_EVENT_TYPES = (EventType.VIEW, EventType.SAVE, EventType.LIKE)
EVENT_BASE_WEIGHTS = MappingProxyType({
    EventType.SAVE: 3.0,
    EventType.LIKE: 2.0,
    EventType.VIEW: 1.0,
})

# Users with fewer events than this get their declared interests blended in
COLD_START_EVENT_THRESHOLD = 10
# Declared weights (1-10) are divided by this to become affinities (0.2-2.0)
DECLARED_WEIGHT_DIVISOR = 5

# Candidate scoring
FOLLOWED_AUTHOR_SCORE = 0.5
DEFAULT_SAVE_RATE = 0.1
BEHAVIORAL_MULTIPLIER = 10
QUALITY_CONFIDENCE_SAVES = 5
FRESHNESS_DECAY_DAYS = 14
NEW_POST_DAYS = 2
NEW_POST_BOOST = 1.5
DISCOVERY_SCORE = 1.0

# Legacy inline ranking
LEGACY_INTEREST_WEIGHT = 3
LEGACY_FOLLOW_BONUS = 2
LEGACY_ENGAGEMENT_WEIGHT = 2
LEGACY_FRESHNESS_DECAY_DAYS = 10

# Place category -> declared interest category bridge.
# Categories missing here (OTHER) have no interest counterpart.
CATEGORY_TO_INTEREST = MappingProxyType({
    Place.Category.RESTAURANT: InterestCategory.FOOD_DRINK,
    Place.Category.CAFE: InterestCategory.FOOD_DRINK,
    Place.Category.BAR: InterestCategory.FOOD_DRINK,
    Place.Category.MUSEUM: InterestCategory.ART_CULTURE,
    Place.Category.GALLERY: InterestCategory.ART_CULTURE,
    Place.Category.PARK: InterestCategory.OUTDOORS_NATURE,
    Place.Category.BEACH: InterestCategory.OUTDOORS_NATURE,
    Place.Category.VIEWPOINT: InterestCategory.OUTDOORS_NATURE,
    Place.Category.NIGHTCLUB: InterestCategory.NIGHTLIFE,
    Place.Category.MARKET: InterestCategory.SHOPPING,
    Place.Category.SHOP: InterestCategory.SHOPPING,
    Place.Category.MONUMENT: InterestCategory.HISTORY,
    Place.Category.LANDMARK: InterestCategory.HISTORY,
    Place.Category.TOUR: InterestCategory.ADVENTURE,
    Place.Category.ACTIVITY: InterestCategory.ADVENTURE,
    Place.Category.HOTEL: InterestCategory.RELAXATION,
    Place.Category.HOSTEL: InterestCategory.RELAXATION,
    Place.Category.HIDDEN_GEM: InterestCategory.LOCAL_EXPERIENCES,
})


def interest_for_category(place_category):
    """Maps a place category to its interest category, or None"""
    if not place_category:
        return None
    return CATEGORY_TO_INTEREST.get(place_category)
