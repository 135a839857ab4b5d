"""
Cellarwise Constants and Enums

Centralized constants, enums, and magic values to eliminate string duplication
and improve type safety.
"""

from enum import Enum


# =======================
# WINE ATTRIBUTE ENUMS
# =======================

class WineType(str, Enum):
    """Wine type categories."""
    RED = "red"
    WHITE = "white"
    ROSE = "rosé"
    SPARKLING = "sparkling"
    DESSERT = "dessert"
    FORTIFIED = "fortified"


class DrinkingStatus(str, Enum):
    """Lifecycle status of a wine within its drinking window."""
    TOO_YOUNG = "too_young"
    READY = "ready"
    PEAK = "peak"
    DECLINING = "declining"
    OVER_HILL = "over_hill"

    @property
    def display(self) -> str:
        """Human-readable status text."""
        return _STATUS_DISPLAY[self]


_STATUS_DISPLAY = {
    DrinkingStatus.TOO_YOUNG: "Too Young",
    DrinkingStatus.READY: "Ready to Drink",
    DrinkingStatus.PEAK: "At Peak",
    DrinkingStatus.DECLINING: "Declining",
    DrinkingStatus.OVER_HILL: "Past Prime",
}


class RecommendationMode(str, Enum):
    """Request modes understood by the recommendation ranker."""
    TONIGHT = "tonight"
    PURCHASE = "purchase"
    CONTEXTUAL = "contextual"


class RecommendationType(str, Enum):
    """Whether a recommendation points at the cellar or at the shop."""
    INVENTORY = "inventory"
    PURCHASE = "purchase"


class UrgencyHint(str, Enum):
    """Caller-supplied urgency hint on a recommendation context."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertKind(str, Enum):
    """Drinking window alert kinds attached to recommendations."""
    LEAVING_PEAK = "leaving_peak"
    URGENT = "urgent"


class UrgencyLevel(Enum):
    """Urgency levels with thresholds and display strings."""
    CRITICAL = ("Drink Soon!", 80.0)
    HIGH = ("High Priority", 60.0)
    MEDIUM = ("Medium Priority", 40.0)
    LOW = ("Low Priority", 0.0)

    def __init__(self, display: str, threshold: float):
        self.display = display
        self.threshold = threshold

    @classmethod
    def from_score(cls, urgency_score: float) -> 'UrgencyLevel':
        """Get urgency level from a 0-100 urgency score."""
        if urgency_score >= cls.CRITICAL.threshold:
            return cls.CRITICAL
        elif urgency_score >= cls.HIGH.threshold:
            return cls.HIGH
        elif urgency_score >= cls.MEDIUM.threshold:
            return cls.MEDIUM
        else:
            return cls.LOW


# =======================
# ALGORITHM CONSTANTS
# =======================

class AgingConstants:
    """Drinking window arithmetic."""

    # Peak starts at 30% and ends at 70% of the aging potential
    PEAK_START_RATIO = 0.3
    PEAK_END_RATIO = 0.7

    # Floors (years after vintage) for the peak boundaries
    MIN_PEAK_START_YEARS = 2
    MIN_PEAK_END_YEARS = 4

    # Premium regions age longer than the type default
    PREMIUM_REGION_BONUS_YEARS = 3

    # Curated entries below this confidence are ignored
    MIN_CURATED_CONFIDENCE = 0.7

    EXTERNAL_DATA_CONFIDENCE = 0.9
    ALGORITHMIC_CONFIDENCE = 0.6
    DEFAULT_AGING_YEARS = 5

    # Ceiling for any aging potential; keeps window dates within calendar range
    MAX_AGING_YEARS = 100


class UrgencyConstants:
    """Drinking urgency scores (0-100)."""

    OVER_HILL = 100.0
    TOO_YOUNG = 10.0
    READY = 40.0

    # Peak: flat score until the last month, then 90 - days remaining
    PEAK = 50.0
    PEAK_CLOSING_DAYS = 30
    PEAK_CLOSING_BASE = 90.0

    # Declining: 70 - days/10, never below 60
    DECLINING_BASE = 70.0
    DECLINING_FLOOR = 60.0
    DECLINING_DAYS_DIVISOR = 10.0

    # Recommendation-level alerts
    LEAVING_PEAK_ALERT_DAYS = 90
    DECLINING_ALERT_DAYS = 180

    # Reasoning wording: "at its peak" above 80, "ready to drink" above 60
    PEAK_REASONING_THRESHOLD = 80.0
    READY_REASONING_THRESHOLD = 60.0

    # Minimum urgency for a wine to survive a high or medium urgency hint
    HIGH_HINT_MIN_URGENCY = 60.0
    MEDIUM_HINT_MIN_URGENCY = 30.0

    # Purchases carry no temporal urgency
    PURCHASE_URGENCY = 0.5

    MAX_SCORE = 100.0


class RankingConstants:
    """Composite ranking weights and personalization bumps."""

    URGENCY_WEIGHT = 0.6
    PERSONALIZATION_WEIGHT = 0.4

    BASE_PERSONALIZATION = 0.5
    PREFERRED_REGION_BONUS = 0.2
    PREFERRED_VARIETAL_BONUS = 0.2

    # Ratings are on a 0-10 scale; 5 is neutral
    NEUTRAL_RATING = 5.0
    RATING_WEIGHT = 0.1
    RECENT_RATINGS = 3

    # Fallback purchase suggestions built locally from gap analysis
    FALLBACK_CONFIDENCE = 0.5

    # Personalization above this is called a perfect match
    STRONG_MATCH_THRESHOLD = 0.7

    MAX_FOLLOW_UP_QUESTIONS = 2


class ServingConstants:
    """Serving guidance."""

    DECANT_MIN_AGE_YEARS = 8
    DEFAULT_DECANTING_MINUTES = 60
    SERVING_SIZE = "5 oz (150ml)"
    OPTIMAL_TIMING = "Serve immediately after opening"
