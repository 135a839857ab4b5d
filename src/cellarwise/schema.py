"""Pydantic schemas for Cellarwise data validation.

Python code uses snake_case field names; every model also accepts and can
emit the camelCase names used on the wire (``peakStartDate``,
``externalData``, ``followUpQuestions``...) via ``model_dump(by_alias=True)``.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, confloat, field_validator, model_validator
from pydantic.alias_generators import to_camel

from cellarwise.constants import (
    AlertKind,
    DrinkingStatus,
    RecommendationMode,
    RecommendationType,
    UrgencyHint,
    WineType,
)

logger = logging.getLogger(__name__)


class CellarModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =======================
# WINES
# =======================

def order_window_dates(
    earliest: date,
    peak_start: date,
    peak_end: date,
    latest: date
) -> Tuple[date, date, date, date]:
    """
    Clamp the four window dates into non-decreasing order.

    Later boundaries are pushed forward, never earlier ones back.
    """
    peak_start = max(peak_start, earliest)
    peak_end = max(peak_end, peak_start)
    latest = max(latest, peak_end)
    return earliest, peak_start, peak_end, latest


class DrinkingWindow(CellarModel):
    """Derived drinking window. ``current_status`` is a cache, refresh before use."""

    earliest_date: date = Field(..., description="First acceptable drinking date")
    peak_start_date: date = Field(..., description="Start of the peak window")
    peak_end_date: date = Field(..., description="End of the peak window")
    latest_date: date = Field(..., description="Last acceptable drinking date")
    current_status: Optional[DrinkingStatus] = Field(None, description="Cached lifecycle status")

    @model_validator(mode="after")
    def _repair_ordering(self) -> 'DrinkingWindow':
        original = (self.earliest_date, self.peak_start_date, self.peak_end_date, self.latest_date)
        ordered = order_window_dates(*original)
        if ordered != original:
            logger.warning(f"Drinking window out of order, clamping {original} -> {ordered}")
            _, self.peak_start_date, self.peak_end_date, self.latest_date = ordered
        return self


class ProfessionalRating(CellarModel):
    source: str
    score: float
    max_score: float = 100.0


class ExternalWineData(CellarModel):
    """Data bag from external wine databases; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    aging_potential: Optional[float] = Field(None, description="Authoritative aging potential in years")
    alcohol_content: Optional[float] = Field(None, ge=0, le=100, description="Alcohol by volume (%)")
    decanting_time: Optional[int] = Field(None, ge=0, description="Suggested decanting time (minutes)")
    professional_ratings: List[ProfessionalRating] = Field(default_factory=list)
    tasting_notes: Optional[str] = None


class Wine(CellarModel):
    """A bottle (or case) in a user's cellar."""

    id: str = Field(..., description="Unique identifier for the wine")
    user_id: Optional[str] = Field(None, description="Owning user")
    name: str = Field("", description="Wine name")
    producer: str = Field("", description="Producer/winery name")
    vintage: Optional[int] = Field(None, ge=1000, le=2100, description="Vintage year")
    type: WineType = Field(..., description="Wine type")
    region: str = Field("", description="Wine region")
    country: str = Field("", description="Country of origin")
    varietal: List[str] = Field(default_factory=list, description="Grape varietal(s)")
    quantity: int = Field(0, ge=0, description="Bottles on hand")
    purchase_price: Optional[float] = Field(None, ge=0, description="Purchase price per bottle")
    purchase_date: Optional[date] = None
    personal_rating: Optional[float] = Field(None, ge=0, le=10, description="Personal rating (0-10)")
    personal_notes: Optional[str] = None
    external_data: ExternalWineData = Field(default_factory=ExternalWineData)
    drinking_window: Optional[DrinkingWindow] = None

    @field_validator("varietal", mode="before")
    @classmethod
    def _coerce_varietal(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @field_validator("external_data", mode="before")
    @classmethod
    def _coerce_external_data(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("name", "producer", "region", "country", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return "" if value is None else value


# =======================
# TASTE PROFILE & HISTORY
# =======================

class FlavorProfile(CellarModel):
    """Preference bundle for one wine type."""

    fruitiness: float = Field(5.0, ge=1.0, le=10.0)
    earthiness: float = Field(5.0, ge=1.0, le=10.0)
    oakiness: float = Field(5.0, ge=1.0, le=10.0)
    acidity: float = Field(5.0, ge=1.0, le=10.0)
    tannins: float = Field(5.0, ge=1.0, le=10.0)
    sweetness: float = Field(5.0, ge=1.0, le=10.0)
    body: Literal["light", "medium", "full"] = "medium"
    preferred_regions: List[str] = Field(default_factory=list)
    preferred_varietals: List[str] = Field(default_factory=list)
    disliked_characteristics: List[str] = Field(default_factory=list)


class PriceRange(CellarModel):
    min: float = Field(0.0, ge=0)
    max: float = Field(..., ge=0)
    currency: str = "USD"

    @model_validator(mode="after")
    def _check_bounds(self) -> 'PriceRange':
        if self.min > self.max:
            raise ValueError(f"price range min {self.min} exceeds max {self.max}")
        return self

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max

    def describe(self) -> str:
        return f"{self.min:g}-{self.max:g} {self.currency}"


class GeneralPreferences(CellarModel):
    price_range: Optional[PriceRange] = None
    occasion_preferences: List[str] = Field(default_factory=list)
    occasion_weights: Dict[str, float] = Field(default_factory=dict)
    food_pairing_importance: float = Field(5.0, ge=1.0, le=10.0)


class TasteProfile(CellarModel):
    """A user's taste profile: per-type bundles plus general preferences."""

    user_id: Optional[str] = None
    red_wine_preferences: FlavorProfile = Field(default_factory=FlavorProfile)
    white_wine_preferences: FlavorProfile = Field(default_factory=FlavorProfile)
    sparkling_preferences: FlavorProfile = Field(default_factory=FlavorProfile)
    general_preferences: GeneralPreferences = Field(default_factory=GeneralPreferences)
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    last_updated: Optional[datetime] = None

    def preferences_for(self, wine_type: Optional[WineType]) -> Optional[FlavorProfile]:
        """Return the bundle relevant to a wine type, if the profile keeps one."""
        if wine_type == WineType.RED:
            return self.red_wine_preferences
        if wine_type == WineType.WHITE:
            return self.white_wine_preferences
        if wine_type == WineType.SPARKLING:
            return self.sparkling_preferences
        return None


class ConsumptionRecord(CellarModel):
    """Append-only record of a bottle being opened."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user_id: Optional[str] = None
    wine_id: str
    consumed_at: datetime
    rating: Optional[float] = Field(None, ge=0, le=10, description="Rating on a 0-10 scale")
    notes: Optional[str] = None
    occasion: Optional[str] = None
    food_pairing: Optional[str] = None


# =======================
# RECOMMENDATIONS
# =======================

class RecommendationContext(CellarModel):
    """Request-scoped constraints for a recommendation."""

    occasion: Optional[str] = None
    food_pairing: Optional[str] = None
    urgency: Optional[UrgencyHint] = None
    price_range: Optional[PriceRange] = None
    companions: List[str] = Field(default_factory=list)
    companion_count: Optional[int] = Field(None, ge=0)
    wine_type: Optional[WineType] = None
    time_of_day: Optional[Literal["morning", "afternoon", "evening", "late_night"]] = None

    @property
    def party_size(self) -> int:
        """Number of companions, explicit count first."""
        if self.companion_count is not None:
            return self.companion_count
        return len(self.companions)


class WineSuggestion(CellarModel):
    """A wine to buy, as described by the reasoning service."""

    name: str
    producer: str = ""
    vintage: Optional[int] = Field(None, ge=1000, le=2100)
    region: str = ""
    country: str = ""
    varietal: List[str] = Field(default_factory=list)
    type: Optional[WineType] = None
    estimated_price: Optional[float] = Field(None, ge=0)

    @field_validator("varietal", mode="before")
    @classmethod
    def _coerce_varietal(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class ServingTemperature(CellarModel):
    celsius: int
    fahrenheit: int


class ServingRecommendations(CellarModel):
    temperature: Optional[ServingTemperature] = None
    glass_type: Optional[str] = None
    decanting_recommended: bool = False
    decanting_time: Optional[int] = Field(None, description="Decanting time (minutes)")
    serving_size: Optional[str] = None
    optimal_timing: Optional[str] = None


class DrinkingWindowAlert(CellarModel):
    status: AlertKind
    message: str
    days_remaining: Optional[int] = None


class Recommendation(CellarModel):
    """A single ranked recommendation. Immutable once returned."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: Optional[str] = None
    type: RecommendationType
    wine_id: Optional[str] = None
    wine: Optional[Wine] = None
    suggested_wine: Optional[WineSuggestion] = None
    reasoning: str
    personalized_reasoning: str = ""
    confidence: float = Field(..., ge=0.0, le=1.0)
    urgency_score: float = Field(..., ge=0.0, le=100.0)
    serving_recommendations: Optional[ServingRecommendations] = None
    pairing_notes: Optional[str] = None
    learning_opportunity: Optional[str] = None
    drinking_window_alert: Optional[DrinkingWindowAlert] = None
    context: Optional[RecommendationContext] = None
    created_at: datetime = Field(default_factory=datetime.now)


class RecommendationRequest(CellarModel):
    """Inbound request. Missing snapshot parts are fetched from persistence."""

    user_id: str = Field(..., min_length=1)
    mode: RecommendationMode
    context: Optional[RecommendationContext] = None
    inventory: Optional[List[Wine]] = None
    taste_profile: Optional[TasteProfile] = None
    consumption_history: Optional[List[ConsumptionRecord]] = None


class RecommendationResponse(CellarModel):
    recommendations: List[Recommendation] = Field(default_factory=list)
    reasoning: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    alternative_options: Optional[List[Recommendation]] = None
    educational_notes: Optional[str] = None
    follow_up_questions: Optional[List[str]] = None


# =======================
# REASONING SERVICE VALIDATION SCHEMAS
# =======================

class ReasoningSuggestion(CellarModel):
    """One entry returned by the reasoning service."""

    reasoning: str = Field(..., min_length=1)
    confidence: confloat(ge=0.0, le=1.0) = 0.5
    wine_id: Optional[str] = None
    suggested_wine: Optional[WineSuggestion] = None


class ReasoningResult(CellarModel):
    """Validated reasoning-service response."""

    suggestions: List[ReasoningSuggestion] = Field(default_factory=list)
    reasoning: Optional[str] = None
    educational_notes: Optional[str] = None
    follow_up_questions: List[str] = Field(default_factory=list)
