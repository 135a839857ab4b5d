"""
Tests for Pydantic schemas.

Validates that data models enforce correct constraints and accept the
camelCase wire format.
"""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from cellarwise.schema import (
    ConsumptionRecord,
    DrinkingWindow,
    FlavorProfile,
    PriceRange,
    ReasoningResult,
    Recommendation,
    RecommendationContext,
    TasteProfile,
    Wine,
)


class TestWine:
    """Test Wine schema validation."""

    def test_camel_case_payload(self):
        """Wire names map onto snake_case fields."""
        wine = Wine.model_validate({
            "id": "w1",
            "type": "red",
            "vintage": 2015,
            "purchasePrice": 45.0,
            "externalData": {"agingPotential": 20, "decantingTime": 45, "vivinoId": "abc"},
        })
        assert wine.purchase_price == 45.0
        assert wine.external_data.aging_potential == 20
        assert wine.external_data.decanting_time == 45
        # Unknown external keys are kept
        assert wine.external_data.model_extra["vivinoId"] == "abc"

    def test_single_varietal_string_coerced(self):
        """A bare varietal string becomes a one-element list."""
        wine = Wine(id="w1", type="white", varietal="Riesling")
        assert wine.varietal == ["Riesling"]

    def test_null_text_fields_become_empty(self):
        """Database nulls do not break matching code."""
        wine = Wine.model_validate({"id": "w1", "type": "red", "region": None, "externalData": None})
        assert wine.region == ""
        assert wine.external_data.aging_potential is None

    def test_invalid_type_rejected(self):
        """Wine type must be one of the known categories."""
        with pytest.raises(ValidationError) as exc_info:
            Wine(id="w1", type="orange")
        assert "type" in str(exc_info.value)

    def test_negative_quantity_rejected(self):
        """Quantity on hand cannot be negative."""
        with pytest.raises(ValidationError):
            Wine(id="w1", type="red", quantity=-1)

    def test_rating_range(self):
        """Personal ratings are on a 0-10 scale."""
        with pytest.raises(ValidationError):
            Wine(id="w1", type="red", personal_rating=11)


class TestDrinkingWindow:
    """Test DrinkingWindow ordering repair."""

    def test_out_of_order_dates_clamped(self):
        """Later boundaries are pushed forward instead of rejecting the record."""
        window = DrinkingWindow(
            earliest_date=date(2020, 1, 1),
            peak_start_date=date(2019, 1, 1),
            peak_end_date=date(2018, 12, 31),
            latest_date=date(2017, 12, 31),
        )
        assert window.peak_start_date == date(2020, 1, 1)
        assert window.peak_end_date == date(2020, 1, 1)
        assert window.latest_date == date(2020, 1, 1)

    def test_dump_uses_wire_names(self):
        """Serialized windows use camelCase keys."""
        window = DrinkingWindow(
            earliest_date=date(2020, 1, 1),
            peak_start_date=date(2021, 1, 1),
            peak_end_date=date(2023, 12, 31),
            latest_date=date(2026, 12, 31),
            current_status="peak",
        )
        dumped = window.model_dump(mode="json", by_alias=True)
        assert dumped["peakStartDate"] == "2021-01-01"
        assert dumped["currentStatus"] == "peak"


class TestTasteProfile:
    """Test TasteProfile and its bundles."""

    def test_flavor_axes_within_range(self):
        """Flavor axes must be between 1 and 10."""
        with pytest.raises(ValidationError):
            FlavorProfile(tannins=0.5)

    def test_defaults(self):
        """An empty profile is valid and neutral."""
        profile = TasteProfile()
        assert profile.red_wine_preferences.body == "medium"
        assert profile.general_preferences.price_range is None

    def test_preferences_for_unbundled_type(self):
        """Rosé, dessert and fortified have no bundle."""
        assert TasteProfile().preferences_for("rosé") is None


class TestPriceRange:
    """Test PriceRange bounds."""

    def test_min_above_max_rejected(self):
        """min must not exceed max."""
        with pytest.raises(ValidationError):
            PriceRange(min=100, max=20)

    def test_contains_and_describe(self):
        """Bounds are inclusive."""
        price_range = PriceRange(min=20, max=50, currency="EUR")
        assert price_range.contains(20)
        assert price_range.contains(50)
        assert not price_range.contains(50.01)
        assert price_range.describe() == "20-50 EUR"


class TestRecommendationModels:
    """Test recommendation records."""

    def test_recommendation_is_immutable(self):
        """Recommendations cannot be changed once returned."""
        rec = Recommendation(
            id="r1", type="inventory", reasoning="Because", confidence=0.5, urgency_score=40
        )
        with pytest.raises(ValidationError):
            rec.confidence = 0.9

    def test_confidence_range(self):
        """Confidence is in [0, 1]."""
        with pytest.raises(ValidationError):
            Recommendation(id="r1", type="inventory", reasoning="x", confidence=1.2, urgency_score=0)

    def test_context_party_size(self):
        """Explicit companion count wins over the names list."""
        assert RecommendationContext(companions=["Ana", "Ben"]).party_size == 2
        assert RecommendationContext(companions=["Ana"], companion_count=5).party_size == 5

    def test_consumption_record_is_frozen(self):
        """History is append-only."""
        record = ConsumptionRecord(wine_id="w1", consumed_at=datetime(2024, 1, 1), rating=7)
        with pytest.raises(ValidationError):
            record.rating = 9

    def test_reasoning_result_confidence_bounds(self):
        """Reasoning-service confidences outside [0, 1] are rejected."""
        with pytest.raises(ValidationError):
            ReasoningResult.model_validate({"suggestions": [{"reasoning": "x", "confidence": 1.5}]})
