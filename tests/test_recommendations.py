"""
Tests for RecommendationRanker.

Covers the three request modes, snapshot fetching, input validation and
collaborator failure propagation.
"""

from datetime import date

import pytest

from cellarwise.constants import RecommendationType
from cellarwise.error_handling import InvalidInputError, PersistenceError, ReasoningServiceError
from cellarwise.recommendations import RecommendationRanker, aggregate_confidence, filter_candidates
from cellarwise.schema import (
    DrinkingWindow,
    ReasoningResult,
    ReasoningSuggestion,
    RecommendationContext,
    RecommendationRequest,
    TasteProfile,
    WineSuggestion,
)


@pytest.fixture
def cellar(make_wine):
    """Four wines at different points of their life in June 2024."""
    return [
        # over the hill: urgency 100
        make_wine("old", name="Old Red", vintage=2010),
        # Bordeaux Merlot at peak: urgency 50, personalization 0.9
        make_wine("bdx", name="Pomerol", vintage=2018, region="Bordeaux",
                  varietal=["Merlot"], purchase_price=80),
        # too young: urgency 10
        make_wine("young", name="Young Red", vintage=2023),
        # white at peak: urgency 50
        make_wine("white", name="Village White", vintage=2022, type="white"),
    ]


def _request(mode, cellar, taste_profile, context=None, **extra):
    data = {
        "user_id": "user-1",
        "mode": mode,
        "inventory": cellar,
        "taste_profile": taste_profile,
        "consumption_history": [],
        "context": context,
    }
    data.update(extra)
    return RecommendationRequest.model_validate(data)


class TestTonight:
    """Tonight mode: rank in-stock inventory."""

    def test_top_three_by_composite(self, cellar, taste_profile, now):
        """Over-the-hill beats a preferred peak wine; the young red is dropped."""
        response = RecommendationRanker().generate(_request("tonight", cellar, taste_profile), now)

        assert [rec.wine_id for rec in response.recommendations] == ["old", "bdx", "white"]
        assert [rec.confidence for rec in response.recommendations] == pytest.approx([0.8, 0.66, 0.5])
        assert response.confidence == 0.65
        assert [rec.wine_id for rec in response.alternative_options] == ["bdx", "white"]

    def test_annotations(self, cellar, taste_profile, now):
        """Every recommendation gets serving guidance and a fresh window."""
        response = RecommendationRanker().generate(_request("tonight", cellar, taste_profile), now)
        top = response.recommendations[0]

        assert top.type == RecommendationType.INVENTORY
        assert top.urgency_score == 100.0
        assert top.serving_recommendations.decanting_recommended is True
        assert top.wine.drinking_window.current_status.value == "over_hill"
        assert response.reasoning == (
            "Based on your inventory and preferences, I recommend the Old Red "
            "as it's at its peak drinking window."
        )
        assert "Bordeaux, one of your preferred regions" in response.recommendations[1].personalized_reasoning

    def test_follow_up_questions(self, cellar, taste_profile, now):
        """At most two questions, skipping what the context already answers."""
        context = {"occasion": "anniversary"}
        response = RecommendationRanker().generate(
            _request("tonight", cellar, taste_profile, context=context), now
        )
        assert response.follow_up_questions == [
            "What will you be eating with this wine?",
            "Would you like serving temperature and decanting recommendations?",
        ]
        assert response.reasoning.endswith("for your anniversary.")

    def test_empty_inventory(self, taste_profile, now):
        """An empty cellar is a valid state: zero confidence and guidance, no error."""
        response = RecommendationRanker().generate(_request("tonight", [], taste_profile), now)
        assert response.recommendations == []
        assert response.confidence == 0
        assert response.follow_up_questions

    def test_out_of_stock_wines_excluded(self, make_wine, taste_profile, now):
        """Wines with zero quantity are never recommended."""
        wines = [make_wine("gone", quantity=0), make_wine("here")]
        response = RecommendationRanker().generate(_request("tonight", wines, taste_profile), now)
        assert [rec.wine_id for rec in response.recommendations] == ["here"]

    def test_wines_without_vintage_rejected(self, make_wine, now):
        """A non-vintage wine with no stored window is a caller error, not an empty cellar."""
        wines = [make_wine("nv-1", vintage=None), make_wine("nv-2", vintage=None)]
        with pytest.raises(InvalidInputError, match="nv-1"):
            RecommendationRanker().generate(_request("tonight", wines, None), now)

    def test_non_vintage_with_stored_window_ranked(self, make_wine, now):
        """A stored window is enough to rank a non-vintage wine."""
        window = DrinkingWindow(
            earliest_date=date(2023, 1, 1),
            peak_start_date=date(2024, 1, 1),
            peak_end_date=date(2025, 12, 31),
            latest_date=date(2027, 12, 31),
        )
        wines = [make_wine("nv", vintage=None, type="sparkling", drinking_window=window)]
        response = RecommendationRanker().generate(_request("tonight", wines, None), now)
        assert [rec.wine_id for rec in response.recommendations] == ["nv"]
        assert response.recommendations[0].urgency_score == 50

    def test_deterministic(self, cellar, taste_profile, now):
        """Same snapshot and instant give the same ranking and scores."""
        ranker = RecommendationRanker()
        first = ranker.generate(_request("tonight", cellar, taste_profile), now)
        second = ranker.generate(_request("tonight", cellar, taste_profile), now)
        assert [(r.wine_id, r.confidence, r.urgency_score) for r in first.recommendations] == \
               [(r.wine_id, r.confidence, r.urgency_score) for r in second.recommendations]


class TestRequestValidation:
    """Caller errors are rejected explicitly."""

    def test_contextual_requires_context(self, cellar, taste_profile, now):
        """Contextual mode without context is a caller error."""
        with pytest.raises(InvalidInputError):
            RecommendationRanker().generate(_request("contextual", cellar, taste_profile), now)

    def test_unknown_mode(self, now):
        """Unknown modes fail schema validation."""
        with pytest.raises(InvalidInputError):
            RecommendationRanker().generate({"userId": "user-1", "mode": "weekly"}, now)

    def test_invalid_input_is_value_error(self, now):
        """InvalidInputError is also a ValueError."""
        with pytest.raises(ValueError):
            RecommendationRanker().generate({"userId": "", "mode": "tonight"}, now)

    def test_camel_case_payload(self, now):
        """Wire-format payloads are accepted."""
        payload = {
            "userId": "user-1",
            "mode": "tonight",
            "inventory": [{"id": "w1", "name": "Wire Wine", "vintage": 2018, "type": "red", "quantity": 2}],
            "consumptionHistory": [],
        }
        response = RecommendationRanker().generate(payload, now)
        assert response.recommendations[0].wine.name == "Wire Wine"
        assert "followUpQuestions" in response.model_dump(by_alias=True)


class TestContextual:
    """Contextual mode: filter, then pick."""

    def test_food_filter_local_ranking(self, cellar, taste_profile, now):
        """Lamb keeps reds only; without a reasoning service candidates are ranked locally."""
        context = {"occasion": "dinner party", "food_pairing": "roast lamb"}
        response = RecommendationRanker().generate(
            _request("contextual", cellar, taste_profile, context=context), now
        )
        assert [rec.wine_id for rec in response.recommendations] == ["old", "bdx", "young"]
        assert response.recommendations[0].reasoning == "This Old Red is perfect for dinner party."
        assert response.recommendations[0].pairing_notes.startswith("Excellent pairing")

    def test_price_range_filter(self, cellar, taste_profile, now):
        """Wines above budget are removed; unpriced wines pass."""
        context = {"price_range": {"min": 0, "max": 50}}
        response = RecommendationRanker().generate(
            _request("contextual", cellar, taste_profile, context=context), now
        )
        assert "bdx" not in [rec.wine_id for rec in response.recommendations]

    def test_high_urgency_keeps_peak_and_declining(self, cellar, now):
        """Urgency 'high' restricts to peak or declining wines."""
        refreshed = [RecommendationRanker().calculator.refresh(wine, now) for wine in cellar]
        candidates = filter_candidates(refreshed, RecommendationContext(urgency="high"))
        assert [wine.id for wine in candidates] == ["bdx", "white"]

    def test_wine_type_filter(self, cellar, now):
        """An explicit wine type narrows candidates."""
        candidates = filter_candidates(cellar, RecommendationContext(wine_type="white"))
        assert [wine.id for wine in candidates] == ["white"]

    def test_no_candidates(self, make_wine, taste_profile, now):
        """Nothing matching is a zero-confidence answer, not an error."""
        context = {"food_pairing": "steak"}
        response = RecommendationRanker().generate(
            _request("contextual", [make_wine(type="white")], taste_profile, context=context), now
        )
        assert response.recommendations == []
        assert response.confidence == 0
        assert len(response.follow_up_questions) == 2

    def test_reasoning_service_choices(self, cellar, taste_profile, fake_reasoning, now):
        """Suggestions outside the candidates are discarded; confidence blends both sides."""
        service = fake_reasoning(ReasoningResult(
            reasoning="Fish calls for something crisp.",
            suggestions=[
                ReasoningSuggestion(wine_id="bdx", reasoning="Not a candidate", confidence=1.0),
                ReasoningSuggestion(wine_id="white", reasoning="Crisp and fresh", confidence=0.9),
            ],
            follow_up_questions=["Is the fish grilled or poached?"],
        ))
        context = {"food_pairing": "grilled fish", "companion_count": 4}
        response = RecommendationRanker(reasoning_service=service).generate(
            _request("contextual", cellar, taste_profile, context=context), now
        )

        call = service.calls[0]
        assert [wine.id for wine in call["inventory"]] == ["white"]
        assert call["query"] == "Recommend wines from my inventory to pair with grilled fish for 4 people."

        assert [rec.wine_id for rec in response.recommendations] == ["white"]
        assert response.recommendations[0].confidence == pytest.approx(0.7)
        assert response.recommendations[0].reasoning == "Crisp and fresh"
        assert response.reasoning == "Fish calls for something crisp."
        assert response.follow_up_questions == ["Is the fish grilled or poached?"]

    def test_unusable_suggestions_fall_back(self, cellar, taste_profile, fake_reasoning, now):
        """With no usable suggestions the ranker ranks locally."""
        service = fake_reasoning(ReasoningResult(
            suggestions=[ReasoningSuggestion(wine_id="unknown", reasoning="?")]
        ))
        context = {"occasion": "picnic"}
        response = RecommendationRanker(reasoning_service=service).generate(
            _request("contextual", cellar, taste_profile, context=context), now
        )
        assert len(response.recommendations) == 3
        assert response.recommendations[0].confidence == pytest.approx(0.8)

    def test_reasoning_failure_propagates(self, cellar, taste_profile, fake_reasoning, now):
        """Collaborator failures reach the caller unchanged."""
        service = fake_reasoning(error=ReasoningServiceError("down"))
        with pytest.raises(ReasoningServiceError):
            RecommendationRanker(reasoning_service=service).generate(
                _request("contextual", cellar, taste_profile, context={"occasion": "x"}), now
            )


class TestPurchase:
    """Purchase mode: gap-driven suggestions."""

    def test_gap_fallback_without_service(self, make_wine, taste_profile, now):
        """Without a reasoning service, missing regions become suggestions."""
        wines = [make_wine("bdx", region="Bordeaux", varietal=["Merlot"])]
        response = RecommendationRanker().generate(_request("purchase", wines, taste_profile), now)

        assert [rec.suggested_wine.region for rec in response.recommendations] == [
            "Burgundy", "Tuscany", "Napa Valley",
        ]
        first = response.recommendations[0]
        assert first.type == RecommendationType.PURCHASE
        assert first.urgency_score == 0.5
        assert first.learning_opportunity
        assert first.confidence == pytest.approx(0.5)
        assert response.confidence == 0.5
        assert response.follow_up_questions == [
            "What's your budget for new wine purchases?",
            "Are there specific wine regions you're most interested in exploring?",
        ]
        assert response.reasoning.startswith("Based on your collection and taste profile, I recommend expanding into Burgundy, Tuscany")

    def test_reasoning_service_suggestions(self, make_wine, taste_profile, fake_reasoning, now):
        """Service confidence is averaged with personalization; over-budget wines are dropped."""
        service = fake_reasoning(ReasoningResult(
            suggestions=[
                ReasoningSuggestion(
                    reasoning="Classic Chablis",
                    confidence=0.8,
                    suggested_wine=WineSuggestion(
                        name="Chablis Premier Cru", region="Burgundy", type="white",
                        varietal=["Chardonnay"], estimated_price=40,
                    ),
                ),
                ReasoningSuggestion(
                    reasoning="Too expensive",
                    confidence=0.9,
                    suggested_wine=WineSuggestion(name="Grand Cru", estimated_price=500),
                ),
                ReasoningSuggestion(reasoning="No wine attached", confidence=0.9),
            ],
            educational_notes="Chablis is unoaked Chardonnay.",
        ))
        context = {"price_range": {"min": 20, "max": 100, "currency": "USD"}}
        wines = [make_wine("bdx", region="Bordeaux", varietal=["Merlot"])]

        response = RecommendationRanker(reasoning_service=service).generate(
            _request("purchase", wines, taste_profile, context=context), now
        )

        assert "My budget is 20-100 USD." in service.calls[0]["query"]
        assert [rec.suggested_wine.name for rec in response.recommendations] == ["Chablis Premier Cru"]
        assert response.recommendations[0].confidence == pytest.approx(0.75)
        assert response.recommendations[0].serving_recommendations.temperature.celsius == 10
        assert response.educational_notes == "Chablis is unoaked Chardonnay."

    def test_every_service_suggestion_annotated(self, taste_profile, fake_reasoning, now):
        """All usable suggestions come back, not just the first few."""
        regions = ["Rioja", "Mosel", "Douro", "Barossa Valley", "Champagne"]
        service = fake_reasoning(ReasoningResult(suggestions=[
            ReasoningSuggestion(
                reasoning=f"Explore {region}",
                confidence=0.6,
                suggested_wine=WineSuggestion(name=f"{region} pick", region=region),
            )
            for region in regions
        ]))
        response = RecommendationRanker(reasoning_service=service).generate(
            _request("purchase", [], taste_profile), now
        )
        assert [rec.suggested_wine.region for rec in response.recommendations] == regions

    def test_profile_budget_used(self, fake_reasoning, now):
        """The profile's price range applies when the context has none."""
        profile = TasteProfile(general_preferences={"price_range": {"min": 10, "max": 30}})
        service = fake_reasoning()
        RecommendationRanker(reasoning_service=service).generate(_request("purchase", [], profile), now)
        assert "My budget is 10-30 USD." in service.calls[0]["query"]

    def test_service_failure_propagates(self, taste_profile, fake_reasoning, now):
        """A configured service that fails is not replaced by the fallback."""
        service = fake_reasoning(error=ReasoningServiceError("timeout"))
        with pytest.raises(ReasoningServiceError):
            RecommendationRanker(reasoning_service=service).generate(_request("purchase", [], taste_profile), now)


class TestSnapshotFetch:
    """Missing snapshot parts come from the repository."""

    def test_fetches_missing_parts(self, make_wine, taste_profile, fake_repository, now):
        """Inventory, profile and history are fetched when omitted."""
        repository = fake_repository(wines=[make_wine("stored")], taste_profile=taste_profile)
        ranker = RecommendationRanker(repository=repository)

        response = ranker.generate({"user_id": "user-1", "mode": "tonight"}, now)

        assert [rec.wine_id for rec in response.recommendations] == ["stored"]
        assert repository.history_limits == [50]

    def test_request_data_wins(self, make_wine, fake_repository, now):
        """Data carried by the request is not refetched."""
        repository = fake_repository(wines=[make_wine("stored")])
        ranker = RecommendationRanker(repository=repository)
        request = _request("tonight", [make_wine("inline")], None)

        response = ranker.generate(request, now)

        assert [rec.wine_id for rec in response.recommendations] == ["inline"]

    def test_persistence_failure_propagates(self, now):
        """Repository errors reach the caller."""
        class BrokenRepository:
            def fetch_wines(self, user_id):
                raise PersistenceError("db down")

        with pytest.raises(PersistenceError):
            RecommendationRanker(repository=BrokenRepository()).generate(
                {"user_id": "user-1", "mode": "tonight"}, now
            )


class TestConfidenceAggregation:
    """aggregate_confidence."""

    def test_empty_is_zero(self):
        """No recommendations, no confidence."""
        assert aggregate_confidence([]) == 0.0
