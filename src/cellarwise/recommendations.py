"""
Recommendation ranking.

RecommendationRanker is the single entry point for the three request
modes:

- tonight: rank in-stock inventory by composite score (urgency and
  personalization), keep the top three
- purchase: analyze collection gaps and ask the reasoning service what
  to buy; suggestions carry a fixed, non-temporal urgency
- contextual: filter inventory by budget, urgency hint, wine type and
  food, then let the reasoning service pick among the survivors

Every recommendation is annotated with serving guidance and, when the
wine is close to the end of its peak or of its window, an alert.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from cellarwise.config import CONSUMPTION_HISTORY_LIMIT, TONIGHT_TOP_N
from cellarwise.constants import (
    DrinkingStatus,
    RankingConstants,
    RecommendationMode,
    RecommendationType,
    UrgencyConstants,
    UrgencyHint,
)
from cellarwise.drinking_window import (
    DrinkingWindowCalculator,
    drinking_window_advice,
    generate_drinking_window_context,
)
from cellarwise.error_handling import InvalidInputError
from cellarwise.gap_analysis import GapAnalysis, GapAnalyzer
from cellarwise.personalization import (
    HeuristicPersonalizationScorer,
    PersonalizationStrategy,
    RankingWeights,
    recent_consumption_for,
)
from cellarwise.reasoning import ReasoningService
from cellarwise.repository import CellarRepository
from cellarwise.schema import (
    ConsumptionRecord,
    PriceRange,
    ReasoningSuggestion,
    Recommendation,
    RecommendationContext,
    RecommendationRequest,
    RecommendationResponse,
    TasteProfile,
    Wine,
    WineSuggestion,
)
from cellarwise.serving import drinking_window_alert, matches_food, pairing_notes, serving_recommendations
from cellarwise.utils import DateLike, logger, resolve_now

HIGH_URGENCY_STATUSES = (DrinkingStatus.PEAK, DrinkingStatus.DECLINING)

EMPTY_INVENTORY_REASONING = (
    "Your wine inventory appears to be empty. Consider purchasing some wines "
    "to get personalized recommendations for tonight."
)
EMPTY_INVENTORY_QUESTIONS = [
    "Would you like recommendations for wines to purchase?",
    "What's your budget for building a wine collection?",
]
PURCHASE_LEARNING_NOTE = "This wine will help you explore new regions and styles."


@dataclass(frozen=True)
class ScoredWine:
    """A candidate with its ranking signals."""
    wine: Wine
    urgency: float
    personalization: float
    composite: float


@dataclass
class Snapshot:
    """Everything known about a user for one request."""
    inventory: List[Wine]
    taste_profile: Optional[TasteProfile]
    consumption_history: List[ConsumptionRecord]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def aggregate_confidence(recommendations: Sequence[Recommendation]) -> float:
    """Mean per-recommendation confidence, rounded to 2 places; 0 when empty."""
    if not recommendations:
        return 0.0
    return round(_mean([rec.confidence for rec in recommendations]), 2)


def filter_candidates(wines: Sequence[Wine], context: Optional[RecommendationContext]) -> List[Wine]:
    """
    In-stock wines compatible with a request context.

    - price range: wines without a recorded price pass
    - urgency 'high': only peak or declining wines (status must be fresh)
    - wine type: exact match
    - food: coarse type heuristic, unmatched food passes
    """
    candidates = [wine for wine in wines if wine.quantity > 0]
    if context is None:
        return candidates

    if context.price_range is not None:
        candidates = [
            wine for wine in candidates
            if wine.purchase_price is None or context.price_range.contains(wine.purchase_price)
        ]

    if context.urgency == UrgencyHint.HIGH:
        candidates = [
            wine for wine in candidates
            if wine.drinking_window is not None
            and wine.drinking_window.current_status in HIGH_URGENCY_STATUSES
        ]

    if context.wine_type is not None:
        candidates = [wine for wine in candidates if wine.type == context.wine_type]

    if context.food_pairing:
        candidates = [wine for wine in candidates if matches_food(wine, context.food_pairing)]

    return candidates


class RecommendationRanker:
    """
    Orchestrates snapshot loading, scoring and annotation for all modes.

    Collaborators are optional. Without a repository, requests must carry
    their own snapshot (missing parts count as empty). Without a
    reasoning service, contextual mode ranks locally and purchase mode
    falls back to gap-derived suggestions.
    """

    def __init__(
        self,
        reasoning_service: Optional[ReasoningService] = None,
        repository: Optional[CellarRepository] = None,
        calculator: Optional[DrinkingWindowCalculator] = None,
        scorer: Optional[PersonalizationStrategy] = None,
        weights: Optional[RankingWeights] = None,
        gap_analyzer: Optional[GapAnalyzer] = None,
        top_n: int = TONIGHT_TOP_N
    ):
        self.reasoning_service = reasoning_service
        self.repository = repository
        self.calculator = calculator or DrinkingWindowCalculator()
        self.scorer = scorer or HeuristicPersonalizationScorer()
        self.weights = weights or RankingWeights()
        self.gap_analyzer = gap_analyzer or GapAnalyzer()
        self.top_n = top_n

    # ===== ENTRY POINT =====

    def generate(
        self,
        request: Union[RecommendationRequest, Dict[str, Any]],
        now: Optional[DateLike] = None
    ) -> RecommendationResponse:
        """
        Produce recommendations for a request.

        Args:
            request: RecommendationRequest or its dict/JSON-shaped equivalent
            now: Evaluation instant (defaults to current time)

        Returns:
            RecommendationResponse

        Raises:
            InvalidInputError: Malformed request, contextual mode without context,
                or an inventory wine with neither vintage nor stored window
            ReasoningServiceError: The reasoning service failed
            PersistenceError: Snapshot fetch failed
        """
        if not isinstance(request, RecommendationRequest):
            try:
                request = RecommendationRequest.model_validate(request)
            except ValidationError as e:
                raise InvalidInputError(f"Invalid recommendation request: {e}") from e

        if request.mode == RecommendationMode.CONTEXTUAL and request.context is None:
            raise InvalidInputError("Contextual recommendations require a context")

        current = resolve_now(now)
        snapshot = self.load_snapshot(request)
        inventory = self._refresh_inventory(snapshot.inventory, current)

        logger.info(
            f"Generating {request.mode.value} recommendations for {request.user_id} "
            f"({len(inventory)} wines)"
        )

        if request.mode == RecommendationMode.TONIGHT:
            response = self._tonight(request, snapshot, inventory, current)
        elif request.mode == RecommendationMode.PURCHASE:
            response = self._purchase(request, snapshot, inventory, current)
        else:
            response = self._contextual(request, snapshot, inventory, current)

        logger.info(
            f"Returning {len(response.recommendations)} {request.mode.value} recommendations "
            f"(confidence {response.confidence})"
        )
        return response

    def load_snapshot(self, request: RecommendationRequest) -> Snapshot:
        """Request data, with missing parts fetched from the repository."""
        inventory = request.inventory
        taste_profile = request.taste_profile
        history = request.consumption_history

        if self.repository is not None:
            if inventory is None:
                inventory = self.repository.fetch_wines(request.user_id)
            if taste_profile is None:
                taste_profile = self.repository.fetch_taste_profile(request.user_id)
            if history is None:
                history = self.repository.fetch_consumption_history(
                    request.user_id, CONSUMPTION_HISTORY_LIMIT
                )

        return Snapshot(
            inventory=list(inventory or []),
            taste_profile=taste_profile,
            consumption_history=list(history or []),
        )

    # ===== SCORING =====

    def _refresh_inventory(self, wines: Sequence[Wine], now: datetime) -> List[Wine]:
        """Refresh every window; a wine that cannot be placed in time rejects the request."""
        return [self.calculator.refresh(wine, now) for wine in wines]

    def score_wine(
        self,
        wine: Wine,
        snapshot: Snapshot,
        now: datetime
    ) -> ScoredWine:
        """Urgency, personalization and composite for one refreshed wine."""
        urgency = self.calculator.status_machine.urgency_score(wine.drinking_window, now)
        recent = recent_consumption_for(wine.id, snapshot.consumption_history)
        personalization = self.scorer.score(wine, snapshot.taste_profile, recent)
        composite = self.weights.composite(urgency, personalization)

        logger.debug(
            f"{wine.id}: urgency={urgency:.1f} personalization={personalization:.2f} "
            f"composite={composite:.3f}"
        )
        return ScoredWine(wine, urgency, personalization, composite)

    def rank(self, wines: Sequence[Wine], snapshot: Snapshot, now: datetime) -> List[ScoredWine]:
        """Score and sort descending by composite; ties keep input order."""
        scored = [self.score_wine(wine, snapshot, now) for wine in wines]
        return sorted(scored, key=lambda item: item.composite, reverse=True)

    # ===== ANNOTATION =====

    def _inventory_recommendation(
        self,
        request: RecommendationRequest,
        snapshot: Snapshot,
        scored: ScoredWine,
        confidence: float,
        reasoning: str,
        now: datetime
    ) -> Recommendation:
        wine = scored.wine
        context = request.context
        food = context.food_pairing if context else None

        personalized = [self._personalized_reasoning(scored)]
        personalized.extend(
            f"It {reason}." for reason in self._explain(wine, snapshot.taste_profile)
        )
        personalized.append(generate_drinking_window_context(wine, now, self.calculator))

        return Recommendation(
            id=str(uuid.uuid4()),
            user_id=request.user_id,
            type=RecommendationType.INVENTORY,
            wine_id=wine.id,
            wine=wine,
            reasoning=reasoning,
            personalized_reasoning=" ".join(personalized),
            confidence=round(confidence, 4),
            urgency_score=scored.urgency,
            serving_recommendations=serving_recommendations(wine, now),
            pairing_notes=pairing_notes(wine, food),
            drinking_window_alert=drinking_window_alert(wine.drinking_window, now),
            context=context,
            created_at=now,
        )

    def _explain(self, wine: Wine, taste_profile: Optional[TasteProfile]) -> List[str]:
        # Only scorers that can explain themselves contribute reasons
        explain = getattr(self.scorer, "explain", None)
        if explain is None:
            return []
        return explain(wine, taste_profile)

    @staticmethod
    def _personalized_reasoning(scored: ScoredWine) -> str:
        wine = scored.wine
        vintage = f"{wine.vintage} " if wine.vintage else ""
        text = f"This {vintage}{wine.name}"
        if wine.producer:
            text += f" from {wine.producer}"

        if scored.urgency > UrgencyConstants.PEAK_REASONING_THRESHOLD:
            text += " is at its peak drinking window and should be enjoyed soon."
        elif scored.urgency > UrgencyConstants.READY_REASONING_THRESHOLD:
            text += " is ready to drink and would be excellent tonight."
        else:
            text += " matches your taste preferences well."
        return text

    # ===== TONIGHT =====

    def _tonight(
        self,
        request: RecommendationRequest,
        snapshot: Snapshot,
        inventory: List[Wine],
        now: datetime
    ) -> RecommendationResponse:
        candidates = [wine for wine in inventory if wine.quantity > 0]
        if not candidates:
            logger.info(f"No wines in stock for {request.user_id}")
            return RecommendationResponse(
                recommendations=[],
                reasoning=EMPTY_INVENTORY_REASONING,
                confidence=0.0,
                follow_up_questions=list(EMPTY_INVENTORY_QUESTIONS),
            )

        top = self.rank(candidates, snapshot, now)[:self.top_n]
        context = request.context

        recommendations = [
            self._inventory_recommendation(
                request,
                snapshot,
                scored,
                confidence=scored.composite,
                reasoning=self._tonight_reasoning(scored, context),
                now=now,
            )
            for scored in top
        ]

        advice = drinking_window_advice(candidates, now, self.calculator)["advice"]
        return RecommendationResponse(
            recommendations=recommendations,
            reasoning=self._tonight_reasoning(top[0], context),
            confidence=aggregate_confidence(recommendations),
            alternative_options=recommendations[1:] or None,
            educational_notes=advice or None,
            follow_up_questions=self._tonight_questions(context),
        )

    @staticmethod
    def _tonight_reasoning(scored: ScoredWine, context: Optional[RecommendationContext]) -> str:
        text = f"Based on your inventory and preferences, I recommend the {scored.wine.name}"
        if scored.urgency > UrgencyConstants.PEAK_REASONING_THRESHOLD:
            text += " as it's at its peak drinking window"
        elif scored.personalization > RankingConstants.STRONG_MATCH_THRESHOLD:
            text += " as it matches your taste preferences perfectly"
        if context and context.occasion:
            text += f" for your {context.occasion}"
        return text + "."

    @staticmethod
    def _tonight_questions(context: Optional[RecommendationContext]) -> List[str]:
        questions = []
        if not (context and context.food_pairing):
            questions.append("What will you be eating with this wine?")
        if not (context and context.occasion):
            questions.append("What's the occasion for tonight's wine?")
        questions.append("Would you like serving temperature and decanting recommendations?")
        return questions[:RankingConstants.MAX_FOLLOW_UP_QUESTIONS]

    # ===== PURCHASE =====

    def _purchase(
        self,
        request: RecommendationRequest,
        snapshot: Snapshot,
        inventory: List[Wine],
        now: datetime
    ) -> RecommendationResponse:
        gaps = self.gap_analyzer.analyze(snapshot.taste_profile, snapshot.consumption_history, inventory)
        price_range = self._budget(request.context, snapshot.taste_profile)
        query = self._purchase_query(gaps, price_range)

        educational_notes = None
        follow_ups: List[str] = []
        if self.reasoning_service is not None:
            result = self.reasoning_service.suggest(query, request.context, snapshot.taste_profile, inventory)
            suggestions = result.suggestions
            educational_notes = result.educational_notes
            follow_ups = result.follow_up_questions
        else:
            logger.info("No reasoning service configured, using gap-derived purchase suggestions")
            suggestions = self._gap_suggestions(gaps)

        recommendations = []
        for suggestion in suggestions:
            wine = suggestion.suggested_wine
            if wine is None:
                logger.warning("Discarding purchase suggestion without a wine description")
                continue
            if price_range and wine.estimated_price is not None and not price_range.contains(wine.estimated_price):
                logger.warning(f"Discarding {wine.name}: {wine.estimated_price} outside {price_range.describe()}")
                continue
            recommendations.append(self._purchase_recommendation(request, snapshot, suggestion, wine, now))

        if recommendations:
            reasoning = self._purchase_reasoning(gaps, price_range)
        elif gaps.has_gaps:
            reasoning = "No purchase suggestions fit your budget right now."
        else:
            reasoning = "Your collection already covers the regions and styles we track."

        return RecommendationResponse(
            recommendations=recommendations,
            reasoning=reasoning,
            confidence=aggregate_confidence(recommendations),
            educational_notes=educational_notes,
            follow_up_questions=(follow_ups or self._purchase_questions(gaps, price_range))[
                :RankingConstants.MAX_FOLLOW_UP_QUESTIONS
            ],
        )

    def _purchase_recommendation(
        self,
        request: RecommendationRequest,
        snapshot: Snapshot,
        suggestion: ReasoningSuggestion,
        wine: WineSuggestion,
        now: datetime
    ) -> Recommendation:
        personalization = self.scorer.score(wine, snapshot.taste_profile)
        context = request.context

        return Recommendation(
            id=str(uuid.uuid4()),
            user_id=request.user_id,
            type=RecommendationType.PURCHASE,
            suggested_wine=wine,
            reasoning=suggestion.reasoning,
            personalized_reasoning="This wine would expand your collection based on your preferences.",
            confidence=round(_mean([suggestion.confidence, personalization]), 4),
            # Purchases carry no temporal urgency
            urgency_score=UrgencyConstants.PURCHASE_URGENCY,
            serving_recommendations=serving_recommendations(wine, now),
            pairing_notes=pairing_notes(wine, context.food_pairing if context else None),
            learning_opportunity=PURCHASE_LEARNING_NOTE,
            context=context,
            created_at=now,
        )

    @staticmethod
    def _budget(
        context: Optional[RecommendationContext],
        taste_profile: Optional[TasteProfile]
    ) -> Optional[PriceRange]:
        if context and context.price_range:
            return context.price_range
        if taste_profile:
            return taste_profile.general_preferences.price_range
        return None

    def _gap_suggestions(self, gaps: GapAnalysis) -> List[ReasoningSuggestion]:
        suggestions = [
            ReasoningSuggestion(
                reasoning=f"Explore {region}, a region missing from your collection.",
                confidence=RankingConstants.FALLBACK_CONFIDENCE,
                suggested_wine=WineSuggestion(name=f"A wine from {region}", region=region),
            )
            for region in gaps.missing_regions
        ]
        suggestions.extend(
            ReasoningSuggestion(
                reasoning=f"Try {varietal}, a grape you haven't explored yet.",
                confidence=RankingConstants.FALLBACK_CONFIDENCE,
                suggested_wine=WineSuggestion(name=f"A {varietal}", varietal=[varietal]),
            )
            for varietal in gaps.missing_varietals
        )
        return suggestions[:self.top_n]

    @staticmethod
    def _purchase_query(gaps: GapAnalysis, price_range: Optional[PriceRange]) -> str:
        query = "What wines should I buy to expand my collection?"
        if gaps.missing_regions:
            query += f" I'm missing wines from {', '.join(gaps.missing_regions[:3])}."
        if gaps.missing_varietals:
            query += f" I haven't tried {', '.join(gaps.missing_varietals[:3])}."
        if price_range:
            query += f" My budget is {price_range.describe()}."
        return query

    @staticmethod
    def _purchase_reasoning(gaps: GapAnalysis, price_range: Optional[PriceRange]) -> str:
        text = "Based on your collection and taste profile, I recommend"
        if gaps.missing_regions:
            text += f" expanding into {', '.join(gaps.missing_regions[:2])}"
            if gaps.missing_varietals:
                text += " and"
        if gaps.missing_varietals:
            text += f" trying {', '.join(gaps.missing_varietals[:2])}"
        if not gaps.missing_regions and not gaps.missing_varietals:
            text += " these wines"
        if price_range:
            text += f" within your {price_range.describe()} budget"
        return text + "."

    @staticmethod
    def _purchase_questions(gaps: GapAnalysis, price_range: Optional[PriceRange]) -> List[str]:
        questions = []
        if price_range is None:
            questions.append("What's your budget for new wine purchases?")
        if len(gaps.missing_regions) > 3:
            questions.append("Are there specific wine regions you're most interested in exploring?")
        questions.append("Would you like recommendations for wine shops or online retailers?")
        return questions

    # ===== CONTEXTUAL =====

    def _contextual(
        self,
        request: RecommendationRequest,
        snapshot: Snapshot,
        inventory: List[Wine],
        now: datetime
    ) -> RecommendationResponse:
        context = request.context
        candidates = filter_candidates(inventory, context)
        logger.info(f"{len(candidates)} of {len(inventory)} wines match the request context")

        if not candidates:
            return RecommendationResponse(
                recommendations=[],
                reasoning="None of the wines in your inventory match this request.",
                confidence=0.0,
                follow_up_questions=self._contextual_questions(context)[
                    :RankingConstants.MAX_FOLLOW_UP_QUESTIONS
                ] or None,
            )

        scored_by_id = {item.wine.id: item for item in self.rank(candidates, snapshot, now)}

        recommendations: List[Recommendation] = []
        reasoning = None
        educational_notes = None
        follow_ups: List[str] = []

        if self.reasoning_service is not None:
            result = self.reasoning_service.suggest(
                self._contextual_query(context), context, snapshot.taste_profile, candidates
            )
            reasoning = result.reasoning
            educational_notes = result.educational_notes
            follow_ups = result.follow_up_questions

            for suggestion in result.suggestions:
                scored = scored_by_id.get(suggestion.wine_id) if suggestion.wine_id else None
                if scored is None:
                    logger.warning(f"Discarding suggestion for unknown candidate {suggestion.wine_id}")
                    continue
                if any(rec.wine_id == scored.wine.id for rec in recommendations):
                    continue
                recommendations.append(self._inventory_recommendation(
                    request,
                    snapshot,
                    scored,
                    confidence=_mean([suggestion.confidence, scored.composite]),
                    reasoning=suggestion.reasoning,
                    now=now,
                ))
                if len(recommendations) == self.top_n:
                    break

        if not recommendations:
            top = list(scored_by_id.values())[:self.top_n]
            recommendations = [
                self._inventory_recommendation(
                    request,
                    snapshot,
                    scored,
                    confidence=scored.composite,
                    reasoning=f"This {scored.wine.name} is perfect for {context.occasion or 'your occasion'}.",
                    now=now,
                )
                for scored in top
            ]

        return RecommendationResponse(
            recommendations=recommendations,
            reasoning=reasoning or recommendations[0].reasoning,
            confidence=aggregate_confidence(recommendations),
            alternative_options=recommendations[1:] or None,
            educational_notes=educational_notes,
            follow_up_questions=(follow_ups or self._contextual_questions(context))[
                :RankingConstants.MAX_FOLLOW_UP_QUESTIONS
            ] or None,
        )

    @staticmethod
    def _contextual_query(context: RecommendationContext) -> str:
        query = "Recommend wines from my inventory"
        if context.occasion:
            query += f" for {context.occasion}"
        if context.food_pairing:
            query += f" to pair with {context.food_pairing}"
        if context.party_size:
            query += f" for {context.party_size} people"
        return query + "."

    @staticmethod
    def _contextual_questions(context: RecommendationContext) -> List[str]:
        questions = []
        if not context.food_pairing:
            questions.append("What will you be eating with this wine?")
        if not context.occasion:
            questions.append("What's the occasion?")
        if not context.party_size:
            questions.append("How many people will be sharing the wine?")
        return questions
