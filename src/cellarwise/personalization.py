"""
Personalization scoring.

The default scorer is a hand-tuned linear heuristic, not a learned model:

    score = 0.5
          + 0.2 if the region is preferred for the wine's type
          + 0.2 if any varietal is preferred for the wine's type
          + (avg of last 3 ratings - 5) * 0.1
    clamped to [0, 1]

Scorers are swappable through the PersonalizationStrategy protocol, and
the urgency/personalization blend lives in RankingWeights, so a learned
model can replace either without touching the ranker.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence

from cellarwise.constants import RankingConstants, UrgencyConstants, WineType
from cellarwise.schema import ConsumptionRecord, TasteProfile
from cellarwise.utils import clamp, safe_divide

logger = logging.getLogger(__name__)


class ScorableWine(Protocol):
    """Anything with a type, region and varietals (inventory wines, purchase suggestions)."""
    type: Optional[WineType]
    region: str
    varietal: List[str]


class PersonalizationStrategy(Protocol):
    """Affinity of a wine to a taste profile, in [0, 1]."""

    def score(
        self,
        wine: ScorableWine,
        taste_profile: Optional[TasteProfile],
        recent_consumption: Sequence[ConsumptionRecord] = ()
    ) -> float:
        ...


def recent_consumption_for(
    wine_id: str,
    history: Iterable[ConsumptionRecord],
    limit: int = RankingConstants.RECENT_RATINGS
) -> List[ConsumptionRecord]:
    """Most recent consumption records of one wine, newest first."""
    records = [record for record in history if record.wine_id == wine_id]
    records.sort(key=lambda record: record.consumed_at, reverse=True)
    return records[:limit]


def _normalized(values: Iterable[str]) -> set:
    return {value.strip().lower() for value in values if value}


class HeuristicPersonalizationScorer:
    """Linear region/varietal/rating heuristic."""

    def __init__(
        self,
        base: float = RankingConstants.BASE_PERSONALIZATION,
        region_bonus: float = RankingConstants.PREFERRED_REGION_BONUS,
        varietal_bonus: float = RankingConstants.PREFERRED_VARIETAL_BONUS,
        rating_weight: float = RankingConstants.RATING_WEIGHT,
        neutral_rating: float = RankingConstants.NEUTRAL_RATING
    ):
        self.base = base
        self.region_bonus = region_bonus
        self.varietal_bonus = varietal_bonus
        self.rating_weight = rating_weight
        self.neutral_rating = neutral_rating

    def score(
        self,
        wine: ScorableWine,
        taste_profile: Optional[TasteProfile],
        recent_consumption: Sequence[ConsumptionRecord] = ()
    ) -> float:
        """
        Score a wine's affinity to a taste profile.

        Args:
            wine: Wine or suggestion (type, region, varietal)
            taste_profile: User's profile; None gives a neutral base
            recent_consumption: Up to 3 recent records for this wine

        Returns:
            Score in [0, 1]
        """
        score = self.base

        preferences = taste_profile.preferences_for(wine.type) if taste_profile else None
        if preferences is not None:
            if wine.region and wine.region.strip().lower() in _normalized(preferences.preferred_regions):
                score += self.region_bonus
            if _normalized(wine.varietal) & _normalized(preferences.preferred_varietals):
                score += self.varietal_bonus

        records = list(recent_consumption)[:RankingConstants.RECENT_RATINGS]
        if records:
            # Unrated bottles count as neutral
            ratings = [r.rating if r.rating is not None else self.neutral_rating for r in records]
            avg_rating = safe_divide(sum(ratings), len(ratings), default=self.neutral_rating)
            score += (avg_rating - self.neutral_rating) * self.rating_weight

        return clamp(score)

    def explain(self, wine: ScorableWine, taste_profile: Optional[TasteProfile]) -> List[str]:
        """Which preference signals matched, for reasoning text."""
        reasons = []
        preferences = taste_profile.preferences_for(wine.type) if taste_profile else None
        if preferences is None:
            return reasons
        if wine.region and wine.region.strip().lower() in _normalized(preferences.preferred_regions):
            reasons.append(f"comes from {wine.region}, one of your preferred regions")
        matched = [v for v in wine.varietal if v.strip().lower() in _normalized(preferences.preferred_varietals)]
        if matched:
            reasons.append(f"is made from {', '.join(matched)}, which you enjoy")
        return reasons


@dataclass(frozen=True)
class RankingWeights:
    """Composite = urgency (normalized to 0-1) * w_u + personalization * w_p."""
    urgency: float = RankingConstants.URGENCY_WEIGHT
    personalization: float = RankingConstants.PERSONALIZATION_WEIGHT

    def composite(self, urgency_score: float, personalized_score: float) -> float:
        normalized_urgency = clamp(urgency_score / UrgencyConstants.MAX_SCORE)
        return clamp(normalized_urgency * self.urgency + personalized_score * self.personalization)
