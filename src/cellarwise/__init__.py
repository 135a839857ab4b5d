"""Cellarwise - drinking windows and recommendations for a personal wine cellar."""

from cellarwise.aging_potential import AgingPotentialResolver
from cellarwise.alerts import AlertDetector, refresh_collection_statuses
from cellarwise.drinking_window import DrinkingWindowCalculator, DrinkingWindowStatusMachine
from cellarwise.gap_analysis import GapAnalyzer
from cellarwise.personalization import HeuristicPersonalizationScorer, RankingWeights
from cellarwise.recommendations import RecommendationRanker
from cellarwise.schema import RecommendationRequest, RecommendationResponse, Wine
from cellarwise.selection import (
    prioritize_by_drinking_window,
    ready_wines_for_food_pairing,
    wines_for_special_occasion,
    wines_for_tonight,
)

__version__ = "0.1.0"

__all__ = [
    'AgingPotentialResolver',
    'AlertDetector',
    'DrinkingWindowCalculator',
    'DrinkingWindowStatusMachine',
    'GapAnalyzer',
    'HeuristicPersonalizationScorer',
    'RankingWeights',
    'RecommendationRanker',
    'RecommendationRequest',
    'RecommendationResponse',
    'Wine',
    'prioritize_by_drinking_window',
    'ready_wines_for_food_pairing',
    'refresh_collection_statuses',
    'wines_for_special_occasion',
    'wines_for_tonight',
    '__version__',
]
