"""
Serving, pairing and drinking-window annotations for recommendations.

Food matching is substring-based on free-text descriptions. It is a
best-effort heuristic, not authoritative pairing advice.
"""

from typing import Optional, Union

from cellarwise.constants import AlertKind, DrinkingStatus, ServingConstants, UrgencyConstants, WineType
from cellarwise.reference_data import (
    DEFAULT_PAIRING_NOTE,
    FOOD_FILTER_RULES,
    PAIRING_NOTES,
    SERVING_PROFILES,
)
from cellarwise.schema import (
    DrinkingWindow,
    DrinkingWindowAlert,
    ServingRecommendations,
    ServingTemperature,
    Wine,
    WineSuggestion,
)
from cellarwise.utils import DateLike, days_until, resolve_now

Servable = Union[Wine, WineSuggestion]


def serving_recommendations(wine: Servable, now: Optional[DateLike] = None) -> ServingRecommendations:
    """
    Temperature, glassware and decanting guidance.

    Works for inventory wines and purchase suggestions alike. Reds at
    least 8 years past vintage are decanted, for the external decanting
    hint when present, otherwise 60 minutes.
    """
    current = resolve_now(now)
    guidance = ServingRecommendations(
        serving_size=ServingConstants.SERVING_SIZE,
        optimal_timing=ServingConstants.OPTIMAL_TIMING,
    )

    profile = SERVING_PROFILES.get(wine.type.value) if wine.type else None
    if profile is not None:
        guidance.temperature = ServingTemperature(celsius=profile.celsius, fahrenheit=profile.fahrenheit)
        guidance.glass_type = profile.glass_type

    if (
        wine.type == WineType.RED
        and wine.vintage is not None
        and current.year - wine.vintage >= ServingConstants.DECANT_MIN_AGE_YEARS
    ):
        external_data = getattr(wine, "external_data", None)
        hint = external_data.decanting_time if external_data is not None else None
        guidance.decanting_recommended = True
        guidance.decanting_time = hint or ServingConstants.DEFAULT_DECANTING_MINUTES

    return guidance


def pairing_notes(wine: Servable, food_pairing: Optional[str]) -> Optional[str]:
    """Pairing note for a wine against a food description, if one was given."""
    if not food_pairing:
        return None

    food = food_pairing.lower()
    notes = PAIRING_NOTES.get(wine.type.value, ()) if wine.type else ()
    for keywords, note in notes:
        if any(keyword in food for keyword in keywords):
            return note
    return DEFAULT_PAIRING_NOTE


def matches_food(wine: Wine, food_pairing: Optional[str]) -> bool:
    """
    Coarse food filter: red for beef/lamb, white or sparkling for seafood.

    The first matching rule decides; unmatched food passes everything.
    """
    if not food_pairing:
        return True

    food = food_pairing.lower()
    for rule in FOOD_FILTER_RULES:
        if any(keyword in food for keyword in rule.keywords):
            return rule.wine_types is None or wine.type.value in rule.wine_types
    return True


def drinking_window_alert(
    window: DrinkingWindow,
    now: Optional[DateLike] = None
) -> Optional[DrinkingWindowAlert]:
    """
    Alert for wines near the end of peak or of the whole window.

    ``window.current_status`` must be fresh.
    """
    current = resolve_now(now)
    status = window.current_status

    if status == DrinkingStatus.PEAK:
        days_left = days_until(window.peak_end_date, current)
        if days_left <= UrgencyConstants.LEAVING_PEAK_ALERT_DAYS:
            return DrinkingWindowAlert(
                status=AlertKind.LEAVING_PEAK,
                message=f"This wine is at its peak but will start declining in {days_left} days.",
                days_remaining=days_left,
            )

    if status == DrinkingStatus.DECLINING:
        days_left = days_until(window.latest_date, current)
        if days_left <= UrgencyConstants.DECLINING_ALERT_DAYS:
            return DrinkingWindowAlert(
                status=AlertKind.URGENT,
                message=f"Drink within {days_left} days, before it passes its prime.",
                days_remaining=days_left,
            )

    return None
