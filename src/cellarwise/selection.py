"""
Drinking-window driven selection of cellar wines.

Each helper refreshes windows on read, keeps the wines fit for a
purpose and orders them. Returned wines carry the refreshed window.
Sorting is stable, so ties keep the input order.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from cellarwise.constants import DrinkingStatus, UrgencyConstants, UrgencyHint, WineType
from cellarwise.drinking_window import DrinkingWindowCalculator
from cellarwise.schema import Wine
from cellarwise.serving import matches_food
from cellarwise.utils import DateLike, resolve_now

# Lower is better
STATUS_PRIORITY = {
    DrinkingStatus.PEAK: 1,
    DrinkingStatus.READY: 2,
    DrinkingStatus.DECLINING: 3,
    DrinkingStatus.TOO_YOUNG: 4,
    DrinkingStatus.OVER_HILL: 5,
}

DRINKABLE_STATUSES = (DrinkingStatus.READY, DrinkingStatus.PEAK, DrinkingStatus.DECLINING)
OCCASION_STATUSES = (DrinkingStatus.PEAK, DrinkingStatus.READY)

ScoredEntry = Tuple[Wine, float]


def _with_urgency(
    wines: Iterable[Wine],
    now: datetime,
    calculator: DrinkingWindowCalculator
) -> List[ScoredEntry]:
    entries = []
    for wine in wines:
        refreshed = calculator.refresh(wine, now)
        entries.append((refreshed, calculator.status_machine.urgency_score(refreshed.drinking_window, now)))
    return entries


def _status(entry: ScoredEntry) -> DrinkingStatus:
    return entry[0].drinking_window.current_status


def _rating(wine: Wine) -> float:
    return wine.personal_rating or 0


def _matches_hint(entry: ScoredEntry, hint: UrgencyHint) -> bool:
    urgency = entry[1]
    if hint == UrgencyHint.HIGH:
        return urgency >= UrgencyConstants.HIGH_HINT_MIN_URGENCY
    if hint == UrgencyHint.MEDIUM:
        return _status(entry) in DRINKABLE_STATUSES and urgency >= UrgencyConstants.MEDIUM_HINT_MIN_URGENCY
    return _status(entry) in DRINKABLE_STATUSES


def prioritize_by_drinking_window(
    wines: Iterable[Wine],
    urgency_hint: Optional[Union[UrgencyHint, str]] = None,
    now: Optional[DateLike] = None,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> List[Wine]:
    """
    Order wines by lifecycle status, then by urgency (highest first).

    Status order: peak, ready, declining, too young, over the hill.

    An urgency hint narrows the list first:
        high    urgency >= 60
        medium  ready, peak or declining with urgency >= 30
        low     ready, peak or declining
    """
    calculator = calculator or DrinkingWindowCalculator()
    entries = _with_urgency(wines, resolve_now(now), calculator)

    if urgency_hint is not None:
        hint = UrgencyHint(urgency_hint)
        entries = [entry for entry in entries if _matches_hint(entry, hint)]

    entries.sort(key=lambda entry: (STATUS_PRIORITY[_status(entry)], -entry[1]))
    return [wine for wine, _ in entries]


def wines_for_tonight(
    wines: Iterable[Wine],
    now: Optional[DateLike] = None,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> List[Wine]:
    """Drinkable wines, most urgent first."""
    calculator = calculator or DrinkingWindowCalculator()
    entries = [
        entry for entry in _with_urgency(wines, resolve_now(now), calculator)
        if _status(entry) in DRINKABLE_STATUSES
    ]
    entries.sort(key=lambda entry: -entry[1])
    return [wine for wine, _ in entries]


def wines_for_special_occasion(
    wines: Iterable[Wine],
    now: Optional[DateLike] = None,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> List[Wine]:
    """Wines at peak, then ready ones, each group by personal rating."""
    calculator = calculator or DrinkingWindowCalculator()
    entries = [
        entry for entry in _with_urgency(wines, resolve_now(now), calculator)
        if _status(entry) in OCCASION_STATUSES
    ]
    entries.sort(key=lambda entry: (_status(entry) != DrinkingStatus.PEAK, -_rating(entry[0])))
    return [wine for wine, _ in entries]


def ready_wines_for_food_pairing(
    wines: Iterable[Wine],
    food_description: Optional[str],
    wine_type: Optional[Union[WineType, str]] = None,
    now: Optional[DateLike] = None,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> List[Wine]:
    """
    Drinkable wines suited to a dish, by urgency then personal rating.

    Food matching uses the same coarse type heuristic as contextual
    recommendations; unmatched food keeps every type.
    """
    calculator = calculator or DrinkingWindowCalculator()
    wanted_type = WineType(wine_type) if wine_type is not None else None

    entries = [
        entry for entry in _with_urgency(wines, resolve_now(now), calculator)
        if _status(entry) in DRINKABLE_STATUSES
        and (wanted_type is None or entry[0].type == wanted_type)
        and matches_food(entry[0], food_description)
    ]
    entries.sort(key=lambda entry: (-entry[1], -_rating(entry[0])))
    return [wine for wine, _ in entries]
