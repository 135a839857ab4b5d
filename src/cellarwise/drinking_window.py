"""
Drinking window lifecycle.

DrinkingWindowCalculator derives the four window dates from vintage and
aging potential. DrinkingWindowStatusMachine evaluates a window against
"now": lifecycle status, urgency score (0-100) and the next transition.

Status is a pure function of (four dates, now):

    too_young   now <  earliest
    ready       earliest   <= now <  peak_start
    peak        peak_start <= now <= peak_end
    declining   peak_end   <  now <= latest
    over_hill   now >  latest

Dates are calendar days, compared as local midnight.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from cellarwise.aging_potential import AgingEstimate, AgingPotentialResolver
from cellarwise.constants import AgingConstants, DrinkingStatus, UrgencyConstants, UrgencyLevel
from cellarwise.error_handling import InvalidInputError
from cellarwise.reference_data import DEFAULT_MIN_AGING_YEARS, MIN_AGING_BY_TYPE
from cellarwise.schema import DrinkingWindow, Wine, order_window_dates
from cellarwise.utils import DateLike, as_datetime, clamp, days_until, resolve_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChange:
    """Upcoming lifecycle transition."""
    next_status: Optional[DrinkingStatus]
    days_until: Optional[int]
    description: str


class DrinkingWindowStatusMachine:
    """Stateless evaluation of a drinking window against a point in time."""

    def status(self, window: DrinkingWindow, now: Optional[DateLike] = None) -> DrinkingStatus:
        """Current lifecycle status; ignores the cached ``current_status``."""
        current = resolve_now(now)

        if current < as_datetime(window.earliest_date):
            return DrinkingStatus.TOO_YOUNG
        if current < as_datetime(window.peak_start_date):
            return DrinkingStatus.READY
        if current <= as_datetime(window.peak_end_date):
            return DrinkingStatus.PEAK
        if current <= as_datetime(window.latest_date):
            return DrinkingStatus.DECLINING
        return DrinkingStatus.OVER_HILL

    def refresh(self, window: DrinkingWindow, now: Optional[DateLike] = None) -> DrinkingWindow:
        """Copy of the window with ``current_status`` recomputed."""
        return window.model_copy(update={"current_status": self.status(window, now)})

    def urgency_score(self, window: DrinkingWindow, now: Optional[DateLike] = None) -> float:
        """
        Drinking urgency (0-100, higher = drink sooner).

        - over_hill: 100
        - peak: 50, rising to 90 - days_left in the last 30 days of peak
        - ready: 40
        - declining: 70 - days_to_latest/10, floored at 60
        - too_young: 10

        Args:
            window: Drinking window
            now: Evaluation instant (defaults to current time)

        Returns:
            Urgency score in [0, 100]
        """
        current = resolve_now(now)
        status = self.status(window, current)

        if status == DrinkingStatus.OVER_HILL:
            return UrgencyConstants.OVER_HILL

        if status == DrinkingStatus.PEAK:
            days_left = days_until(window.peak_end_date, current)
            if days_left <= UrgencyConstants.PEAK_CLOSING_DAYS:
                score = UrgencyConstants.PEAK_CLOSING_BASE - days_left
            else:
                score = UrgencyConstants.PEAK
        elif status == DrinkingStatus.READY:
            score = UrgencyConstants.READY
        elif status == DrinkingStatus.DECLINING:
            days_left = days_until(window.latest_date, current)
            score = max(
                UrgencyConstants.DECLINING_BASE - days_left / UrgencyConstants.DECLINING_DAYS_DIVISOR,
                UrgencyConstants.DECLINING_FLOOR,
            )
        else:
            score = UrgencyConstants.TOO_YOUNG

        return clamp(float(score), 0.0, UrgencyConstants.MAX_SCORE)

    def days_until_status_change(
        self,
        window: DrinkingWindow,
        now: Optional[DateLike] = None
    ) -> StatusChange:
        """Next status and the days remaining until it applies."""
        current = resolve_now(now)
        status = self.status(window, current)

        if status == DrinkingStatus.TOO_YOUNG:
            days = days_until(window.earliest_date, current)
            return StatusChange(DrinkingStatus.READY, days, f"Ready to drink in {days} days")

        if status == DrinkingStatus.READY:
            days = days_until(window.peak_start_date, current)
            return StatusChange(DrinkingStatus.PEAK, days, f"Enters peak window in {days} days")

        if status == DrinkingStatus.PEAK:
            days = days_until(window.peak_end_date, current)
            return StatusChange(DrinkingStatus.DECLINING, days, f"Peak window ends in {days} days")

        if status == DrinkingStatus.DECLINING:
            days = days_until(window.latest_date, current)
            return StatusChange(DrinkingStatus.OVER_HILL, days, f"Past prime in {days} days")

        return StatusChange(None, None, "Past optimal drinking window")


class DrinkingWindowCalculator:
    """Derives drinking windows from vintage and aging potential."""

    def __init__(
        self,
        resolver: Optional[AgingPotentialResolver] = None,
        status_machine: Optional[DrinkingWindowStatusMachine] = None
    ):
        self.resolver = resolver or AgingPotentialResolver()
        self.status_machine = status_machine or DrinkingWindowStatusMachine()

    def calculate(
        self,
        wine: Wine,
        now: Optional[DateLike] = None,
        estimate: Optional[AgingEstimate] = None
    ) -> DrinkingWindow:
        """
        Calculate the drinking window of a wine.

        Args:
            wine: Wine with a vintage
            now: Evaluation instant for the status (defaults to current time)
            estimate: Pre-resolved aging potential (resolved from the wine if omitted)

        Returns:
            DrinkingWindow with non-decreasing dates and a fresh status

        Raises:
            InvalidInputError: If the wine has no numeric vintage
        """
        vintage = wine.vintage
        if vintage is None or isinstance(vintage, bool) or not isinstance(vintage, int):
            raise InvalidInputError(f"Wine {wine.id} has no vintage; cannot calculate drinking window")

        if estimate is None:
            estimate = self.resolver.resolve(wine)
        aging_years = int(clamp(
            math.floor(estimate.aging_potential), 0, AgingConstants.MAX_AGING_YEARS
        ))

        min_aging = MIN_AGING_BY_TYPE.get(wine.type.value, DEFAULT_MIN_AGING_YEARS)
        peak_start_years = max(
            int(math.floor(aging_years * AgingConstants.PEAK_START_RATIO)),
            AgingConstants.MIN_PEAK_START_YEARS,
        )
        peak_end_years = max(
            int(math.floor(aging_years * AgingConstants.PEAK_END_RATIO)),
            AgingConstants.MIN_PEAK_END_YEARS,
        )

        raw_dates = (
            date(vintage + min_aging, 1, 1),
            date(vintage + peak_start_years, 1, 1),
            date(vintage + peak_end_years, 12, 31),
            date(vintage + aging_years, 12, 31),
        )
        ordered = order_window_dates(*raw_dates)
        if ordered != raw_dates:
            logger.warning(
                f"Wine {wine.id}: clamped drinking window for {aging_years}y aging potential"
            )

        earliest, peak_start, peak_end, latest = ordered
        window = DrinkingWindow(
            earliest_date=earliest,
            peak_start_date=peak_start,
            peak_end_date=peak_end,
            latest_date=latest,
        )
        return self.status_machine.refresh(window, now)

    def refresh(self, wine: Wine, now: Optional[DateLike] = None) -> Wine:
        """
        Refresh-on-read: a copy of the wine with an up-to-date window status.

        Stored dates are kept; a wine without a window gets one calculated.
        """
        if wine.drinking_window is None:
            window = self.calculate(wine, now)
        else:
            window = self.status_machine.refresh(wine.drinking_window, now)
        return wine.model_copy(update={"drinking_window": window})

    def urgency_score(self, wine: Wine, now: Optional[DateLike] = None) -> float:
        """Drinking urgency of a wine, from a freshly derived status."""
        return self.status_machine.urgency_score(self.refresh(wine, now).drinking_window, now)


# =======================
# DISPLAY & NARRATIVE HELPERS
# =======================

def format_drinking_window(window: DrinkingWindow) -> str:
    """Short peak summary, e.g. 'Peak: 2020-2023'."""
    start_year = window.peak_start_date.year
    end_year = window.peak_end_date.year
    if start_year == end_year:
        return f"Peak: {start_year}"
    return f"Peak: {start_year}-{end_year}"


def generate_drinking_window_context(
    wine: Wine,
    now: Optional[DateLike] = None,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> str:
    """
    Natural-language summary of where a wine sits in its window.

    Used for recommendation reasoning and by notification delivery.
    """
    calculator = calculator or DrinkingWindowCalculator()
    machine = calculator.status_machine
    current = resolve_now(now)
    window = calculator.refresh(wine, current).drinking_window

    status = window.current_status
    urgency = machine.urgency_score(window, current)
    change = machine.days_until_status_change(window, current)

    text = f"This wine is currently {status.value.replace('_', ' ')}."

    if status == DrinkingStatus.TOO_YOUNG:
        text += f" It will be ready to drink in {change.days_until} days. Consider waiting for optimal enjoyment."
    elif status == DrinkingStatus.READY:
        text += f" It's ready to drink now and will enter its peak window in {change.days_until} days."
    elif status == DrinkingStatus.PEAK:
        text += f" This is an excellent time to enjoy this wine. The peak window ends in {change.days_until} days."
    elif status == DrinkingStatus.DECLINING:
        text += f" While still enjoyable, it's past its peak. Consider drinking within {change.days_until} days."
    else:
        text += (" This wine is past its optimal drinking window. Quality may have declined, "
                 "but it might still be suitable for cooking.")

    level = UrgencyLevel.from_score(urgency)
    if level == UrgencyLevel.CRITICAL:
        text += " HIGH PRIORITY: This wine should be consumed soon."
    elif level == UrgencyLevel.HIGH:
        text += " MEDIUM PRIORITY: Consider enjoying this wine in the near future."

    return text


def drinking_window_advice(
    wines: List[Wine],
    now: Optional[DateLike] = None,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> Dict[str, object]:
    """
    Bucket a collection into drink-now, drink-soon and can-wait.

    Returns:
        Dict with drink_now, drink_soon, can_wait (lists of wines) and advice (str)
    """
    calculator = calculator or DrinkingWindowCalculator()
    current = resolve_now(now)

    drink_now: List[Wine] = []
    drink_soon: List[Wine] = []
    can_wait: List[Wine] = []

    for wine in wines:
        refreshed = calculator.refresh(wine, current)
        window = refreshed.drinking_window
        urgency = calculator.status_machine.urgency_score(window, current)
        status = window.current_status

        if urgency >= UrgencyLevel.CRITICAL.threshold or status == DrinkingStatus.OVER_HILL:
            drink_now.append(refreshed)
        elif urgency >= UrgencyLevel.HIGH.threshold:
            drink_soon.append(refreshed)
        elif status in (DrinkingStatus.TOO_YOUNG, DrinkingStatus.READY, DrinkingStatus.PEAK):
            can_wait.append(refreshed)

    parts = []
    if drink_now:
        plural = "s" if len(drink_now) > 1 else ""
        parts.append(f"You have {len(drink_now)} wine{plural} that should be consumed immediately.")
    if drink_soon:
        plural = "s" if len(drink_soon) > 1 else ""
        parts.append(f"{len(drink_soon)} wine{plural} should be enjoyed within the next few months.")
    if can_wait:
        verb = "wines are" if len(can_wait) > 1 else "wine is"
        parts.append(f"{len(can_wait)} {verb} aging well and can wait for special occasions.")

    return {
        "drink_now": drink_now,
        "drink_soon": drink_soon,
        "can_wait": can_wait,
        "advice": " ".join(parts),
    }
