"""
Drinking window alerts and bulk status refresh.

AlertDetector classifies a collection into three lists. Each predicate is
evaluated independently, so one wine can land in more than one list;
callers should treat ``over_hill`` as the authoritative, highest-priority
classification.

Both the detector and the refresh sweep walk the collection in bounded
batches. Recomputing a status is idempotent and order-independent.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Iterable, List, Optional

from cellarwise.config import ENTERING_PEAK_DAYS, LEAVING_PEAK_DAYS, STATUS_REFRESH_BATCH_SIZE
from cellarwise.drinking_window import DrinkingWindowCalculator
from cellarwise.schema import Wine
from cellarwise.utils import DateLike, as_datetime, iter_batches, resolve_now

if TYPE_CHECKING:
    from cellarwise.repository import CellarRepository

logger = logging.getLogger(__name__)


@dataclass
class DrinkingWindowAlerts:
    """Wines needing attention, by alert kind."""
    entering_peak: List[Wine] = field(default_factory=list)
    leaving_peak: List[Wine] = field(default_factory=list)
    over_hill: List[Wine] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entering_peak) + len(self.leaving_peak) + len(self.over_hill)

    def priority_kind(self, wine_id: str) -> Optional[str]:
        """Highest-priority alert kind for a wine (over_hill first)."""
        for kind in ("over_hill", "leaving_peak", "entering_peak"):
            if any(wine.id == wine_id for wine in getattr(self, kind)):
                return kind
        return None


class AlertDetector:
    """
    Scans a collection for wines entering peak, leaving peak or past their prime.

    - entering_peak: peak start in (now, now + entering_peak_days]
    - leaving_peak: peak end in (now, now + leaving_peak_days]
    - over_hill: latest date before now
    """

    def __init__(
        self,
        entering_peak_days: int = ENTERING_PEAK_DAYS,
        leaving_peak_days: int = LEAVING_PEAK_DAYS,
        batch_size: int = STATUS_REFRESH_BATCH_SIZE,
        calculator: Optional[DrinkingWindowCalculator] = None
    ):
        self.entering_peak_days = entering_peak_days
        self.leaving_peak_days = leaving_peak_days
        self.batch_size = batch_size
        self.calculator = calculator or DrinkingWindowCalculator()

    def detect(self, wines: Iterable[Wine], now: Optional[DateLike] = None) -> DrinkingWindowAlerts:
        """
        Classify wines by upcoming drinking window transitions.

        Wines without a stored window get one calculated first.

        Args:
            wines: Collection to scan
            now: Evaluation instant (defaults to current time)

        Returns:
            DrinkingWindowAlerts with refreshed wine copies
        """
        current = resolve_now(now)
        entering_cutoff = current + timedelta(days=self.entering_peak_days)
        leaving_cutoff = current + timedelta(days=self.leaving_peak_days)

        alerts = DrinkingWindowAlerts()
        scanned = 0

        for batch in iter_batches(wines, self.batch_size):
            for wine in batch:
                refreshed = self.calculator.refresh(wine, current)
                window = refreshed.drinking_window
                peak_start = as_datetime(window.peak_start_date)
                peak_end = as_datetime(window.peak_end_date)
                latest = as_datetime(window.latest_date)

                if current < peak_start <= entering_cutoff:
                    alerts.entering_peak.append(refreshed)
                if current < peak_end <= leaving_cutoff:
                    alerts.leaving_peak.append(refreshed)
                if latest < current:
                    alerts.over_hill.append(refreshed)
            scanned += len(batch)

        logger.info(
            f"Scanned {scanned} wines: {len(alerts.entering_peak)} entering peak, "
            f"{len(alerts.leaving_peak)} leaving peak, {len(alerts.over_hill)} over the hill"
        )
        return alerts


def refresh_collection_statuses(
    wines: Iterable[Wine],
    repository: Optional['CellarRepository'] = None,
    now: Optional[DateLike] = None,
    batch_size: int = STATUS_REFRESH_BATCH_SIZE,
    calculator: Optional[DrinkingWindowCalculator] = None
) -> List[Wine]:
    """
    Periodic sweep: recompute every wine's drinking window status.

    Each batch is written back through the repository when one is given;
    a failed write raises PersistenceError.

    Args:
        wines: Collection to refresh
        repository: Optional persistence collaborator for write-back
        now: Evaluation instant (defaults to current time)
        batch_size: Wines per batch
        calculator: Window calculator to use

    Returns:
        Refreshed wine copies, in input order
    """
    calculator = calculator or DrinkingWindowCalculator()
    current = resolve_now(now)
    refreshed_all: List[Wine] = []

    for batch_number, batch in enumerate(iter_batches(wines, batch_size), 1):
        refreshed = [calculator.refresh(wine, current) for wine in batch]
        if repository is not None:
            repository.save_drinking_windows(refreshed)
        refreshed_all.extend(refreshed)
        logger.debug(f"Refreshed batch {batch_number} ({len(refreshed)} wines)")

    logger.info(f"Refreshed drinking window status for {len(refreshed_all)} wines")
    return refreshed_all
