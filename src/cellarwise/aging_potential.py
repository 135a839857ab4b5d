"""
Aging potential resolution.

Three tiers, first hit wins:
1. Authoritative external data (``external_data.aging_potential``)
2. Curated reference tables keyed by (producer, region) or (region, varietal)
3. Algorithmic default by wine type, plus a premium-region bonus

The resolver never fails: a usable estimate always comes back.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from cellarwise.constants import AgingConstants, WineType
from cellarwise.reference_data import (
    BASE_AGING_BY_TYPE,
    CURATED_BY_PRODUCER,
    CURATED_BY_VARIETAL,
    PREMIUM_REGIONS,
    CuratedAgingEntry,
)
from cellarwise.schema import Wine

logger = logging.getLogger(__name__)

SOURCE_EXTERNAL = "External wine database"
SOURCE_ALGORITHMIC = "Algorithmic calculation"


@dataclass(frozen=True)
class AgingEstimate:
    """Resolved aging potential with provenance."""
    aging_potential: float  # years from vintage
    confidence: float  # 0-1
    source: str

    @property
    def is_expert_data(self) -> bool:
        return self.source != SOURCE_ALGORITHMIC


def find_curated_entry(
    producer: Optional[str],
    region: Optional[str],
    varietals: Iterable[str] = ()
) -> Optional[CuratedAgingEntry]:
    """
    Look up curated aging data.

    Exact (producer, region) matches win over (region, varietal) matches.
    Matching is case-insensitive.

    Args:
        producer: Producer/winery name
        region: Wine region
        varietals: Grape varietals, in order of prominence

    Returns:
        Matching entry or None
    """
    if not region:
        return None

    region_key = region.strip().lower()

    if producer:
        entry = CURATED_BY_PRODUCER.get((producer.strip().lower(), region_key))
        if entry is not None:
            return entry

    for varietal in varietals:
        entry = CURATED_BY_VARIETAL.get((region_key, varietal.strip().lower()))
        if entry is not None:
            return entry

    return None


def is_premium_region(region: Optional[str]) -> bool:
    """Case-insensitive substring match against the premium region list."""
    if not region:
        return False
    region_lower = region.lower()
    return any(premium.lower() in region_lower for premium in PREMIUM_REGIONS)


def default_aging_potential(wine_type: Union[WineType, str, None], region: Optional[str]) -> int:
    """Type-based default, +3 years for premium regions."""
    type_key = wine_type.value if isinstance(wine_type, WineType) else wine_type
    years = BASE_AGING_BY_TYPE.get(type_key, AgingConstants.DEFAULT_AGING_YEARS)
    if is_premium_region(region):
        years += AgingConstants.PREMIUM_REGION_BONUS_YEARS
    return years


class AgingPotentialResolver:
    """Best-available aging potential estimate for a wine."""

    def __init__(self, min_curated_confidence: float = AgingConstants.MIN_CURATED_CONFIDENCE):
        self.min_curated_confidence = min_curated_confidence

    def resolve(self, wine: Wine) -> AgingEstimate:
        """
        Resolve the aging potential of a wine.

        Args:
            wine: Wine with type, region, producer, varietals and external data

        Returns:
            AgingEstimate (years, confidence, source)
        """
        external = wine.external_data.aging_potential
        if external is not None and external > 0:
            if external > AgingConstants.MAX_AGING_YEARS:
                logger.warning(
                    f"Wine {wine.id}: external aging potential {external}y capped at "
                    f"{AgingConstants.MAX_AGING_YEARS}y"
                )
                external = AgingConstants.MAX_AGING_YEARS
            logger.debug(f"Wine {wine.id}: external aging potential {external}y")
            return AgingEstimate(
                aging_potential=external,
                confidence=AgingConstants.EXTERNAL_DATA_CONFIDENCE,
                source=SOURCE_EXTERNAL,
            )

        entry = find_curated_entry(wine.producer, wine.region, wine.varietal)
        if entry is not None and entry.confidence >= self.min_curated_confidence:
            logger.debug(f"Wine {wine.id}: curated aging potential {entry.aging_potential}y ({entry.source})")
            return AgingEstimate(
                aging_potential=entry.aging_potential,
                confidence=entry.confidence,
                source=f"Expert data: {entry.source}",
            )

        years = default_aging_potential(wine.type, wine.region)
        logger.debug(f"Wine {wine.id}: algorithmic aging potential {years}y")
        return AgingEstimate(
            aging_potential=years,
            confidence=AgingConstants.ALGORITHMIC_CONFIDENCE,
            source=SOURCE_ALGORITHMIC,
        )

    def describe_data_source(self, wine: Wine) -> Dict[str, object]:
        """Where the drinking window of this wine comes from."""
        estimate = self.resolve(wine)
        return {
            "source": estimate.source,
            "confidence": estimate.confidence,
            "is_expert_data": estimate.is_expert_data,
        }
