"""Collection gap analysis: reference regions, varietals and types a user has not explored."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from cellarwise.reference_data import CATALOG_REGIONS, CATALOG_TYPES, CATALOG_VARIETALS
from cellarwise.schema import ConsumptionRecord, TasteProfile, Wine

logger = logging.getLogger(__name__)


@dataclass
class GapAnalysis:
    """Catalog entries with zero occurrences in inventory or history."""
    missing_regions: List[str] = field(default_factory=list)
    missing_varietals: List[str] = field(default_factory=list)
    underrepresented_types: List[str] = field(default_factory=list)

    @property
    def has_gaps(self) -> bool:
        return bool(self.missing_regions or self.missing_varietals or self.underrepresented_types)


class GapAnalyzer:
    """
    Compares a collection and its consumption history to reference catalogs.

    Only used to phrase purchase queries and explanations; it is not a
    ranking signal.
    """

    def __init__(
        self,
        regions: Sequence[str] = CATALOG_REGIONS,
        varietals: Sequence[str] = CATALOG_VARIETALS,
        types: Sequence[str] = CATALOG_TYPES
    ):
        self.regions = tuple(regions)
        self.varietals = tuple(varietals)
        self.types = tuple(types)

    def analyze(
        self,
        taste_profile: Optional[TasteProfile],
        consumption_history: Iterable[ConsumptionRecord],
        inventory: Iterable[Wine]
    ) -> GapAnalysis:
        """
        Find unexplored catalog regions, varietals and types.

        Consumption records count through the inventory wine they reference;
        records pointing at unknown wines contribute nothing.

        Args:
            taste_profile: Reserved for future weighting
            consumption_history: Past consumption records
            inventory: Current inventory

        Returns:
            GapAnalysis in catalog order
        """
        wines = list(inventory)
        wines_by_id: Dict[str, Wine] = {wine.id: wine for wine in wines}

        experienced = list(wines)
        for record in consumption_history:
            consumed = wines_by_id.get(record.wine_id)
            if consumed is not None:
                experienced.append(consumed)

        seen_regions = {wine.region.strip().lower() for wine in experienced if wine.region}
        seen_varietals = {v.strip().lower() for wine in experienced for v in wine.varietal}
        seen_types = {wine.type.value for wine in experienced}

        analysis = GapAnalysis(
            missing_regions=[r for r in self.regions if r.lower() not in seen_regions],
            missing_varietals=[v for v in self.varietals if v.lower() not in seen_varietals],
            underrepresented_types=[t for t in self.types if t not in seen_types],
        )

        logger.debug(
            f"Gap analysis: {len(analysis.missing_regions)} regions, "
            f"{len(analysis.missing_varietals)} varietals, "
            f"{len(analysis.underrepresented_types)} types unexplored"
        )
        return analysis
