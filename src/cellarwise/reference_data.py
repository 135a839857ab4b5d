"""
Static reference tables.

Curated aging data, regional premiums, gap-analysis catalogs, food pairing
heuristics and serving profiles. Everything here is read-only lookup data
built once at import time.

Curated drinking windows are based on Wine Spectator, Robert Parker,
Jancis Robinson and Decanter guidance.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from cellarwise.constants import WineType


@dataclass(frozen=True)
class CuratedAgingEntry:
    """Curated drinking window expressed in years from vintage."""
    region: str
    earliest: int
    peak_start: int
    peak_end: int
    latest: int
    source: str
    confidence: float
    producer: str = ""
    varietals: Tuple[str, ...] = ()

    @property
    def aging_potential(self) -> int:
        return self.latest


CURATED_AGING: Tuple[CuratedAgingEntry, ...] = (
    # Bordeaux First Growths
    CuratedAgingEntry(producer="Château Margaux", region="Margaux",
                      earliest=8, peak_start=15, peak_end=35, latest=50,
                      source="Wine Spectator", confidence=0.95),
    CuratedAgingEntry(producer="Château Latour", region="Pauillac",
                      earliest=10, peak_start=20, peak_end=40, latest=60,
                      source="Robert Parker", confidence=0.95),
    # Burgundy Grand Cru
    CuratedAgingEntry(producer="Domaine de la Romanée-Conti", region="Burgundy",
                      varietals=("Pinot Noir",),
                      earliest=5, peak_start=10, peak_end=25, latest=35,
                      source="Jancis Robinson", confidence=0.9),
    # Champagne
    CuratedAgingEntry(producer="Dom Pérignon", region="Champagne",
                      earliest=3, peak_start=8, peak_end=20, latest=30,
                      source="Decanter", confidence=0.9),
    # Generic regional entries (region + varietal)
    CuratedAgingEntry(region="Barolo", varietals=("Nebbiolo",),
                      earliest=5, peak_start=10, peak_end=25, latest=35,
                      source="Wine Spectator", confidence=0.85),
    CuratedAgingEntry(region="Napa Valley", varietals=("Cabernet Sauvignon",),
                      earliest=3, peak_start=8, peak_end=18, latest=25,
                      source="Wine Spectator", confidence=0.8),
    CuratedAgingEntry(region="Mosel", varietals=("Riesling",),
                      earliest=2, peak_start=5, peak_end=15, latest=25,
                      source="Jancis Robinson", confidence=0.85),
    CuratedAgingEntry(region="Douro", varietals=("Port Blend",),
                      earliest=10, peak_start=20, peak_end=40, latest=60,
                      source="Decanter", confidence=0.9),
)

# Curated lookups keyed by (producer, region) and (region, varietal), lower-cased
CURATED_BY_PRODUCER: Mapping[Tuple[str, str], CuratedAgingEntry] = MappingProxyType({
    (entry.producer.lower(), entry.region.lower()): entry
    for entry in CURATED_AGING
    if entry.producer
})

CURATED_BY_VARIETAL: Mapping[Tuple[str, str], CuratedAgingEntry] = MappingProxyType({
    (entry.region.lower(), varietal.lower()): entry
    for entry in CURATED_AGING
    for varietal in entry.varietals
})

BASE_AGING_BY_TYPE: Mapping[str, int] = MappingProxyType({
    WineType.RED.value: 8,
    WineType.WHITE.value: 4,
    WineType.SPARKLING.value: 6,
    WineType.DESSERT.value: 15,
    WineType.FORTIFIED.value: 20,
})

MIN_AGING_BY_TYPE: Mapping[str, int] = MappingProxyType({
    WineType.RED.value: 2,
    WineType.WHITE.value: 1,
    WineType.SPARKLING.value: 2,
    WineType.DESSERT.value: 3,
    WineType.FORTIFIED.value: 1,
})
DEFAULT_MIN_AGING_YEARS = 1

PREMIUM_REGIONS: Tuple[str, ...] = (
    "Bordeaux", "Burgundy", "Champagne", "Barolo", "Brunello di Montalcino",
    "Napa Valley", "Sonoma", "Willamette Valley", "Mosel", "Rheingau",
)


# =======================
# GAP ANALYSIS CATALOGS
# =======================

CATALOG_REGIONS: Tuple[str, ...] = (
    "Bordeaux", "Burgundy", "Tuscany", "Napa Valley", "Barossa Valley", "Rioja", "Champagne",
)

CATALOG_VARIETALS: Tuple[str, ...] = (
    "Cabernet Sauvignon", "Merlot", "Pinot Noir", "Chardonnay", "Sauvignon Blanc", "Riesling",
)

CATALOG_TYPES: Tuple[str, ...] = (
    WineType.RED.value, WineType.WHITE.value, WineType.SPARKLING.value,
    WineType.ROSE.value, WineType.DESSERT.value,
)


# =======================
# FOOD PAIRING HEURISTICS
# =======================
# Substring matches on free-text food descriptions. Best-effort only.

@dataclass(frozen=True)
class FoodRule:
    """Wine types allowed for food matching any of the keywords."""
    keywords: Tuple[str, ...]
    wine_types: Optional[Tuple[str, ...]]  # None means every type pairs


FOOD_FILTER_RULES: Tuple[FoodRule, ...] = (
    FoodRule(keywords=("beef", "steak", "lamb"),
             wine_types=(WineType.RED.value,)),
    FoodRule(keywords=("fish", "seafood", "oyster"),
             wine_types=(WineType.WHITE.value, WineType.SPARKLING.value)),
    FoodRule(keywords=("cheese",), wine_types=None),
)

PAIRING_NOTES: Mapping[str, Tuple[Tuple[Tuple[str, ...], str], ...]] = MappingProxyType({
    WineType.RED.value: (
        (("beef", "steak", "lamb"), "Excellent pairing - the tannins will complement the rich meat flavors."),
        (("cheese",), "Classic pairing - try with aged cheeses for best results."),
    ),
    WineType.WHITE.value: (
        (("fish", "seafood", "oyster"), "Perfect match - the acidity will enhance the delicate flavors."),
        (("chicken",), "Versatile pairing that works well with various preparations."),
    ),
    WineType.SPARKLING.value: (
        (("fish", "seafood", "oyster"), "Bright bubbles cut through briny, delicate seafood."),
    ),
})
DEFAULT_PAIRING_NOTE = "This wine should complement your meal nicely."


# =======================
# SERVING PROFILES
# =======================

@dataclass(frozen=True)
class ServingProfile:
    """Serving temperature and glassware for a wine type."""
    celsius: int
    fahrenheit: int
    glass_type: str


SERVING_PROFILES: Mapping[str, ServingProfile] = MappingProxyType({
    WineType.RED.value: ServingProfile(celsius=16, fahrenheit=61, glass_type="Bordeaux glass"),
    WineType.WHITE.value: ServingProfile(celsius=10, fahrenheit=50, glass_type="White wine glass"),
    WineType.SPARKLING.value: ServingProfile(celsius=6, fahrenheit=43, glass_type="Flute or tulip glass"),
})
