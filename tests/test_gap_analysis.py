"""
Tests for collection gap analysis.
"""

from cellarwise.gap_analysis import GapAnalyzer


class TestGapAnalyzer:
    """Unexplored regions, varietals and types."""

    def test_empty_collection_misses_everything(self):
        """With nothing tried, the whole catalog is missing."""
        gaps = GapAnalyzer().analyze(None, [], [])
        assert gaps.missing_regions[0] == "Bordeaux"
        assert len(gaps.missing_regions) == 7
        assert len(gaps.missing_varietals) == 6
        assert gaps.underrepresented_types == ["red", "white", "sparkling", "rosé", "dessert"]
        assert gaps.has_gaps

    def test_inventory_covers_entries(self, make_wine):
        """Inventory regions, varietals and types are not gaps (case-insensitive)."""
        wines = [
            make_wine("a", region="bordeaux", varietal=["merlot"]),
            make_wine("b", type="sparkling", region="Champagne", varietal=["Chardonnay"]),
        ]
        gaps = GapAnalyzer().analyze(None, [], wines)
        assert "Bordeaux" not in gaps.missing_regions
        assert "Champagne" not in gaps.missing_regions
        assert "Merlot" not in gaps.missing_varietals
        assert "Chardonnay" not in gaps.missing_varietals
        assert gaps.underrepresented_types == ["white", "rosé", "dessert"]

    def test_catalog_order_preserved(self, make_wine):
        """Missing entries come back in catalog order."""
        gaps = GapAnalyzer().analyze(None, [], [make_wine(region="Tuscany")])
        assert gaps.missing_regions == [
            "Bordeaux", "Burgundy", "Napa Valley", "Barossa Valley", "Rioja", "Champagne",
        ]

    def test_history_for_unknown_wines_ignored(self, make_record):
        """Records whose wine is not in the inventory contribute nothing."""
        gaps = GapAnalyzer().analyze(None, [make_record("gone", 8)], [])
        assert len(gaps.missing_regions) == 7

    def test_custom_catalogs(self, make_wine):
        """Catalogs are injectable."""
        analyzer = GapAnalyzer(regions=["Jura"], varietals=["Savagnin"], types=["white"])
        gaps = analyzer.analyze(None, [], [make_wine(region="Jura", varietal=["Savagnin"], type="white")])
        assert not gaps.has_gaps
