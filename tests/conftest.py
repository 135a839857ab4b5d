"""
Shared fixtures for Cellarwise tests.

All evaluation happens at a fixed instant; collaborators are in-memory fakes.
"""

from datetime import datetime

import pytest

from cellarwise.schema import (
    ConsumptionRecord,
    FlavorProfile,
    ReasoningResult,
    TasteProfile,
    Wine,
)


NOW = datetime(2024, 6, 15)


@pytest.fixture
def now():
    """Fixed evaluation instant (midnight, 15 June 2024)."""
    return NOW


@pytest.fixture
def make_wine():
    """Factory for wines with sensible defaults."""
    def _make(wine_id="w1", **overrides):
        data = {
            "id": wine_id,
            "user_id": "user-1",
            "name": f"Wine {wine_id}",
            "producer": "Test Estate",
            "vintage": 2018,
            "type": "red",
            "region": "Generic Region",
            "country": "Nowhere",
            "varietal": [],
            "quantity": 1,
        }
        data.update(overrides)
        return Wine.model_validate(data)
    return _make


@pytest.fixture
def taste_profile():
    """Profile preferring Bordeaux/Merlot reds and Chardonnay whites."""
    return TasteProfile(
        user_id="user-1",
        red_wine_preferences=FlavorProfile(
            preferred_regions=["Bordeaux"],
            preferred_varietals=["Merlot"],
        ),
        white_wine_preferences=FlavorProfile(
            preferred_varietals=["Chardonnay"],
        ),
    )


@pytest.fixture
def make_record():
    """Factory for consumption records."""
    def _make(wine_id, rating, consumed_at=datetime(2024, 1, 1)):
        return ConsumptionRecord(wine_id=wine_id, rating=rating, consumed_at=consumed_at)
    return _make


class FakeReasoningService:
    """Returns a canned result (or raises) and records every call."""

    def __init__(self, result=None, error=None):
        self.result = result or ReasoningResult()
        self.error = error
        self.calls = []

    def suggest(self, query, context, taste_profile, inventory):
        self.calls.append({
            "query": query,
            "context": context,
            "taste_profile": taste_profile,
            "inventory": list(inventory),
        })
        if self.error is not None:
            raise self.error
        return self.result


class FakeRepository:
    """In-memory CellarRepository."""

    def __init__(self, wines=None, taste_profile=None, history=None):
        self.wines = list(wines or [])
        self.taste_profile = taste_profile
        self.history = list(history or [])
        self.history_limits = []
        self.saved_batches = []

    def fetch_wines(self, user_id):
        return list(self.wines)

    def fetch_taste_profile(self, user_id):
        return self.taste_profile

    def fetch_consumption_history(self, user_id, limit):
        self.history_limits.append(limit)
        return self.history[:limit]

    def save_drinking_windows(self, wines):
        self.saved_batches.append(list(wines))


@pytest.fixture
def fake_reasoning():
    """Factory for fake reasoning services."""
    return FakeReasoningService


@pytest.fixture
def fake_repository():
    """Factory for fake repositories."""
    return FakeRepository
