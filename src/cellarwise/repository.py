"""
Persistence collaborators.

CellarRepository is what the ranker and the refresh sweep need from
storage: read a user's snapshot and write derived drinking windows back.
SupabaseCellarRepository implements it over three tables:

    wines                 one row per wine, drinking_window stored as JSON
    taste_profiles        one row per user
    consumption_history   append-only, newest first by consumed_at
"""

import os
from typing import Any, Dict, List, Optional, Protocol, Sequence

from dotenv import load_dotenv
from supabase import Client, create_client

from cellarwise.error_handling import handle_persistence_error
from cellarwise.schema import ConsumptionRecord, TasteProfile, Wine
from cellarwise.utils import logger


class CellarRepository(Protocol):
    """Storage operations used by the recommendation engine."""

    def fetch_wines(self, user_id: str) -> List[Wine]:
        ...

    def fetch_taste_profile(self, user_id: str) -> Optional[TasteProfile]:
        ...

    def fetch_consumption_history(self, user_id: str, limit: int) -> List[ConsumptionRecord]:
        ...

    def save_drinking_windows(self, wines: Sequence[Wine]) -> None:
        ...


def _normalize_secret_string(raw_value: object, secret_name: str) -> str:
    """Normalize and validate secret strings read from the environment."""
    if raw_value is None:
        raise ValueError(f"{secret_name} is missing")

    value = str(raw_value).strip()

    # Handle accidental copied quotes inside .env values.
    quote_pairs = [
        ('"', '"'),
        ("'", "'"),
        ("“", "”"),
        ("‘", "’"),
    ]
    for left_quote, right_quote in quote_pairs:
        if value.startswith(left_quote) and value.endswith(right_quote) and len(value) >= 2:
            value = value[1:-1].strip()
            break

    if not value:
        raise ValueError(f"{secret_name} is empty")
    return value


def get_supabase_client() -> Client:
    """Return a Supabase client configured from SUPABASE_URL and SUPABASE_KEY."""
    load_dotenv()
    supabase_url = _normalize_secret_string(os.getenv("SUPABASE_URL"), "SUPABASE_URL")
    supabase_key = _normalize_secret_string(os.getenv("SUPABASE_KEY"), "SUPABASE_KEY")
    return create_client(supabase_url, supabase_key)


class SupabaseCellarRepository:
    """CellarRepository over Supabase tables."""

    def __init__(self, client: Optional[Client] = None):
        self.client = client or get_supabase_client()

    def fetch_wines(self, user_id: str) -> List[Wine]:
        """Return a user's wines, newest first."""
        try:
            res = (
                self.client.table("wines")
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            wines = [Wine.model_validate(row) for row in res.data or []]
        except Exception as e:
            handle_persistence_error(e, f"fetching wines for {user_id}")

        logger.info(f"Loaded {len(wines)} wines for user {user_id}")
        return wines

    def fetch_taste_profile(self, user_id: str) -> Optional[TasteProfile]:
        """Return a user's taste profile, or None if they have not built one."""
        try:
            res = (
                self.client.table("taste_profiles")
                .select("*")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            rows = res.data or []
            profile = TasteProfile.model_validate(rows[0]) if rows else None
        except Exception as e:
            handle_persistence_error(e, f"fetching taste profile for {user_id}")

        if profile is None:
            logger.info(f"No taste profile stored for user {user_id}")
        return profile

    def fetch_consumption_history(self, user_id: str, limit: int) -> List[ConsumptionRecord]:
        """Return the latest consumption records, newest first."""
        try:
            res = (
                self.client.table("consumption_history")
                .select("*")
                .eq("user_id", user_id)
                .order("consumed_at", desc=True)
                .limit(limit)
                .execute()
            )
            history = [ConsumptionRecord.model_validate(row) for row in res.data or []]
        except Exception as e:
            handle_persistence_error(e, f"fetching consumption history for {user_id}")

        return history

    def save_drinking_windows(self, wines: Sequence[Wine]) -> None:
        """Write each wine's drinking window (dates and status) back to its row."""
        for wine in wines:
            if wine.drinking_window is None:
                continue
            payload: Dict[str, Any] = {
                "drinking_window": wine.drinking_window.model_dump(mode="json", by_alias=True)
            }
            try:
                self.client.table("wines").update(payload).eq("id", wine.id).execute()
            except Exception as e:
                handle_persistence_error(e, f"saving drinking window for wine {wine.id}")

        logger.debug(f"Saved drinking windows for {len(wines)} wines")
