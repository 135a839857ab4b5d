"""
Reasoning service collaborators.

The ranker asks a reasoning service for free-text reasoning, a
confidence, and wine suggestions (inventory ids or wines to buy). Any
implementation of the ReasoningService protocol works; the OpenAI
adapter below is the production one.

Calls are synchronous. Callers own timeouts and cancellation; transient
API errors are retried with exponential backoff before surfacing as
ReasoningServiceError.
"""

import json
import os
from typing import Any, Dict, List, Optional, Protocol, Sequence

from dotenv import load_dotenv
from openai import APIError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from cellarwise.config import OPENAI_MAX_TOKENS, OPENAI_MODEL, OPENAI_TEMPERATURE
from cellarwise.error_handling import ReasoningServiceError, handle_llm_error, validate_llm_response
from cellarwise.schema import RecommendationContext, ReasoningResult, TasteProfile, Wine
from cellarwise.utils import logger, sanitize_text_input

# Inventory lines sent with each query
PROMPT_INVENTORY_LIMIT = 10


class ReasoningService(Protocol):
    """Produces reasoning and suggestions for a recommendation query."""

    def suggest(
        self,
        query: str,
        context: Optional[RecommendationContext],
        taste_profile: Optional[TasteProfile],
        inventory: Sequence[Wine]
    ) -> ReasoningResult:
        ...


SYSTEM_PROMPT = """You are a sommelier helping someone manage their personal wine cellar.

Answer ONLY with a JSON object of this shape:
{
  "reasoning": "overall explanation",
  "educational_notes": "optional short lesson about the wines",
  "follow_up_questions": ["up to two short questions"],
  "suggestions": [
    {
      "wine_id": "id of an inventory wine, or null",
      "suggested_wine": {"name": "...", "producer": "...", "vintage": 2019, "region": "...",
                         "country": "...", "varietal": ["..."], "type": "red",
                         "estimated_price": 35.0},
      "reasoning": "why this wine",
      "confidence": 0.0
    }
  ]
}

When recommending from the inventory, use wine_id and leave suggested_wine null.
When recommending wines to buy, fill suggested_wine and leave wine_id null.
Confidence is between 0 and 1."""


def _format_taste_profile(taste_profile: Optional[TasteProfile]) -> str:
    if taste_profile is None:
        return "No taste profile yet."

    lines = []
    for label, bundle in (
        ("Red", taste_profile.red_wine_preferences),
        ("White", taste_profile.white_wine_preferences),
        ("Sparkling", taste_profile.sparkling_preferences),
    ):
        lines.append(
            f"{label}: body {bundle.body}, fruit {bundle.fruitiness:g}/10, "
            f"tannins {bundle.tannins:g}/10, acidity {bundle.acidity:g}/10"
        )
        if bundle.preferred_regions:
            lines.append(f"  Preferred regions: {', '.join(bundle.preferred_regions)}")
        if bundle.preferred_varietals:
            lines.append(f"  Preferred varietals: {', '.join(bundle.preferred_varietals)}")
        if bundle.disliked_characteristics:
            lines.append(f"  Dislikes: {', '.join(bundle.disliked_characteristics)}")

    price_range = taste_profile.general_preferences.price_range
    if price_range is not None:
        lines.append(f"Usual budget: {price_range.describe()}")
    return "\n".join(lines)


def _format_context(context: Optional[RecommendationContext]) -> str:
    if context is None:
        return "None given."

    parts = []
    if context.occasion:
        parts.append(f"Occasion: {sanitize_text_input(context.occasion, max_length=200)}")
    if context.food_pairing:
        parts.append(f"Food: {sanitize_text_input(context.food_pairing, max_length=200)}")
    if context.party_size:
        parts.append(f"Companions: {context.party_size}")
    if context.urgency:
        parts.append(f"Urgency: {context.urgency.value}")
    if context.wine_type:
        parts.append(f"Wine type: {context.wine_type.value}")
    if context.time_of_day:
        parts.append(f"Time of day: {context.time_of_day}")
    if context.price_range:
        parts.append(f"Budget: {context.price_range.describe()}")
    return "\n".join(parts) if parts else "None given."


def _format_inventory(inventory: Sequence[Wine]) -> str:
    if not inventory:
        return "Empty."

    lines = []
    for wine in inventory[:PROMPT_INVENTORY_LIMIT]:
        vintage = wine.vintage if wine.vintage is not None else "NV"
        status = wine.drinking_window.current_status.value if (
            wine.drinking_window and wine.drinking_window.current_status
        ) else "unknown"
        lines.append(
            f"- [{wine.id}] {wine.name} ({wine.producer}) - {vintage} {wine.type.value} from {wine.region}\n"
            f"  Status: {status}, Quantity: {wine.quantity}"
        )
    return "\n".join(lines)


def build_prompt(
    query: str,
    context: Optional[RecommendationContext],
    taste_profile: Optional[TasteProfile],
    inventory: Sequence[Wine]
) -> str:
    """Render the user message sent to the model."""
    return (
        f"{sanitize_text_input(query, max_length=1000)}\n\n"
        f"TASTE PROFILE:\n{_format_taste_profile(taste_profile)}\n\n"
        f"CONTEXT:\n{_format_context(context)}\n\n"
        f"INVENTORY (up to {PROMPT_INVENTORY_LIMIT} wines):\n{_format_inventory(inventory)}"
    )


class OpenAIReasoningService:
    """
    ReasoningService backed by the OpenAI chat completions API.

    Features:
    - JSON-mode responses validated with pydantic
    - Retry with exponential backoff on rate limits and API errors
    - Input sanitization of free-text context
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: str = OPENAI_MODEL,
        temperature: float = OPENAI_TEMPERATURE,
        max_tokens: int = OPENAI_MAX_TOKENS
    ):
        """
        Initialize the service.

        Args:
            client: Preconfigured OpenAI client. If None, one is built from OPENAI_API_KEY.
            model: Chat model name
            temperature: Sampling temperature
            max_tokens: Completion token cap

        Raises:
            ValueError: If no client is given and OPENAI_API_KEY is not set
        """
        if client is None:
            load_dotenv()
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            client = OpenAI(api_key=api_key)

        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((RateLimitError, APIError)),
        reraise=True
    )
    def _call_openai_with_retry(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """
        Call OpenAI API with automatic retry on transient errors.

        Args:
            messages: Chat messages

        Returns:
            Parsed JSON response

        Raises:
            OpenAIError: If all retries fail
            json.JSONDecodeError: If the model did not return JSON
        """
        try:
            logger.debug("Calling OpenAI API...")
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )

            usage = getattr(completion, "usage", None)
            if usage is not None:
                logger.debug(f"Reasoning call used {usage.total_tokens} tokens")

            response_content = completion.choices[0].message.content
            logger.debug("OpenAI API call successful")
            return json.loads(response_content or "")

        except RateLimitError as e:
            logger.warning(f"Rate limit hit, retrying... ({e})")
            raise
        except APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise

    def suggest(
        self,
        query: str,
        context: Optional[RecommendationContext],
        taste_profile: Optional[TasteProfile],
        inventory: Sequence[Wine]
    ) -> ReasoningResult:
        """
        Ask the model for reasoning and suggestions.

        Args:
            query: Natural-language request built by the ranker
            context: Request context
            taste_profile: User's taste profile
            inventory: Candidate wines (first ten are sent)

        Returns:
            Validated ReasoningResult

        Raises:
            ReasoningServiceError: On API failure or an unusable response
        """
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(query, context, taste_profile, inventory)},
        ]

        try:
            data = self._call_openai_with_retry(messages)
            if not validate_llm_response(data, ["suggestions"], "wine recommendation"):
                raise ReasoningServiceError("Reasoning response missing suggestions")
            result = ReasoningResult.model_validate(data)
        except Exception as e:
            handle_llm_error(e, "wine recommendation")

        logger.info(f"Reasoning service returned {len(result.suggestions)} suggestions")
        return result
