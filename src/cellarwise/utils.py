"""
Utility functions for Cellarwise.

Includes logging setup, input sanitization, date arithmetic and batching.
"""

import logging
import math
import os
import re
from datetime import date, datetime, time
from typing import Iterable, Iterator, List, Optional, TypeVar, Union

# Configure logging
logging.basicConfig(
    level=os.getenv("CELLARWISE_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("cellarwise")

T = TypeVar('T')

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 24 * 60 * 60


# =======================
# INPUT SANITIZATION
# =======================

def sanitize_text_input(text: Optional[str], max_length: int = 500) -> str:
    """
    Sanitize free-text context before it is embedded in a reasoning query.

    Args:
        text: Raw user input (occasion, food description)
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    dangerous_patterns = [
        r'ignore[\s\.\,\:\;]+(previous|all|the|above)',
        r'disregard[\s\.\,\:\;]+previous',
        r'system[\s\.\,\:\;]*:',
        r'assistant[\s\.\,\:\;]*:',
        r'\[/?INST\]',
        r'<\|(im_start|im_end|system|assistant)\|>',
        r'you\s+are\s+now',
    ]

    for pattern in dangerous_patterns:
        text = re.sub(pattern, '', text, flags=re.IGNORECASE | re.MULTILINE)

    # Collapse newlines, drop non-printable characters
    text = re.sub(r'\s*\n\s*', ' ', text)
    text = ''.join(char for char in text if char.isprintable())

    return text.strip()


# =======================
# DATE ARITHMETIC
# =======================

def as_datetime(value: DateLike) -> datetime:
    """
    Interpret a calendar date as local midnight.

    Naive datetimes are taken as local time; aware ones are converted to
    local time before the zone is dropped.
    """
    if isinstance(value, datetime):
        return value.astimezone().replace(tzinfo=None) if value.tzinfo else value
    return datetime.combine(value, time.min)


def resolve_now(now: Optional[DateLike] = None) -> datetime:
    """Return the evaluation instant, defaulting to the current local time."""
    return as_datetime(now) if now is not None else datetime.now()


def days_until(target: DateLike, now: DateLike) -> int:
    """
    Whole days from now until target, rounded up.

    Negative when target is in the past.
    """
    delta = as_datetime(target) - as_datetime(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


# =======================
# NUMERIC HELPERS
# =======================

def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, handling zero division.

    Args:
        numerator: Number to divide
        denominator: Number to divide by
        default: Value to return if division by zero

    Returns:
        Result of division or default
    """
    if denominator == 0:
        return default
    return numerator / denominator


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


# =======================
# BATCHING
# =======================

def iter_batches(items: Iterable[T], batch_size: int) -> Iterator[List[T]]:
    """
    Yield successive lists of at most batch_size items.

    Args:
        items: Any iterable
        batch_size: Positive batch size

    Yields:
        Lists of items in input order
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    batch: List[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch
