"""
Standardized Error Handling for Cellarwise

Provides consistent error handling patterns across all modules.

Three kinds of failure are distinguished:
- invalid input (caller error, raised immediately)
- empty-but-valid state (never raised; handled with low-confidence responses)
- collaborator failure (reasoning service or persistence, propagated)
"""

import logging
from typing import Dict, NoReturn

from pydantic import ValidationError

logger = logging.getLogger(__name__)


class CellarError(Exception):
    """Base exception for Cellarwise."""
    pass


class InvalidInputError(CellarError, ValueError):
    """Missing or malformed input for the requested operation."""
    pass


class CollaboratorError(CellarError):
    """An external collaborator failed."""
    pass


class ReasoningServiceError(CollaboratorError):
    """Reasoning-service errors (API failures, unusable responses)."""
    pass


class PersistenceError(CollaboratorError):
    """Persistence errors (fetching snapshots, writing back windows)."""
    pass


def handle_llm_error(error: Exception, operation: str) -> NoReturn:
    """
    Standardized reasoning-service error handling.

    Logs at a level matching the failure and re-raises as
    ReasoningServiceError. Nothing is swallowed: the ranker decides
    nothing about retries or fallbacks for a failed collaborator.

    Args:
        error: Exception that occurred
        operation: Description of operation

    Raises:
        ReasoningServiceError: always
    """
    error_type = type(error).__name__

    if isinstance(error, ReasoningServiceError):
        raise error

    # Validation errors - the service answered with the wrong shape
    if isinstance(error, ValidationError):
        logger.error(f"Reasoning response validation failed during {operation}: {error}")
        raise ReasoningServiceError(f"Invalid response during {operation}") from error

    if error_type == "JSONDecodeError":
        logger.error(f"Invalid JSON from reasoning service during {operation}: {error}")
        raise ReasoningServiceError(f"Invalid JSON during {operation}") from error

    # Rate limits are retried by the adapter before reaching here
    if "rate limit" in str(error).lower() or error_type == "RateLimitError":
        logger.warning(f"Rate limit hit during {operation}: {error}")
        raise ReasoningServiceError(f"Rate limit during {operation}") from error

    if "api" in error_type.lower():
        logger.error(f"API error during {operation}: {error}")
        raise ReasoningServiceError(f"API error during {operation}") from error

    logger.error(f"Unexpected error during {operation}: {error_type} - {error}")
    raise ReasoningServiceError(f"Unexpected error during {operation}") from error


def handle_persistence_error(error: Exception, operation: str) -> NoReturn:
    """
    Standardized persistence error handling.

    Args:
        error: Exception raised by the storage client
        operation: Description of operation

    Raises:
        PersistenceError: always
    """
    if isinstance(error, PersistenceError):
        raise error

    if isinstance(error, ValidationError):
        logger.error(f"Stored record failed validation during {operation}: {error}")
        raise PersistenceError(f"Invalid stored data during {operation}") from error

    logger.error(f"Storage error during {operation}: {type(error).__name__} - {error}")
    raise PersistenceError(f"Storage error during {operation}") from error


def validate_llm_response(
    response: Dict,
    expected_keys: list,
    operation: str
) -> bool:
    """
    Validate reasoning-service response has expected structure.

    Args:
        response: Decoded JSON response
        expected_keys: List of required keys
        operation: Operation name for logging

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(response, dict):
        logger.error(f"Reasoning response is not a dict during {operation}: {type(response)}")
        return False

    missing_keys = [key for key in expected_keys if key not in response]
    if missing_keys:
        logger.error(f"Reasoning response missing keys during {operation}: {missing_keys}")
        return False

    return True


__all__ = [
    'CellarError',
    'InvalidInputError',
    'CollaboratorError',
    'ReasoningServiceError',
    'PersistenceError',
    'handle_llm_error',
    'handle_persistence_error',
    'validate_llm_response',
]
