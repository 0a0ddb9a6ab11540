"""
domain.exceptions - Custom exception hierarchy for the shop admin assistant.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Sequence


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ValidationError(DomainError):
    """Raised when an action or tool payload is malformed or incomplete.

    Surfaced verbatim to the user, never retried.
    """


class NotFoundError(DomainError):
    """Raised when a SKU, item id or order reference cannot be resolved."""


class AmbiguousReferenceError(DomainError):
    """Raised when a free-text lookup matches more than one entity.

    Not a failure: callers catch it and move the session into
    disambiguation with the carried candidates.
    """

    def __init__(self, term: str, candidates: Sequence[Any]):
        super().__init__(f"{len(candidates)} items match '{term}'")
        self.term = term
        self.candidates = list(candidates)


class ExternalServiceError(DomainError):
    """Raised when a model provider, tool endpoint or retriever fails."""


class FailureReason(str, Enum):
    """Why a single provider attempt did not produce text."""
    UNCONFIGURED = "unconfigured"
    TIMEOUT = "timeout"
    ERROR = "error"
    EMPTY = "empty"


class ProviderError(ExternalServiceError):
    """Raised when a provider (or every provider in a chain) fails."""

    def __init__(self, message: str, reason: FailureReason = FailureReason.ERROR,
                 failures: Sequence[Any] = ()):
        super().__init__(message)
        self.reason = reason
        self.failures = list(failures)


class RateLimitExceeded(DomainError):
    """Raised when a client exceeds the request budget for the current window."""

    def __init__(self, key: str, retry_after: int):
        super().__init__(f"Rate limit exceeded for {key}")
        self.key = key
        self.retry_after = retry_after


class ConfigurationError(DomainError):
    """Raised when provider credentials or settings are missing."""


class RepositoryError(DomainError):
    """Raised when a storage operation fails."""
