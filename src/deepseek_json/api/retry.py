"""Deterministic retry classification and exponential backoff."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from deepseek_json.api.errors import ChatError, ErrorKind

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 0.5
DEFAULT_BACKOFF_MULTIPLIER = 2.0
RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.SERVER_BUSY, ErrorKind.NETWORK_ERROR, ErrorKind.TIMEOUT},
)


class RetryDecision(str, Enum):
    """Outcome of classifying a failed attempt."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff policy for one logical request."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    retryable_kinds: frozenset[ErrorKind] = field(default=RETRYABLE_KINDS)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if ErrorKind.CANCELED in self.retryable_kinds:
            raise ValueError("canceled requests are never retried")

    def classify(self, error: ChatError) -> RetryDecision:
        if error.kind in self.retryable_kinds:
            return RetryDecision.RETRYABLE
        return RetryDecision.FATAL

    def delay_for(self, attempt_index: int) -> float:
        """Return the sleep after failed attempt N (1-based) before attempt N+1."""

        if attempt_index < 1:
            raise ValueError("attempt_index is 1-based")
        return self.base_delay_seconds * self.backoff_multiplier ** (attempt_index - 1)
