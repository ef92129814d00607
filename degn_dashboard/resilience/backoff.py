"""Retry delay schedule and transient/permanent error classification."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

import aiohttp

from ..errors import TRANSIENT_CODES, PermanentRequestError, TransientNetworkError
from ..models import RetryAttempt


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff: retry *k* waits ``base_delay_ms * 2**(k-1)``.

    ``max_retries`` counts retries, not attempts; the default of 2 allows
    three attempts in total (300 ms, then 600 ms between them).
    """

    max_retries: int = 2
    base_delay_ms: int = 300

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be > 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def schedule(self, attempt: int) -> int:
        """Delay in milliseconds before 1-indexed retry ``attempt``."""
        if attempt < 1:
            raise ValueError(f"Retry index must be >= 1, got {attempt}")
        return self.base_delay_ms * 2 ** (attempt - 1)

    def attempts(self) -> tuple[RetryAttempt, ...]:
        """The full retry plan for this policy."""
        return tuple(
            RetryAttempt(attempt_index=k, delay_ms=self.schedule(k))
            for k in range(1, self.max_retries + 1)
        )

    def delays(self) -> tuple[int, ...]:
        return tuple(a.delay_ms for a in self.attempts())


def is_transient(error: BaseException) -> bool:
    """True when retrying ``error`` could plausibly succeed.

    Transient: no complete response (connection failure, timeout, a body
    cut off mid-read), an HTTP status >= 500, or a recognized transient
    transport code. Anything else, including every 4xx, is permanent.
    """
    if isinstance(error, TransientNetworkError):
        return True
    if isinstance(error, PermanentRequestError):
        return False

    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in TRANSIENT_CODES:
        return True

    status = getattr(error, "status", None)
    if isinstance(status, int):
        return status >= 500

    return isinstance(
        error,
        (
            aiohttp.ClientConnectionError,
            aiohttp.ClientPayloadError,
            asyncio.TimeoutError,
            ConnectionError,
        ),
    )
