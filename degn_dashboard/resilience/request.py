"""Retry wrapper for flaky upstream calls."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .backoff import BackoffPolicy, is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Classifier = Callable[[BaseException], bool]
Sleeper = Callable[[float], Awaitable[object]]


class ResilientRequest:
    """Run an async operation, retrying transient failures with backoff.

    The wait between attempts is an ``asyncio.sleep`` so other requests keep
    running on the loop. Permanent errors propagate on first occurrence and
    the last transient error is re-raised unchanged once retries run out.
    """

    def __init__(
        self,
        policy: BackoffPolicy | None = None,
        classify: Classifier = is_transient,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.policy = policy or BackoffPolicy()
        self.classify = classify
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        classify: Classifier | None = None,
        policy: BackoffPolicy | None = None,
        label: str = "request",
    ) -> T:
        classify = classify or self.classify
        policy = policy or self.policy

        retry = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if not classify(e):
                    raise
                if retry >= policy.max_retries:
                    logger.error(
                        "%s failed after %d attempts: %s", label, retry + 1, e
                    )
                    raise

                retry += 1
                delay_ms = policy.schedule(retry)
                logger.warning(
                    "%s failed (%s), retry %d/%d in %d ms",
                    label, e, retry, policy.max_retries, delay_ms,
                )
                await self._sleep(delay_ms / 1000)
