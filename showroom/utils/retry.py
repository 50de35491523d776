"""Exponential backoff for reconnecting to the change feed."""

import asyncio
import random
from typing import Any, Awaitable, Callable

from loguru import logger

JITTER = 0.1


class Backoff:
    """Doubling delay between attempts, capped at ``max_delay``.

    ``max_retries`` counts the attempts after the first one, so a value of 3
    allows four calls in total.
    """

    def __init__(self, max_retries: int = 3, base_delay: float = 0.5, max_delay: float = 10.0):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def delay(self, retry: int) -> float:
        """Seconds to wait before retry number ``retry`` (0-based), jitter included."""
        capped = min(self.base_delay * 2 ** retry, self.max_delay)
        return capped + random.uniform(0, capped * JITTER)

    async def run(self, attempt: Callable[[], Awaitable[Any]], label: str = "attempt") -> Any:
        """Await ``attempt()`` until it succeeds or the retries run out.

        The last exception propagates once every retry has failed.
        """
        retry = 0
        while True:
            try:
                return await attempt()
            except Exception as e:
                if retry >= self.max_retries:
                    logger.error(f"{label} gave up after {retry + 1} tries: {e}")
                    raise
                wait = self.delay(retry)
                retry += 1
                logger.warning(f"{label} failed ({retry}/{self.max_retries + 1}): {e}; next try in {wait:.2f}s")
                await asyncio.sleep(wait)
