import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import aiohttp

logger = logging.getLogger("retry_policy")

T = TypeVar("T")


def is_transient_error(exc: BaseException) -> bool:
    """Connection failures, truncated bodies, timeouts, 5xx and 429 are worth
    another attempt."""
    if isinstance(exc, aiohttp.ClientResponseError):
        return exc.status == 429 or exc.status >= 500
    if isinstance(exc, (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)):
        return True
    return False


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    is_retryable: Callable[[BaseException], bool] = is_transient_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (self.multiplier ** attempt)

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "request") -> T:
        """Await ``operation`` until it succeeds, a non-retryable error occurs,
        or ``max_retries`` retries have been spent. The last error is re-raised."""
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as exc:
                if attempt >= self.max_retries or not self.is_retryable(exc):
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "[%s] transient failure (%s), retry %s/%s in %ss",
                    label,
                    exc,
                    attempt + 1,
                    self.max_retries,
                    delay,
                )
                await self.sleep(delay)
                attempt += 1
