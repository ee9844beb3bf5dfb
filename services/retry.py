"""Bounded retry for transient dependency failures."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

from services.errors import DependencyError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connection drops, timeouts (TimeoutError is an OSError) and DB driver hiccups
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    OSError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a dependency call and how long to wait between tries."""

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff: str = "linear"  # "linear" or "exponential"

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        if self.backoff == "exponential":
            return self.base_delay * (2 ** (attempt - 1))
        return self.base_delay * attempt


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    policy: RetryPolicy | None = None,
    retry_on: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
) -> T:
    """
    Run ``operation`` with bounded retries on transient errors.

    Non-transient exceptions propagate unchanged on the first failure.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        description: Human-readable name for log lines and the final error
        policy: Attempts and backoff, defaults to 3 attempts with linear 1s steps
        retry_on: Exception types treated as transient

    Returns:
        Whatever the operation returns

    Raises:
        DependencyError: If every attempt failed with a transient error
    """
    policy = policy or RetryPolicy()
    attempts = max(1, policy.max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == attempts:
                logger.error(
                    "%s failed after %d attempts: %s: %s",
                    description,
                    attempts,
                    type(e).__name__,
                    e,
                )
                raise DependencyError(f"{description} failed") from e

            logger.warning(
                "%s failed, attempt %d/%d: %s",
                description,
                attempt,
                attempts,
                e,
            )
            await asyncio.sleep(policy.delay_for(attempt))

    # Unreachable: the loop either returns or raises
    raise DependencyError(f"{description} failed")
