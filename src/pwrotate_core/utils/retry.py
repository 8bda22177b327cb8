"""Retry engine for establishing control connections.

Only operations that have not yet sent anything to the remote system may be
retried. The password change itself is never retried: repeating a PASS
command whose first attempt may have succeeded would present a stale old
password.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

# Get logger for this module
logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 0
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_range: tuple[float, float] = (0.5, 1.5)

    def __post_init__(self) -> None:
        """Validate retry configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")  # noqa: TRY003
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")  # noqa: TRY003
        if self.max_delay <= 0:
            raise ValueError("max_delay must be positive")  # noqa: TRY003
        if self.exponential_base <= 1:
            raise ValueError("exponential_base must be greater than 1")  # noqa: TRY003
        if self.jitter_range[0] >= self.jitter_range[1]:
            raise ValueError(  # noqa: TRY003
                "jitter_range must be (min, max) where min < max"
            )


class RetryEngine:
    """Core retry engine that handles retry logic and backoff calculations."""

    def __init__(self, config: RetryConfig) -> None:
        """Initialize the retry engine with configuration.

        Args:
            config: Retry configuration parameters.
        """
        self.config = config

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a specific retry attempt.

        Args:
            attempt: The retry attempt number (0-based).

        Returns:
            Delay in seconds before the next retry.
        """
        delay = min(
            self.config.base_delay * (self.config.exponential_base**attempt),
            self.config.max_delay,
        )

        if self.config.jitter:
            jitter_factor = random.uniform(*self.config.jitter_range)  # noqa: S311
            delay *= jitter_factor

        return delay

    async def execute_with_retry_async(
        self,
        func: Callable[[], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> T:
        """Execute an async callable with retry logic.

        Args:
            func: Zero-argument coroutine function to execute.
            retry_on: Exception types that trigger a retry. Anything else
                propagates immediately.

        Returns:
            Result of the function execution.

        Raises:
            The last exception encountered if all retries fail.
        """
        attempt = 0
        while True:
            try:
                return await func()
            except retry_on as e:
                if attempt >= self.config.max_retries:
                    raise
                delay = self.calculate_delay(attempt)
                logger.warning(
                    "Retrying after failure",
                    attempt=attempt + 1,
                    max_retries=self.config.max_retries,
                    delay=round(delay, 3),
                    error=str(e),
                )
                attempt += 1
                await asyncio.sleep(delay)


def create_retry_engine(
    max_retries: int = 0,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    *,
    jitter: bool = True,
    jitter_range: tuple[float, float] = (0.5, 1.5),
) -> RetryEngine:
    """Create a retry engine with the specified configuration.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Initial delay between retries in seconds.
        max_delay: Maximum delay between retries in seconds.
        exponential_base: Base for exponential backoff calculation.
        jitter: Whether to add random jitter to delays.
        jitter_range: Range for jitter factor (min, max).

    Returns:
        Configured RetryEngine instance.
    """
    config = RetryConfig(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
        exponential_base=exponential_base,
        jitter=jitter,
        jitter_range=jitter_range,
    )
    return RetryEngine(config)
