"""Utility functions for Mailbox Activity."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import wraps
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")
R = TypeVar("R")


def retry_on_failure(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    should_retry: Callable[[Exception], bool] | None = None,
) -> Callable[[F], F]:
    """Decorator to retry a function on failure with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        should_retry: Predicate deciding whether an exception is transient.
            Exceptions it rejects are raised immediately. None retries all.

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if should_retry is not None and not should_retry(e):
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "function_retry_exhausted",
                            function=func.__name__,
                            attempts=max_retries + 1,
                            error=str(e),
                        )
                        raise
                    logger.warning(
                        "function_retry",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=current_delay,
                        error=str(e),
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

            raise AssertionError("unreachable")

        return wrapper  # type: ignore

    return decorator


@dataclass(frozen=True)
class BatchOutcome(Generic[T, R]):
    """Result of running one item through a batched worker."""

    item: T
    result: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_in_batches(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    batch_size: int,
    timeout: float | None = None,
) -> list[BatchOutcome[T, R]]:
    """Run ``worker`` over ``items`` with at most ``batch_size`` calls in flight.

    Batches run strictly one after another: batch N+1 starts only after every
    call in batch N has settled. A failing or timed-out call is reported in its
    outcome and never affects its siblings.

    Args:
        items: Work items, processed in order.
        worker: Async callable applied to each item.
        batch_size: Maximum number of concurrent calls.
        timeout: Per-call timeout in seconds, or None for no timeout.

    Returns:
        One outcome per item, in input order.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    async def run_one(item: T) -> BatchOutcome[T, R]:
        try:
            if timeout is None:
                result = await worker(item)
            else:
                result = await asyncio.wait_for(worker(item), timeout=timeout)
        except Exception as exc:  # noqa: BLE001
            return BatchOutcome(item=item, error=exc)
        return BatchOutcome(item=item, result=result)

    pending: Sequence[T] = list(items)
    outcomes: list[BatchOutcome[T, R]] = []
    for start in range(0, len(pending), batch_size):
        batch = pending[start : start + batch_size]
        outcomes.extend(await asyncio.gather(*(run_one(item) for item in batch)))

    return outcomes
