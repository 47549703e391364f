"""
Task batching for rate-limited providers.

run_batched() takes a list of work items, runs each batch concurrently,
pauses between batches, and returns one Outcome per item in input order.
A failing item never aborts its batch.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class BatchPolicy:
    """Concurrency and pacing for one provider."""
    batch_size: int
    delay_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")


@dataclass(frozen=True)
class Outcome(Generic[T, R]):
    """Result of one work item: a value or the exception it raised."""
    item: T
    value: Optional[R] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_batched(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    policy: BatchPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[Outcome[T, R]]:
    """
    Run ``worker`` over ``items`` in fixed-size concurrent batches.

    Args:
        items: Work items
        worker: Coroutine function applied to each item
        policy: Batch size and inter-batch delay
        sleep: Awaitable used for the pause (injectable for tests)

    Returns:
        One Outcome per item, in input order
    """
    outcomes: list[Outcome[T, R]] = []
    size = policy.batch_size

    for start in range(0, len(items), size):
        batch = list(items[start:start + size])
        results = await asyncio.gather(
            *(worker(item) for item in batch),
            return_exceptions=True,
        )

        for item, result in zip(batch, results):
            if isinstance(result, Exception):
                outcomes.append(Outcome(item=item, error=result))
            elif isinstance(result, BaseException):
                # CancelledError, KeyboardInterrupt: not a per-item failure
                raise result
            else:
                outcomes.append(Outcome(item=item, value=result))

        if start + size < len(items) and policy.delay_seconds > 0:
            logger.debug(
                f"Batch {start // size + 1} done, sleeping {policy.delay_seconds}s"
            )
            await sleep(policy.delay_seconds)

    return outcomes
