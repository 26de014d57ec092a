"""
Request pacing.

NCBI allows about 3 requests/second without an API key. The batch size and
inter-chunk delay for each operation kind come from a pacing policy; the wait
itself goes through an injectable ``sleep`` coroutine function.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Iterator, Protocol, TypeVar

from pubmed_navigator.constants import BATCH_CHUNK_PLANS

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

_T = TypeVar("_T")


class PacingPolicy(Protocol):
    def batch_size(self, kind: str) -> int:
        """How many identifiers go into one request for *kind*."""
        ...

    def delay(self, kind: str, chunk_index: int) -> float:
        """Seconds to wait before chunk *chunk_index* (> 0) of *kind*."""
        ...


class FixedPacing:
    """Per-kind constant chunk size and delay.

    Kinds are the string values of ``OperationKind``.
    """

    def __init__(self, plans: dict[str, tuple[int, float]] | None = None) -> None:
        self.plans = dict(BATCH_CHUNK_PLANS if plans is None else plans)

    def _plan(self, kind: str) -> tuple[int, float]:
        try:
            return self.plans[kind]
        except KeyError:
            raise ValueError(f"No pacing plan for operation kind '{kind}'") from None

    def batch_size(self, kind: str) -> int:
        return self._plan(kind)[0]

    def delay(self, kind: str, chunk_index: int) -> float:
        return self._plan(kind)[1]


def chunked(items: list[_T], size: int) -> Iterator[list[_T]]:
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for i in range(0, len(items), size):
        yield items[i : i + size]


async def paced(
    chunks: list[list[_T]],
    delay_for: Callable[[int], float],
    sleep: SleepFn = asyncio.sleep,
) -> AsyncIterator[tuple[int, list[_T]]]:
    """Yield (index, chunk), awaiting ``delay_for(index)`` between chunks.

    No wait happens before the first chunk or after the last.
    """
    for index, chunk in enumerate(chunks):
        if index > 0:
            wait = delay_for(index)
            if wait > 0:
                logger.debug("Pacing: sleeping %.2fs before chunk %d", wait, index)
                await sleep(wait)
        yield index, chunk
