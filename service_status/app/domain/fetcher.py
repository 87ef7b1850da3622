"""
Bounded-concurrency batch resolution of identifiers.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


R = TypeVar("R")

DEFAULT_CONCURRENCY = 5

FetchOne = Callable[[str], Awaitable[Sequence[R]]]


class BoundedFetcher(Generic[R]):
    """Resolve identifiers with at most ``concurrency`` calls in flight.

    Work items are ``(index, identifier)`` pairs on a queue drained by
    ``min(concurrency, len(ids))`` workers. Results are tagged with their
    index and re-sorted, so output order follows input order no matter
    which call finishes first. A failing identifier contributes nothing
    and is not retried; the batch never fails as a whole.
    """

    def __init__(
        self,
        concurrency: int = DEFAULT_CONCURRENCY,
        *,
        name: str = "batch",
        metrics: Optional["MetricsCollector"] = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.name = name
        self.metrics = metrics
        self.logger = get_logger("status.fetcher")

    async def fetch_all(self, ids: Sequence[Any], fetch_one: FetchOne) -> List[R]:
        """Fetch every identifier in ``ids`` and return records in input order."""
        if not ids:
            return []

        queue: "asyncio.Queue[Tuple[int, str]]" = asyncio.Queue()
        for index, identifier in enumerate(ids):
            queue.put_nowait((index, str(identifier)))

        tagged: List[Tuple[int, Sequence[R]]] = []
        failures: List[str] = []

        async def worker() -> None:
            while True:
                try:
                    index, identifier = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    records = await fetch_one(identifier)
                except Exception as exc:
                    failures.append(identifier)
                    self._record_failure(identifier, exc)
                    continue
                tagged.append((index, list(records or ())))

        start = time.perf_counter()
        worker_count = min(self.concurrency, len(ids))
        await asyncio.gather(*(worker() for _ in range(worker_count)))

        # sort is stable and indexes are unique, so each id keeps its slot
        tagged.sort(key=lambda item: item[0])
        results = [record for _, records in tagged for record in records]

        self.logger.info(
            "Batch fetch completed",
            batch=self.name,
            requested=len(ids),
            workers=worker_count,
            failed=len(failures),
            records=len(results),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return results

    def _record_failure(self, identifier: str, exc: Exception) -> None:
        self.logger.warning(
            "Batch fetch item failed; skipping",
            batch=self.name,
            identifier=identifier,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        if self.metrics:
            self.metrics.increment_counter("batch_fetch_failures_total", operation=self.name)
