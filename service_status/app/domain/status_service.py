"""
Status service: cached, suppression-aware views over the account directory.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

from shared.errors import AccessLayerException
from shared.logging import get_logger

from ..caching.ttl_cache import DEFAULT_TTL_MS, TTLCache
from .aggregate import issue_categories, recompute_summary, validate_summary
from .fetcher import DEFAULT_CONCURRENCY, BoundedFetcher
from .models import AccountList, ResultSource, ServiceResult, StatusSummary
from .suppression import SuppressionStore, filter_suppressed

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.sonar_client import SonarClient
    from shared.metrics import MetricsCollector


SUMMARY_KEY = "summary"
DOWN_KEY = "down"
WARNING_KEY = "warning"


class StatusService:
    """Owns the TTL cache, the bounded fetcher, and the directory client.

    Every consumer-facing operation returns a ``ServiceResult``; upstream and
    configuration failures become ``ok=False`` results with a zero-valued
    payload and leave the cache untouched.

    Concurrent misses on one key each refresh upstream unless
    ``single_flight`` is enabled, in which case callers queue on a per-key
    lock and re-check the cache before refreshing.
    """

    def __init__(
        self,
        client: "SonarClient",
        suppressions: SuppressionStore,
        *,
        cache_ttl_ms: int = DEFAULT_TTL_MS,
        concurrency: int = DEFAULT_CONCURRENCY,
        single_flight: bool = False,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.suppressions = suppressions
        self.metrics = metrics
        self.single_flight = single_flight
        self.cache: TTLCache[Any] = TTLCache(cache_ttl_ms, clock=clock)
        self.fetcher: BoundedFetcher = BoundedFetcher(concurrency, name="suppressed_accounts", metrics=metrics)
        self.logger = get_logger("status.service")
        self._locks: Dict[str, asyncio.Lock] = {}
        # bumped on every invalidation; refreshes that straddle one are not cached
        self._generation = 0

    async def get_summary(self) -> ServiceResult:
        return await self._cached(SUMMARY_KEY, self._refresh_summary, StatusSummary.zero())

    async def get_down_list(self) -> ServiceResult:
        return await self._cached(DOWN_KEY, self._refresh_down, AccountList(records=(), raw_count=0))

    async def get_warning_list(self) -> ServiceResult:
        return await self._cached(WARNING_KEY, self._refresh_warning, AccountList(records=(), raw_count=0))

    async def get_suppressed_list(self) -> ServiceResult:
        """Resolve every suppressed id against the directory. Never cached."""
        account_ids = self.suppressions.list_accounts()
        if not account_ids:
            return ServiceResult.success([], ResultSource.LOCAL)

        try:
            self.client.require_config()
            records = await self.fetcher.fetch_all(account_ids, self.client.fetch_account)
        except Exception as exc:
            self._log_failure("suppressed", exc)
            return ServiceResult.failure(exc, [])

        return ServiceResult.success(
            records,
            ResultSource.UPSTREAM,
            meta={"requested": len(account_ids), "resolved": len(records)},
        )

    def invalidate_all(self) -> None:
        """Make every cached view stale; called after each suppression change."""
        self._generation += 1
        self.cache.invalidate_all()

    def list_suppressions(self) -> ServiceResult:
        return ServiceResult.success(self.suppressions.list_accounts(), ResultSource.LOCAL)

    def suppress(self, account_id: str) -> ServiceResult:
        return self._mutate_suppressions(account_id, self.suppressions.add, "suppress")

    def unsuppress(self, account_id: str) -> ServiceResult:
        return self._mutate_suppressions(account_id, self.suppressions.remove, "unsuppress")

    def cache_stats(self) -> Dict[str, Any]:
        stats = self.cache.stats()
        stats["single_flight"] = self.single_flight
        stats["concurrency"] = self.fetcher.concurrency
        stats["suppressed_accounts"] = len(self.suppressions)
        return stats

    def _mutate_suppressions(self, account_id: str, mutate: Callable[[str], bool], action: str) -> ServiceResult:
        try:
            changed = mutate(account_id)
        except AccessLayerException as exc:
            self._log_failure(action, exc)
            return ServiceResult.failure(exc, {"accountId": account_id, "changed": False})
        finally:
            # every attempt invalidates, whether or not the store changed
            self.invalidate_all()

        return ServiceResult.success({"accountId": str(account_id), "changed": changed}, ResultSource.LOCAL)

    async def _cached(self, key: str, refresh: Callable[[], Awaitable[Any]], default: Any) -> ServiceResult:
        cached = self._lookup(key)
        if cached is not None:
            return self._success(cached, ResultSource.CACHE)

        try:
            if self.single_flight:
                lock = self._locks.setdefault(key, asyncio.Lock())
                async with lock:
                    cached = self._lookup(key)
                    if cached is not None:
                        return self._success(cached, ResultSource.CACHE)
                    value = await self._refresh_and_store(key, refresh)
            else:
                value = await self._refresh_and_store(key, refresh)
        except Exception as exc:
            self._log_failure(key, exc)
            return ServiceResult.failure(exc, default)

        return self._success(value, ResultSource.UPSTREAM)

    async def _refresh_and_store(self, key: str, refresh: Callable[[], Awaitable[Any]]) -> Any:
        generation = self._generation
        value = await refresh()
        if generation == self._generation:
            self.cache.set(key, value)
        else:
            self.logger.info("Suppression list changed during refresh; result not cached", cache_key=key)
        return value

    def _lookup(self, key: str) -> Any:
        value = self.cache.get(key)
        if self.metrics:
            self.metrics.increment_counter(
                "status_cache_lookups_total", cache_key=key, result="hit" if value is not None else "miss"
            )
        return value

    @staticmethod
    def _success(value: Any, source: ResultSource) -> ServiceResult:
        if isinstance(value, AccountList):
            return ServiceResult.success(list(value.records), source, meta=value.meta())
        return ServiceResult.success(value, source)

    async def _refresh_summary(self) -> StatusSummary:
        self.client.require_config()
        generation = self._generation
        suppressed = self.suppressions.members()

        raw, down_rows, warning_rows = await asyncio.gather(
            self.client.fetch_equipment_summary(),
            self.client.fetch_down_accounts(),
            self.client.fetch_warning_accounts(),
        )

        down = filter_suppressed(down_rows, suppressed)
        warning = filter_suppressed(warning_rows, suppressed)
        customer = recompute_summary(raw, down.suppressed_count, warning.suppressed_count)
        issues = validate_summary(customer)
        if issues:
            self._report_inconsistency(raw, customer, issues)

        # the list views come from the same snapshot, so cache them alongside
        down_list = AccountList(records=tuple(down.visible), raw_count=len(down_rows))
        warning_list = AccountList(records=tuple(warning.visible), raw_count=len(warning_rows))
        if generation == self._generation:
            self.cache.set(DOWN_KEY, down_list)
            self.cache.set(WARNING_KEY, warning_list)

        self.logger.info(
            "Status summary refreshed",
            raw=raw.to_dict(),
            visible=customer.to_dict(),
            suppressed_down=down.suppressed_count,
            suppressed_warning=warning.suppressed_count,
        )
        return StatusSummary(
            customer=customer,
            suppressed_down=down.suppressed_count,
            suppressed_warning=warning.suppressed_count,
            issues=tuple(issues),
        )

    async def _refresh_down(self) -> AccountList:
        self.client.require_config()
        rows = await self.client.fetch_down_accounts()
        return self._visible_list(rows)

    async def _refresh_warning(self) -> AccountList:
        self.client.require_config()
        rows = await self.client.fetch_warning_accounts()
        return self._visible_list(rows)

    def _visible_list(self, rows) -> AccountList:
        result = filter_suppressed(rows, self.suppressions.members())
        return AccountList(records=tuple(result.visible), raw_count=len(rows))

    def _report_inconsistency(self, raw, customer, issues) -> None:
        self.logger.warning(
            "Status summary is inconsistent with upstream lists",
            raw=raw.to_dict(),
            visible=customer.to_dict(),
            issues=issues,
        )
        if self.metrics:
            for category in issue_categories(issues):
                self.metrics.increment_counter("status_summary_inconsistencies_total", category=category)

    def _log_failure(self, operation: str, exc: Exception) -> None:
        if isinstance(exc, AccessLayerException):
            self.logger.error(
                "Status operation failed", operation=operation, code=exc.code, error=exc.message, details=exc.details
            )
        else:
            self.logger.error("Status operation failed", operation=operation, error=str(exc), exc_info=True)
        if self.metrics:
            self.metrics.record_error(getattr(exc, "code", type(exc).__name__))
