import asyncio
import logging
from collections.abc import Coroutine, Iterable, Mapping
from contextlib import suppress
from typing import Any

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, retry_if_result, wait_fixed

from application.services.rate_store import RateStore
from config.settings import RateServiceConfig
from domain.exceptions.currency import CacheError, ProviderError
from domain.models.currency import BASE_CURRENCY, CrossRateTable
from infrastructure.cache.redis_cache import RedisSnapshotStore
from infrastructure.monitoring.logger import EventType, event_extra
from infrastructure.providers.base import ExchangeRateProvider

logger = logging.getLogger(__name__)


def derive_cross_rates(
    usd_rates: Mapping[str, float], codes: Iterable[str], base: str = BASE_CURRENCY
) -> CrossRateTable:
    """Expand a base-denominated rate mapping into a full from/to table.

    A missing target quoted against the base gives 0 (rate unavailable).
    Anywhere else a missing or zero rate is replaced by 1. No upstream
    rates at all gives an empty table.
    """
    if not usd_rates:
        return {}

    codes = list(codes)
    table: CrossRateTable = {}

    for from_code in codes:
        row: dict[str, float] = {}
        for to_code in codes:
            if from_code == to_code:
                row[to_code] = 1.0
            elif from_code == base:
                row[to_code] = usd_rates.get(to_code) or 0
            elif to_code == base:
                row[to_code] = 1 / (usd_rates.get(from_code) or 1)
            else:
                from_rate = usd_rates.get(from_code) or 1
                to_rate = usd_rates.get(to_code) or 1
                row[to_code] = to_rate / from_rate
        table[from_code] = row

    return table


def _is_empty(table: CrossRateTable | None) -> bool:
    return not table


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    if outcome is not None and outcome.failed:
        reason = str(outcome.exception())
    else:
        reason = "empty rate table"
    logger.warning(
        f"Rate fetch attempt {retry_state.attempt_number} failed ({reason}); "
        f"retrying in {retry_state.upcoming_sleep:.1f}s",
        extra=event_extra(
            EventType.RATE_FETCH,
            attempt=retry_state.attempt_number,
            reason=reason,
        ),
    )


class RateFetcher:
    """Keeps the rate store filled from the upstream rate API.

    Owns two timers: the periodic refresh, started once and kept for the
    fetcher's lifetime, and the fast retry loop, which runs only until one
    attempt yields a non-empty table. Starting a new retry loop cancels the
    previous one.
    """

    def __init__(
        self,
        store: RateStore,
        provider: ExchangeRateProvider,
        snapshot_store: RedisSnapshotStore,
        config: RateServiceConfig,
    ):
        self.store = store
        self.provider = provider
        self.snapshot_store = snapshot_store
        self.config = config

        self._retry_task: asyncio.Task | None = None
        self._periodic_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        # At most one upstream request in flight.
        self._request_lock = asyncio.Lock()

    @property
    def retry_task(self) -> asyncio.Task | None:
        return self._retry_task

    @property
    def periodic_task(self) -> asyncio.Task | None:
        return self._periodic_task

    @property
    def is_retrying(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    @property
    def is_periodic_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    def ensure_fresh(self) -> None:
        """Make sure rates are on their way. Safe to call on every request."""
        if not self.is_periodic_running:
            self._periodic_task = asyncio.create_task(self._run_periodic())

        if self.store.is_empty and not self.is_retrying:
            self.start_retry_cycle()

    def start_retry_cycle(self) -> asyncio.Task:
        self._cancel(self._retry_task)
        self.store.set_loading(True)
        self._retry_task = asyncio.create_task(self._fetch_with_retry())
        return self._retry_task

    async def refresh_once(self) -> bool:
        """One attempt, no retry. Skipped while another request is in flight."""
        if self._request_lock.locked():
            logger.debug("Skipping refresh: an upstream request is already outstanding")
            return False

        try:
            table = await self._fetch_table()
        except ProviderError as e:
            logger.error(
                f"Rate refresh failed: {e}",
                extra=event_extra(EventType.RATE_FETCH, success=False, error=str(e)),
            )
            return False

        if _is_empty(table):
            logger.warning("Rate refresh returned an empty table; keeping last known rates")
            return False

        await self._publish(table)
        return True

    async def warm_from_persisted(self) -> bool:
        """Load the persisted snapshot into the store before any network call."""
        try:
            snapshot = await self.snapshot_store.load()
        except CacheError as e:
            logger.error(
                f"Could not load persisted rates: {e}",
                extra=event_extra(EventType.PERSISTENCE, operation="load", error=str(e)),
            )
            return False

        if snapshot is None or not snapshot.table:
            logger.info("No persisted rates found")
            return False

        self.store.set(snapshot.table)
        age_seconds = snapshot.age().total_seconds()
        logger.info(
            f"Loaded persisted rates stored {age_seconds:.0f}s ago",
            extra=event_extra(EventType.PERSISTENCE, operation="load", age_seconds=age_seconds),
        )

        if age_seconds > self.config.refresh_interval_seconds:
            logger.info("Persisted rates are stale; refreshing in the background")
            self._spawn(self.refresh_once())

        return True

    async def close(self) -> None:
        tasks = [t for t in (self._retry_task, self._periodic_task, *self._background) if t]
        for task in tasks:
            self._cancel(task)
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._retry_task = None
        self._periodic_task = None
        self._background.clear()

    async def _fetch_table(self) -> CrossRateTable:
        async with self._request_lock:
            snapshot = await self.provider.fetch_latest()
        return derive_cross_rates(snapshot.rates, self.config.supported_codes, base=snapshot.base)

    async def _fetch_with_retry(self) -> None:
        retrying = AsyncRetrying(
            wait=wait_fixed(self.config.retry_delay_seconds),
            retry=retry_if_exception_type(ProviderError) | retry_if_result(_is_empty),
            before_sleep=_log_retry,
        )
        table = await retrying(self._fetch_table)

        logger.info(
            f"Fetched rates for {len(table)} currencies",
            extra=event_extra(
                EventType.RATE_FETCH,
                success=True,
                attempts=retrying.statistics.get("attempt_number"),
            ),
        )
        await self._publish(table)

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self.config.refresh_interval_seconds)
            logger.info("Periodic rate refresh")
            self.start_retry_cycle()

    async def _publish(self, table: CrossRateTable) -> None:
        self.store.set(table)
        try:
            await self.snapshot_store.save(table)
        except CacheError as e:
            logger.error(
                f"Could not persist rates: {e}",
                extra=event_extra(EventType.PERSISTENCE, operation="save", error=str(e)),
            )

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @staticmethod
    def _cancel(task: asyncio.Task | None) -> None:
        if task is not None and not task.done():
            task.cancel()
