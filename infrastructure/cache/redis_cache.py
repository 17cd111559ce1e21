import json
import logging
from datetime import UTC, datetime

from redis import asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions.currency import CacheError
from domain.models.currency import CrossRateTable, PersistedSnapshot

logger = logging.getLogger(__name__)


def _is_rate(value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


class RedisSnapshotStore:
    """Keeps the last good cross-rate table and the time it was stored.

    Two plain string keys, no TTL, written together in one MSET: the JSON
    table and the store time as milliseconds since the epoch.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        rates_key: str = "currency_rates",
        timestamp_key: str = "currency_rates_timestamp",
    ):
        self.redis = redis_client
        self.rates_key = rates_key
        self.timestamp_key = timestamp_key

    async def load(self) -> PersistedSnapshot | None:
        try:
            data = await self.redis.get(self.rates_key)
            raw_timestamp = await self.redis.get(self.timestamp_key)
        except RedisError as e:
            raise CacheError(f"Failed to read rate snapshot: {e}") from e

        if not data:
            return None

        try:
            table = json.loads(data)
        except json.JSONDecodeError as e:
            raise CacheError(f"Invalid json data under {self.rates_key}") from e

        if not isinstance(table, dict):
            raise CacheError(f"Invalid json data under {self.rates_key}: expected an object")

        for code, row in table.items():
            if not isinstance(row, dict) or not all(_is_rate(v) for v in row.values()):
                raise CacheError(f"Invalid json data under {self.rates_key}: bad row for {code}")

        return PersistedSnapshot(table=table, stored_at=self._parse_timestamp(raw_timestamp))

    async def save(self, table: CrossRateTable, stored_at: datetime | None = None) -> None:
        stored_at = stored_at or datetime.now(UTC)
        millis = int(stored_at.timestamp() * 1000)

        try:
            await self.redis.mset({self.rates_key: json.dumps(table), self.timestamp_key: str(millis)})
        except RedisError as e:
            raise CacheError(f"Failed to write rate snapshot: {e}") from e

    def _parse_timestamp(self, raw: str | bytes | None) -> datetime:
        # Missing or garbled timestamps count as infinitely old.
        try:
            millis = int(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.warning(f"No usable timestamp under {self.timestamp_key}; treating snapshot as stale")
            return datetime.fromtimestamp(0, tz=UTC)
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
