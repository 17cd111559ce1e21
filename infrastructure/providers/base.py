from typing import Any, Protocol

from domain.models.currency import UpstreamRateSnapshot


class ExchangeRateProvider(Protocol):
    """Anything that can hand back the latest base-denominated rate mapping."""

    @property
    def name(self) -> str:
        ...

    async def fetch_raw(self) -> dict[str, Any]:
        ...

    async def fetch_latest(self) -> UpstreamRateSnapshot:
        ...

    async def close(self) -> None:
        ...
