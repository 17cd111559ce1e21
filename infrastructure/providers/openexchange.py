import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from domain.exceptions.currency import ProviderError
from domain.models.currency import BASE_CURRENCY, UpstreamRateSnapshot
from infrastructure.monitoring.logger import EventType, event_extra

logger = logging.getLogger(__name__)


class OpenExchangeProvider:
    DEFAULT_URL = "https://openexchangerates.org/api/latest.json"

    def __init__(
        self,
        app_id: str,
        api_url: str = DEFAULT_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10,
    ):
        self.app_id = app_id
        self.api_url = api_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def name(self) -> str:
        return "openexchange"

    async def fetch_raw(self) -> dict[str, Any]:
        """GET the latest rates and return the JSON body untouched."""
        # Pointing at our own proxy needs no key; it is added server-side.
        params = {"app_id": self.app_id} if self.app_id else {}

        try:
            response = await self._client.get(self.api_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Upstream call to {self.name} returned HTTP {e.response.status_code}",
                extra=event_extra(
                    EventType.UPSTREAM_CALL,
                    provider=self.name,
                    success=False,
                    status_code=e.response.status_code,
                ),
            )
            raise ProviderError(
                f"OpenExchange HTTP error {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                f"Upstream call to {self.name} failed: {e.__class__.__name__}",
                extra=event_extra(
                    EventType.UPSTREAM_CALL, provider=self.name, success=False, error=e.__class__.__name__
                ),
            )
            raise ProviderError(f"OpenExchange request failed: {e.__class__.__name__}") from e
        except Exception as e:
            raise ProviderError(f"OpenExchange response parsing error: {str(e)}") from e

        if not isinstance(data, dict):
            raise ProviderError("OpenExchange response parsing error: body is not an object")

        if "error" in data:
            message = data.get("description", data.get("message", "Unknown error"))
            raise ProviderError(f"OpenExchange API error: {message}")

        rate_count = len(data.get("rates") or {})
        logger.debug(
            f"Fetched {rate_count} rates from {self.name}",
            extra=event_extra(EventType.UPSTREAM_CALL, provider=self.name, success=True, rate_count=rate_count),
        )
        return data

    async def fetch_latest(self) -> UpstreamRateSnapshot:
        data = await self.fetch_raw()

        rates = data.get("rates")
        if not isinstance(rates, dict):
            raise ProviderError("OpenExchange response missing 'rates' mapping")

        try:
            parsed = {str(code): float(value) for code, value in rates.items()}
        except (TypeError, ValueError) as e:
            raise ProviderError(f"OpenExchange returned a non-numeric rate: {e}") from e

        raw_timestamp = data.get("timestamp")
        if isinstance(raw_timestamp, (int, float)):
            timestamp = datetime.fromtimestamp(raw_timestamp, tz=UTC)
        else:
            timestamp = datetime.now(UTC)

        return UpstreamRateSnapshot(
            base=data.get("base") or BASE_CURRENCY,
            timestamp=timestamp,
            rates=parsed,
        )

    async def close(self) -> None:
        await self._client.aclose()
