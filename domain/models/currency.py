from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

BASE_CURRENCY = 'USD'

DEFAULT_CURRENCY_NAMES: dict[str, str] = {
    'USD': 'US Dollar',
    'EUR': 'Euro',
    'GBP': 'British Pound',
    'JPY': 'Japanese Yen',
    'NGN': 'Nigerian Naira',
}

# table[from_currency][to_currency] -> multiplicative factor
CrossRateTable = dict[str, dict[str, float]]


@dataclass(frozen=True)
class SupportedCurrency:
    code: str
    name: str | None


@dataclass(frozen=True)
class UpstreamRateSnapshot:
    base: str
    timestamp: datetime
    rates: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PersistedSnapshot:
    table: CrossRateTable
    stored_at: datetime

    def age(self, now: datetime | None = None) -> timedelta:
        return (now or datetime.now(UTC)) - self.stored_at


@dataclass(frozen=True)
class Conversion:
    from_currency: str
    to_currency: str
    amount: float
    converted_amount: float | None  # None when no usable rate exists
    rate: float | None

    @property
    def available(self) -> bool:
        return self.converted_amount is not None
