import logging
from collections.abc import Iterable, Mapping

from application.services.rate_store import RateStore
from domain.exceptions.currency import InvalidCurrencyError
from domain.models.currency import DEFAULT_CURRENCY_NAMES, Conversion, SupportedCurrency
from infrastructure.monitoring.logger import EventType, event_extra

logger = logging.getLogger(__name__)

RATES_NOT_AVAILABLE = 'Rates not available'


class ConversionService:
	"""Pure lookups over the store's current table. Never triggers a fetch."""

	def __init__(
		self,
		store: RateStore,
		supported_codes: Iterable[str],
		currency_names: Mapping[str, str] | None = None,
	):
		self.store = store
		self.supported_codes = tuple(supported_codes)
		self.currency_names = dict(DEFAULT_CURRENCY_NAMES if currency_names is None else currency_names)

	def convert(self, from_currency: str, to_currency: str, amount: float) -> float | None:
		rate = self.store.get_rate(from_currency, to_currency)
		if not rate:
			return None
		return amount * rate

	def convert_detailed(self, from_currency: str, to_currency: str, amount: float) -> Conversion:
		converted = self.convert(from_currency, to_currency, amount)
		rate = self.store.get_rate(from_currency, to_currency) if converted is not None else None

		if converted is None:
			logger.info(
				f'No rate available for {from_currency}->{to_currency}',
				extra=event_extra(
					EventType.CONVERSION,
					from_currency=from_currency,
					to_currency=to_currency,
					rates_loaded=not self.store.is_empty,
				),
			)

		return Conversion(
			from_currency=from_currency,
			to_currency=to_currency,
			amount=amount,
			converted_amount=converted,
			rate=rate,
		)

	def validate_currency(self, code: str) -> None:
		if code not in self.supported_codes:
			raise InvalidCurrencyError(f'Currency {code} is not supported')

	def get_supported_currencies(self) -> list[SupportedCurrency]:
		return [
			SupportedCurrency(code=code, name=self.currency_names.get(code))
			for code in self.supported_codes
		]

	@staticmethod
	def format_result(conversion: Conversion) -> str:
		if conversion.converted_amount is None:
			return RATES_NOT_AVAILABLE
		return f'{conversion.converted_amount:.2f}'
