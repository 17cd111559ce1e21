from .responses import (
	ConversionResponse,
	CurrencyInfo,
	HealthResponse,
	RatesResponse,
	SupportedCurrenciesResponse,
)

__all__ = [
	'ConversionResponse',
	'CurrencyInfo',
	'HealthResponse',
	'RatesResponse',
	'SupportedCurrenciesResponse',
]
