from pydantic import BaseModel, Field


class ConversionResponse(BaseModel):
	from_currency: str = Field(..., description='Source currency code')
	to_currency: str = Field(..., description='Target currency code')
	amount: float = Field(..., description='Original amount requested')
	converted_amount: float | None = Field(None, description='Converted amount, null when no rate is available')
	exchange_rate: float | None = Field(None, description='Cross rate used for conversion')
	available: bool = Field(..., description='Whether a usable rate existed for the pair')
	display: str = Field(..., description='Amount to two decimals, or a not-available notice')
	loading: bool = Field(..., description='Whether a rate fetch is in progress')

	model_config = {
		'json_schema_extra': {
			'example': {
				'from_currency': 'USD',
				'to_currency': 'EUR',
				'amount': 1000,
				'converted_amount': 900.0,
				'exchange_rate': 0.9,
				'available': True,
				'display': '900.00',
				'loading': False,
			}
		}
	}


class RatesResponse(BaseModel):
	rates: dict[str, dict[str, float]] = Field(..., description='Cross-rate table, rates[from][to]')
	loading: bool = Field(..., description='Whether a rate fetch is in progress')
	currencies: list[str] = Field(..., description='Supported currency codes')


class CurrencyInfo(BaseModel):
	code: str
	name: str | None = None


class SupportedCurrenciesResponse(BaseModel):
	currencies: list[CurrencyInfo] = Field(description='Supported currencies')

	model_config = {
		'json_schema_extra': {
			'examples': [{'currencies': [{'code': 'USD', 'name': 'US Dollar'}, {'code': 'EUR', 'name': 'Euro'}]}]
		}
	}


class HealthResponse(BaseModel):
	status: str
	rates_loaded: bool
	loading: bool
