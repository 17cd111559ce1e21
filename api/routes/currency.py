from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from api.dependencies import get_conversion_service, get_rate_fetcher, get_rate_store
from api.schemas import ConversionResponse, CurrencyInfo, RatesResponse, SupportedCurrenciesResponse
from application.services import ConversionService, RateFetcher, RateStore

router = APIRouter(prefix='/api', tags=['currency'])


@router.get(
	'/convert/{from_currency}/{to_currency}/{amount}',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert currency amount',
)
async def convert_currency(
	from_currency: Annotated[
		str,
		Path(
			min_length=3,
			max_length=5,
		),
	],
	to_currency: Annotated[
		str,
		Path(
			min_length=3,
			max_length=5,
		),
	],
	amount: Annotated[
		float,
		Path(
			ge=0,
		),
	],
	service: Annotated[ConversionService, Depends(get_conversion_service)],
	fetcher: Annotated[RateFetcher, Depends(get_rate_fetcher)],
	store: Annotated[RateStore, Depends(get_rate_store)],
) -> ConversionResponse:
	from_currency = from_currency.upper()
	to_currency = to_currency.upper()
	service.validate_currency(from_currency)
	service.validate_currency(to_currency)

	fetcher.ensure_fresh()
	result = service.convert_detailed(from_currency, to_currency, amount)
	return ConversionResponse(
		from_currency=result.from_currency,
		to_currency=result.to_currency,
		amount=result.amount,
		converted_amount=result.converted_amount,
		exchange_rate=result.rate,
		available=result.available,
		display=service.format_result(result),
		loading=store.loading,
	)


@router.get(
	'/rates',
	response_model=RatesResponse,
	status_code=status.HTTP_200_OK,
	summary='Current cross-rate table',
)
async def get_rates(
	service: Annotated[ConversionService, Depends(get_conversion_service)],
	fetcher: Annotated[RateFetcher, Depends(get_rate_fetcher)],
	store: Annotated[RateStore, Depends(get_rate_store)],
) -> RatesResponse:
	fetcher.ensure_fresh()
	return RatesResponse(
		rates=store.table,
		loading=store.loading,
		currencies=list(service.supported_codes),
	)


@router.get(
	'/currencies',
	response_model=SupportedCurrenciesResponse,
	status_code=status.HTTP_200_OK,
	summary='List supported currencies',
)
async def get_supported_currencies(
	service: Annotated[ConversionService, Depends(get_conversion_service)],
) -> SupportedCurrenciesResponse:
	currencies = service.get_supported_currencies()
	return SupportedCurrenciesResponse(
		currencies=[CurrencyInfo(code=c.code, name=c.name) for c in currencies]
	)
