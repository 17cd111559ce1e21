import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from api.dependencies import get_upstream_provider
from config.settings import Settings, get_settings
from domain.exceptions.currency import ProviderError
from infrastructure.monitoring.logger import EventType, event_extra
from infrastructure.providers import ExchangeRateProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['proxy'])

PROXY_PATH = '/api/exchange-rates'

CORS_HEADERS = {
	'Access-Control-Allow-Origin': '*',
	'Access-Control-Allow-Headers': 'Content-Type',
	'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
}


def _error(status_code: int, message: str) -> JSONResponse:
	return JSONResponse(status_code=status_code, content={'error': message}, headers=CORS_HEADERS)


@router.api_route(
	PROXY_PATH.removeprefix(router.prefix),
	methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
	summary='Forward the latest upstream rates, keeping the API key server-side',
)
async def exchange_rates_proxy(
	request: Request,
	settings: Annotated[Settings, Depends(get_settings)],
	provider: Annotated[ExchangeRateProvider, Depends(get_upstream_provider)],
) -> Response:
	if request.method == 'OPTIONS':
		return Response(status_code=status.HTTP_200_OK, content='', headers=CORS_HEADERS)

	if request.method != 'GET':
		return _error(status.HTTP_405_METHOD_NOT_ALLOWED, 'Method not allowed')

	if not settings.OPENEXCHANGE_APP_ID:
		logger.error('Proxy called without OPENEXCHANGE_APP_ID configured')
		return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, 'API key not configured')

	try:
		data = await provider.fetch_raw()
	except ProviderError as e:
		logger.error(
			f'Error fetching exchange rates: {e}',
			extra=event_extra(EventType.PROXY, success=False, error=str(e)),
		)
		return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, 'Failed to fetch exchange rates')

	logger.info(
		'Forwarded upstream exchange rates',
		extra=event_extra(EventType.PROXY, success=True, rate_count=len(data.get('rates') or {})),
	)
	return JSONResponse(status_code=status.HTTP_200_OK, content=data, headers=CORS_HEADERS)
