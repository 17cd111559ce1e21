from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_rate_store
from api.schemas import HealthResponse
from application.services import RateStore

router = APIRouter(tags=['health'])


@router.get('/health', response_model=HealthResponse, summary='Service health check')
async def health_check(store: Annotated[RateStore, Depends(get_rate_store)]) -> HealthResponse:
	# Rates still loading is degraded, not down: conversions answer "not available".
	rates_loaded = not store.is_empty
	return HealthResponse(
		status='healthy' if rates_loaded else 'degraded',
		rates_loaded=rates_loaded,
		loading=store.loading,
	)
