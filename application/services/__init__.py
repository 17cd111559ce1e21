from .conversion_service import ConversionService
from .rate_fetcher import RateFetcher, derive_cross_rates
from .rate_store import RateStore

__all__ = ['ConversionService', 'RateFetcher', 'RateStore', 'derive_cross_rates']
