from .base import ExchangeRateProvider
from .openexchange import OpenExchangeProvider

__all__ = ['ExchangeRateProvider', 'OpenExchangeProvider']
