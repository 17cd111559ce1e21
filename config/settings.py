from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	# Upstream, used by the proxy route. The key never leaves the server.
	OPENEXCHANGE_API_URL: str = 'https://openexchangerates.org/api/latest.json'
	OPENEXCHANGE_APP_ID: str = ''

	# Where the rate service fetches from. Empty falls back to the upstream values.
	RATES_API_URL: str = ''
	RATES_API_KEY: str | None = None

	SUPPORTED_CURRENCIES: list[str] = ['USD', 'EUR', 'GBP', 'JPY', 'NGN']
	RATE_REFRESH_INTERVAL: float = 3600
	RATE_RETRY_DELAY: float = 5
	PROVIDER_TIMEOUT: float = 10

	REDIS_URL: str = 'redis://localhost:6379'
	RATES_STORAGE_KEY: str = 'currency_rates'
	RATES_TIMESTAMP_KEY: str = 'currency_rates_timestamp'

	LOG_DIRECTORY: str = 'logs'
	LOG_LEVEL: str = 'INFO'
	LOG_TO_FILE: bool = True

	# Application
	APP_NAME: str = 'Currency Converter API'
	DEBUG: bool = True

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@dataclass(frozen=True)
class RateServiceConfig:
	"""Explicit configuration handed to the rate fetcher at construction."""

	api_base_url: str
	api_key: str
	supported_codes: tuple[str, ...]
	refresh_interval_seconds: float = 3600
	retry_delay_seconds: float = 5

	@classmethod
	def from_settings(cls, settings: Settings) -> 'RateServiceConfig':
		api_key = settings.RATES_API_KEY
		if api_key is None:
			api_key = settings.OPENEXCHANGE_APP_ID
		return cls(
			api_base_url=settings.RATES_API_URL or settings.OPENEXCHANGE_API_URL,
			api_key=api_key,
			supported_codes=tuple(code.strip().upper() for code in settings.SUPPORTED_CURRENCIES),
			refresh_interval_seconds=settings.RATE_REFRESH_INTERVAL,
			retry_delay_seconds=settings.RATE_RETRY_DELAY,
		)


@lru_cache
def get_settings() -> Settings:
	return Settings()
