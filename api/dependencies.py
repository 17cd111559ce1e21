import logging

from redis.asyncio import Redis

from application.services import ConversionService, RateFetcher, RateStore
from config.settings import RateServiceConfig, Settings, get_settings
from infrastructure.cache.redis_cache import RedisSnapshotStore
from infrastructure.providers import ExchangeRateProvider, OpenExchangeProvider

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	redis_client: Redis | None = None
	snapshot_store: RedisSnapshotStore | None = None
	rate_provider: ExchangeRateProvider | None = None
	upstream_provider: ExchangeRateProvider | None = None
	rate_store: RateStore | None = None
	rate_fetcher: RateFetcher | None = None
	conversion_service: ConversionService | None = None


deps = AppDependencies()


def init_dependencies(settings: Settings | None = None) -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()
	config = RateServiceConfig.from_settings(settings)

	deps.redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
	deps.snapshot_store = RedisSnapshotStore(
		deps.redis_client,
		rates_key=settings.RATES_STORAGE_KEY,
		timestamp_key=settings.RATES_TIMESTAMP_KEY,
	)

	# The rate service may point at this app's own proxy; the proxy always talks upstream.
	deps.rate_provider = OpenExchangeProvider(
		config.api_key, api_url=config.api_base_url, timeout=settings.PROVIDER_TIMEOUT
	)
	deps.upstream_provider = OpenExchangeProvider(
		settings.OPENEXCHANGE_APP_ID,
		api_url=settings.OPENEXCHANGE_API_URL,
		timeout=settings.PROVIDER_TIMEOUT,
	)

	deps.rate_store = RateStore()
	deps.rate_fetcher = RateFetcher(
		store=deps.rate_store,
		provider=deps.rate_provider,
		snapshot_store=deps.snapshot_store,
		config=config,
	)
	deps.conversion_service = ConversionService(deps.rate_store, config.supported_codes)
	logger.info('Dependencies initialized')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.rate_fetcher:
		await deps.rate_fetcher.close()
	for provider in (deps.rate_provider, deps.upstream_provider):
		if provider:
			await provider.close()
	if deps.redis_client:
		await deps.redis_client.aclose()

	logger.info('Cleanup complete')


async def bootstrap() -> None:
	"""Warm the rate store from the persisted snapshot. Called after init_dependencies()."""
	logger.info('Bootstrapping application...')

	if deps.rate_fetcher is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')

	await deps.rate_fetcher.warm_from_persisted()

	logger.info('Bootstrap complete')


def get_rate_store() -> RateStore:
	if deps.rate_store is None:
		raise RuntimeError('Rate store not initialized')
	return deps.rate_store


def get_rate_fetcher() -> RateFetcher:
	if deps.rate_fetcher is None:
		raise RuntimeError('Rate fetcher not initialized')
	return deps.rate_fetcher


def get_conversion_service() -> ConversionService:
	if deps.conversion_service is None:
		raise RuntimeError('Conversion service not initialized')
	return deps.conversion_service


def get_upstream_provider() -> ExchangeRateProvider:
	if deps.upstream_provider is None:
		raise RuntimeError('Upstream provider not initialized')
	return deps.upstream_provider
