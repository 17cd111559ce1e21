from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_conversion_service,
    get_rate_fetcher,
    get_rate_store,
    get_upstream_provider,
)
from api.main import app
from application.services import ConversionService, RateFetcher, RateStore, derive_cross_rates
from config.settings import Settings, get_settings

CODES = ('USD', 'EUR', 'GBP', 'JPY', 'NGN')
USD_RATES = {'EUR': 0.9, 'GBP': 0.8, 'JPY': 150, 'NGN': 1500}


@pytest.fixture
def rate_store():
    return RateStore(derive_cross_rates(USD_RATES, CODES))


@pytest.fixture
def mock_fetcher():
    return Mock(spec=RateFetcher)


@pytest.fixture
def mock_upstream_provider():
    return AsyncMock()


@pytest.fixture
def settings():
    return Settings(OPENEXCHANGE_APP_ID='server_side_key')


@pytest.fixture
def client(rate_store, mock_fetcher, mock_upstream_provider, settings):
    # Override the real dependencies; lifespan is not run without a context manager
    app.dependency_overrides[get_rate_store] = lambda: rate_store
    app.dependency_overrides[get_rate_fetcher] = lambda: mock_fetcher
    app.dependency_overrides[get_conversion_service] = lambda: ConversionService(rate_store, CODES)
    app.dependency_overrides[get_upstream_provider] = lambda: mock_upstream_provider
    app.dependency_overrides[get_settings] = lambda: settings
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
