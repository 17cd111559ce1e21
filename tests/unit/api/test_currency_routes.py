from application.services import derive_cross_rates


def test_convert_currency_success(client, mock_fetcher):
    response = client.get('/api/convert/USD/EUR/1000')

    assert response.status_code == 200
    data = response.json()

    assert data['from_currency'] == 'USD'
    assert data['to_currency'] == 'EUR'
    assert data['amount'] == 1000
    assert data['converted_amount'] == 900.0
    assert data['exchange_rate'] == 0.9
    assert data['available'] is True
    assert data['display'] == '900.00'
    assert data['loading'] is False

    mock_fetcher.ensure_fresh.assert_called_once_with()


def test_convert_same_currency_returns_amount(client):
    response = client.get('/api/convert/NGN/NGN/2500.5')

    assert response.status_code == 200
    assert response.json()['converted_amount'] == 2500.5


def test_convert_lowercase_currencies_normalized(client):
    response = client.get('/api/convert/gbp/jpy/10')

    assert response.status_code == 200
    data = response.json()
    assert data['from_currency'] == 'GBP'
    assert data['to_currency'] == 'JPY'
    assert data['converted_amount'] == 10 * (150 / 0.8)


def test_convert_unsupported_currency(client, mock_fetcher):
    response = client.get('/api/convert/USD/XYZ/100')

    assert response.status_code == 400
    assert response.json()['detail'] == 'Currency XYZ is not supported'
    mock_fetcher.ensure_fresh.assert_not_called()


def test_convert_negative_amount(client):
    response = client.get('/api/convert/USD/EUR/-100')

    assert response.status_code == 422


def test_convert_zero_amount_allowed(client):
    response = client.get('/api/convert/USD/EUR/0')

    assert response.status_code == 200
    assert response.json()['converted_amount'] == 0


def test_convert_missing_rate_reports_not_available(client, rate_store):
    rate_store.set(derive_cross_rates({'EUR': 0.9, 'JPY': 150, 'NGN': 1500}, ('USD', 'EUR', 'GBP', 'JPY', 'NGN')))

    response = client.get('/api/convert/USD/GBP/100')

    assert response.status_code == 200
    data = response.json()
    assert data['available'] is False
    assert data['converted_amount'] is None
    assert data['exchange_rate'] is None
    assert data['display'] == 'Rates not available'


def test_convert_while_rates_loading(client, rate_store, mock_fetcher):
    rate_store.set({})
    rate_store.set_loading(True)

    response = client.get('/api/convert/USD/EUR/100')

    data = response.json()
    assert data['available'] is False
    assert data['loading'] is True
    mock_fetcher.ensure_fresh.assert_called_once()


def test_get_rates_returns_table(client, rate_store, mock_fetcher):
    response = client.get('/api/rates')

    assert response.status_code == 200
    data = response.json()
    assert data['rates'] == rate_store.table
    assert data['loading'] is False
    assert data['currencies'] == ['USD', 'EUR', 'GBP', 'JPY', 'NGN']
    mock_fetcher.ensure_fresh.assert_called_once()


def test_get_supported_currencies(client):
    response = client.get('/api/currencies')

    assert response.status_code == 200
    currencies = response.json()['currencies']
    assert currencies[0] == {'code': 'USD', 'name': 'US Dollar'}
    assert [c['code'] for c in currencies] == ['USD', 'EUR', 'GBP', 'JPY', 'NGN']


def test_health_reports_loaded_rates(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'healthy', 'rates_loaded': True, 'loading': False}


def test_health_degraded_while_empty(client, rate_store):
    rate_store.set({})
    rate_store.set_loading(True)

    response = client.get('/health')

    assert response.json() == {'status': 'degraded', 'rates_loaded': False, 'loading': True}


def test_websocket_pushes_current_rates_then_changes(client, rate_store, mock_fetcher):
    with client.websocket_connect('/api/ws/rates') as websocket:
        assert websocket.receive_json() == {'type': 'rates', 'rates': rate_store.table}
        assert websocket.receive_json() == {'type': 'loading', 'loading': False}

        mock_fetcher.ensure_fresh.assert_called_once()
