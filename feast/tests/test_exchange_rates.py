import httpx
import pytest

from feast.infra.Exchange_Rates import current_rates, refresh_exchange_rates, reset_exchange_rates
from feast.logic.pricing.normalizer import DEFAULT_EXCHANGE_RATES


@pytest.fixture(autouse=True)
def _restore_rates():
    reset_exchange_rates()
    yield
    reset_exchange_rates()


@pytest.mark.asyncio
async def test_refresh_merges_known_currencies():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"base": "USD", "rates": {"EUR": 0.9, "GBP": "n/a", "XYZ": 3.0}})

    table = await refresh_exchange_rates("https://rates.test/v4/latest", transport=httpx.MockTransport(handler))

    assert seen[0].url.path == "/v4/latest/USD"
    assert table is current_rates()
    assert table.rate("EUR") == 0.9
    assert table.rate("GBP") == DEFAULT_EXCHANGE_RATES.rate("GBP")
    assert "XYZ" not in table.supported_currencies()
    assert table.supported_currencies() == DEFAULT_EXCHANGE_RATES.supported_currencies()


@pytest.mark.asyncio
async def test_failed_refresh_keeps_current_table():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    table = await refresh_exchange_rates("https://rates.test/v4/latest", transport=transport)
    assert table is DEFAULT_EXCHANGE_RATES
    assert current_rates() is DEFAULT_EXCHANGE_RATES


@pytest.mark.asyncio
async def test_response_without_rates_is_ignored():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "quota"}))
    assert await refresh_exchange_rates("https://rates.test", transport=transport) is DEFAULT_EXCHANGE_RATES
