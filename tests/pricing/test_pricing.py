# tests/pricing/test_pricing.py
"""
Unit tests for the pricing providers, using pytest-asyncio and respx.
"""

import httpx
import pytest
import respx
from httpx import Response

from ccmon.core.exceptions import PricingError
from ccmon.pricing import HttpPricingProvider, StaticPricingProvider, get_pricing_provider

PRICE_URL = "https://pricing.example.com/instances.json"

MOCK_CATALOGUE = [
    {
        "instance_type": "m5.large",
        "pricing": {
            "us-west-2": {"linux": {"ondemand": "0.096", "spot_avg": "0.0351"}},
            "us-east-1": {"linux": {"ondemand": "0.096"}},
        },
    },
    {
        "instance_type": "c5.xlarge",
        "pricing": {"us-west-2": {"linux": {"ondemand": "0.17", "spot_avg": "N/A"}}},
    },
    {"instance_type": "x1.only-east", "pricing": {"us-east-1": {"linux": {"ondemand": "13.338"}}}},
    {"pricing": {"us-west-2": {"linux": {"ondemand": "1.0"}}}},
]


@pytest.mark.asyncio
async def test_static_provider_serves_bundled_table():
    provider = StaticPricingProvider()
    assert provider.on_demand_price("m5.large") is None

    await provider.refresh()

    assert provider.on_demand_price("m5.large") == 0.096
    assert provider.on_demand_price("does-not-exist") is None
    assert provider.on_demand_price(None) is None
    assert provider.spot_price("m5.large") is None


@pytest.mark.asyncio
async def test_static_provider_overrides():
    provider = StaticPricingProvider(on_demand={"kind-node": 0.5}, spot={"kind-node": 0.1})
    await provider.refresh()

    assert provider.on_demand_price("kind-node") == 0.5
    assert provider.spot_price("kind-node") == 0.1


@pytest.mark.asyncio
@respx.mock
async def test_http_provider_parses_region_prices():
    route = respx.get(PRICE_URL).mock(return_value=Response(200, json=MOCK_CATALOGUE))
    provider = HttpPricingProvider(url=PRICE_URL, region="us-west-2")

    await provider.refresh_on_demand_pricing()
    await provider.refresh_spot_pricing()

    assert route.call_count == 1
    assert provider.on_demand_price("m5.large") == 0.096
    assert provider.on_demand_price("c5.xlarge") == 0.17
    assert provider.on_demand_price("x1.only-east") is None
    assert provider.spot_price("m5.large") == 0.0351
    assert provider.spot_price("c5.xlarge") is None


@pytest.mark.asyncio
@respx.mock
async def test_http_provider_raises_on_http_error():
    respx.get(PRICE_URL).mock(return_value=Response(503))
    provider = HttpPricingProvider(url=PRICE_URL)

    with pytest.raises(PricingError, match="fetching pricing"):
        await provider.refresh_on_demand_pricing()


@pytest.mark.asyncio
@respx.mock
async def test_http_provider_raises_on_connection_error():
    respx.get(PRICE_URL).mock(side_effect=httpx.ConnectError("no route"))
    provider = HttpPricingProvider(url=PRICE_URL)

    with pytest.raises(PricingError):
        await provider.refresh_on_demand_pricing()


@pytest.mark.asyncio
@respx.mock
async def test_http_provider_raises_on_malformed_document():
    respx.get(PRICE_URL).mock(return_value=Response(200, text="<html>not json</html>"))
    provider = HttpPricingProvider(url=PRICE_URL)

    with pytest.raises(PricingError, match="decoding pricing"):
        await provider.refresh_on_demand_pricing()


@pytest.mark.asyncio
@respx.mock
async def test_http_provider_raises_when_region_has_no_prices():
    respx.get(PRICE_URL).mock(return_value=Response(200, json=MOCK_CATALOGUE))
    provider = HttpPricingProvider(url=PRICE_URL, region="eu-north-1")

    with pytest.raises(PricingError, match="no on-demand prices"):
        await provider.refresh_on_demand_pricing()


def test_factory_selects_provider():
    assert isinstance(get_pricing_provider("static"), StaticPricingProvider)
    assert isinstance(get_pricing_provider("http"), HttpPricingProvider)
    with pytest.raises(NotImplementedError):
        get_pricing_provider("carrier-pigeon")
