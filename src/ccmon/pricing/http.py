# src/ccmon/pricing/http.py
"""
Pricing provider backed by a public JSON instance catalogue such as
https://instances.vantage.sh/instances.json. Each entry looks like:

    {
      "instance_type": "m5.large",
      "pricing": {"us-west-2": {"linux": {"ondemand": "0.096", "spot_avg": "0.035"}}}
    }
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import config
from ..core.exceptions import PricingError
from ..utils.http_client import get_async_http_client
from .base import PricingProvider

logger = logging.getLogger(__name__)


class HttpPricingProvider(PricingProvider):
    def __init__(self, url: Optional[str] = None, region: Optional[str] = None, verify: Optional[bool] = None):
        super().__init__()
        self.url = url or config.PRICING_URL
        self.region = region or config.PRICING_REGION
        self.verify = config.PRICING_VERIFY_CERTS if verify is None else verify
        self._catalogue: Optional[List[Dict[str, Any]]] = None

    async def _fetch(self) -> List[Dict[str, Any]]:
        if not self.url:
            raise PricingError("no pricing URL configured")

        async with get_async_http_client(verify=self.verify) as client:
            try:
                resp = await client.get(self.url)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise PricingError(f"fetching pricing from {self.url}, {exc}") from exc

            try:
                data = resp.json()
            except ValueError as exc:
                logger.debug("Raw response content from %s: %s", self.url, resp.text[:500])
                raise PricingError(f"decoding pricing from {self.url}, {exc}") from exc

        if not isinstance(data, list):
            raise PricingError(f"unexpected pricing document from {self.url}: expected a list")
        return data

    def _extract(self, catalogue: List[Dict[str, Any]], key: str) -> Dict[str, float]:
        prices: Dict[str, float] = {}
        for entry in catalogue:
            if not isinstance(entry, dict):
                continue
            instance_type = entry.get("instance_type")
            linux = ((entry.get("pricing") or {}).get(self.region) or {}).get("linux") or {}
            raw = linux.get(key)
            if not instance_type or raw in (None, ""):
                continue
            try:
                prices[instance_type] = float(raw)
            except (TypeError, ValueError):
                logger.debug("Ignoring unparsable %s price %r for %s", key, raw, instance_type)
        return prices

    async def refresh_on_demand_pricing(self) -> None:
        self._catalogue = await self._fetch()
        prices = self._extract(self._catalogue, "ondemand")
        if not prices:
            raise PricingError(f"no on-demand prices found for region {self.region}")
        self._on_demand = prices
        logger.info("Loaded %d on-demand prices for %s from %s", len(prices), self.region, self.url)

    async def refresh_spot_pricing(self) -> None:
        # Spot prices come from the same document; reuse it when already fetched.
        catalogue = self._catalogue if self._catalogue is not None else await self._fetch()
        self._spot = self._extract(catalogue, "spot_avg")
        logger.info("Loaded %d spot prices for %s", len(self._spot), self.region)
