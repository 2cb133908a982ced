import logging
from typing import Dict, Optional

from ..data.instance_prices import ON_DEMAND_PRICES_USD
from .base import PricingProvider

logger = logging.getLogger(__name__)


class StaticPricingProvider(PricingProvider):
    """Serves prices from the bundled table, optionally overridden per instance type."""

    def __init__(
        self,
        on_demand: Optional[Dict[str, float]] = None,
        spot: Optional[Dict[str, float]] = None,
    ):
        super().__init__()
        self._on_demand_source = dict(ON_DEMAND_PRICES_USD if on_demand is None else on_demand)
        self._spot_source = dict(spot or {})

    async def refresh_on_demand_pricing(self) -> None:
        self._on_demand = dict(self._on_demand_source)
        logger.info("Loaded %d on-demand prices from the static table.", len(self._on_demand))

    async def refresh_spot_pricing(self) -> None:
        self._spot = dict(self._spot_source)
        logger.debug("Loaded %d spot prices from the static table.", len(self._spot))
