# src/ccmon/pricing/base.py
"""
This module defines the lookup contract every pricing source implements.
The monitor refreshes prices once at startup and then only performs lookups,
so a provider may serve stale data for the rest of a run.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class PricingProvider(ABC):
    """
    Abstract Base Class for instance pricing sources.
    """

    def __init__(self):
        self._on_demand: Dict[str, float] = {}
        self._spot: Dict[str, float] = {}

    @abstractmethod
    async def refresh_on_demand_pricing(self) -> None:
        """Reloads on-demand prices. Raises PricingError on failure."""
        pass

    @abstractmethod
    async def refresh_spot_pricing(self) -> None:
        """Reloads spot prices. Raises PricingError on failure."""
        pass

    async def refresh(self) -> None:
        """Reloads on-demand then spot prices."""
        await self.refresh_on_demand_pricing()
        await self.refresh_spot_pricing()

    def on_demand_price(self, instance_type: Optional[str]) -> Optional[float]:
        """Hourly on-demand price for ``instance_type``, or None if unknown."""
        if not instance_type:
            return None
        return self._on_demand.get(instance_type)

    def spot_price(self, instance_type: Optional[str]) -> Optional[float]:
        """Hourly spot price for ``instance_type``, or None if unknown."""
        if not instance_type:
            return None
        return self._spot.get(instance_type)
