"""Instance pricing sources."""

import logging

from ..core.config import config
from .base import PricingProvider
from .http import HttpPricingProvider
from .static import StaticPricingProvider

logger = logging.getLogger(__name__)


def get_pricing_provider(source: str = None) -> PricingProvider:
    """
    Factory function returning the pricing provider selected by PRICING_SOURCE.
    """
    source = (source or config.PRICING_SOURCE).lower()
    if source == "static":
        logger.info("Using static pricing table.")
        return StaticPricingProvider()
    elif source == "http":
        logger.info("Using HTTP pricing from %s.", config.PRICING_URL)
        return HttpPricingProvider()
    raise NotImplementedError(f"Pricing source '{source}' not implemented.")


__all__ = ["PricingProvider", "StaticPricingProvider", "HttpPricingProvider", "get_pricing_provider"]
