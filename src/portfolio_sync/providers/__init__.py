"""Growth rate providers module."""

from portfolio_sync.providers.growth_rate_provider import GrowthRateProvider
from portfolio_sync.providers.stub_provider import StubGrowthRateProvider

__all__ = [
    "GrowthRateProvider",
    "StubGrowthRateProvider",
]
