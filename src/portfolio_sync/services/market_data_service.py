"""Market data service for suggested growth rates."""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from portfolio_sync.core.timezone import now_utc
from portfolio_sync.providers.growth_rate_provider import GrowthRateProvider

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Service for fetching suggested growth rates per asset.

    Wraps provider with caching and graceful degradation.
    """

    def __init__(
        self,
        provider: GrowthRateProvider,
        cache_ttl_seconds: int = 60,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._provider = provider
        self._cache_ttl = cache_ttl_seconds
        self._clock = clock
        self._rate_cache: dict[str, tuple[float, datetime]] = {}

    def get_suggested_rate(self, asset: str) -> Optional[float]:
        """
        Return the suggested rate for `asset`, using the cache within TTL.

        Falls back to the last cached rate (even if stale) on provider
        failure; None when nothing is known.
        """
        key = asset.strip().upper()
        cached = self._rate_cache.get(key)
        if cached and self._is_fresh(cached[1]):
            return cached[0]

        try:
            rate = self._provider.get_suggested_rate(asset)
        except Exception as exc:
            # Graceful degradation: return whatever is in cache
            logger.warning("Growth rate lookup failed for %s: %s", asset, exc)
            return cached[0] if cached else None

        if rate is None:
            return cached[0] if cached else None
        self._rate_cache[key] = (rate, self._clock())
        return rate

    def suggest_patch(self, asset: str) -> Optional[dict[str, Any]]:
        """
        Build an update_state patch selecting `asset` with its suggested rate.

        Returns None when no rate is available.
        """
        rate = self.get_suggested_rate(asset)
        if rate is None:
            return None
        return {"selected_asset": asset.strip(), "custom_cagr": rate}

    def clear_cache(self) -> None:
        self._rate_cache.clear()

    def _is_fresh(self, fetched_at: datetime) -> bool:
        elapsed = (self._clock() - fetched_at).total_seconds()
        return elapsed < self._cache_ttl
