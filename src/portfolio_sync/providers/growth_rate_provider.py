"""Growth rate provider protocol."""

from typing import Optional, Protocol


class GrowthRateProvider(Protocol):
    """
    Protocol for suggested annual growth rates per asset label.

    Implementations may call a market data API; the caller caches results
    and degrades gracefully when a lookup raises.
    """

    def get_suggested_rate(self, asset: str) -> Optional[float]:
        """
        Return the suggested annual rate (percent) for `asset`.

        Returns None when the asset is unknown to the provider.
        """
        ...
