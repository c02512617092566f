"""Stub growth rate provider for offline/testing use."""

from typing import Optional


# Long-run CAGR (percent) as (1Y, 5Y, 10Y); None where history is missing
_STUB_CAGR: dict[str, tuple[Optional[float], Optional[float], Optional[float]]] = {
    "BTC": (150.0, 45.0, 30.0),
    "SPX": (25.0, 14.0, 10.0),
    "QQQ": (30.0, 18.0, 12.0),
    "NVDA": (200.0, 65.0, 15.0),
    "TSLA": (100.0, 55.0, 15.0),
    "MSTR": (180.0, 50.0, 35.0),
    "MTPLF": (250.0, 80.0, 40.0),
}

_ALIASES: dict[str, str] = {
    "BITCOIN": "BTC",
    "S&P 500": "SPX",
    "NVIDIA": "NVDA",
    "TESLA": "TSLA",
    "METAPLANET": "MTPLF",
}


class StubGrowthRateProvider:
    """
    Stub provider with fixed per-asset CAGRs for offline operation.

    The suggestion prefers the 10-year figure, then 5-year, then 1-year.
    """

    def __init__(self, rates: Optional[dict[str, tuple[Optional[float], ...]]] = None):
        self._rates = dict(rates) if rates is not None else dict(_STUB_CAGR)

    def get_suggested_rate(self, asset: str) -> Optional[float]:
        key = asset.strip().upper()
        key = _ALIASES.get(key, key)
        history = self._rates.get(key)
        if history is None:
            return None
        for rate in reversed(history):
            if rate is not None:
                return rate
        return None

    @property
    def assets(self) -> list[str]:
        return sorted(self._rates)
