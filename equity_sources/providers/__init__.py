"""
Providers package - Equity quote provider implementations.
"""

from equity_sources.providers.finnhub import FinnhubEquitySource
from equity_sources.providers.polygon import PolygonEquitySource


__all__ = [
    "FinnhubEquitySource",
    "PolygonEquitySource",
]
