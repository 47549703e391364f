"""
Equity Sources Package - Provider adapters for large-cap equity metadata.

Each adapter maps one provider's schema into CanonicalRecord and paces
its own requests to stay inside the provider's quota.

Quick Start:
    from equity_sources import PolygonEquitySource

    async def fetch(api_key):
        async with PolygonEquitySource(api_key=api_key) as source:
            return await source.fetch_all()

Adding New Providers:
    1. Create class extending BaseEquitySource
    2. Implement: name, metadata(), fetch_raw(), normalize()
    3. Pass an instance to screener.Aggregator
"""

from equity_sources.base import BaseEquitySource
from equity_sources.batching import BatchPolicy, Outcome, run_batched
from equity_sources.classification import (
    EU_EXCHANGES,
    US_EXCHANGES,
    Market,
    classify_market,
    exchange_from_symbol,
    extract_domain,
    map_polygon_exchange,
)
from equity_sources.exceptions import (
    ConfigurationError,
    DataSourceError,
    FetchError,
    NormalizationError,
    RateLimitError,
)
from equity_sources.models import (
    MARKET_CAP_THRESHOLD,
    CanonicalRecord,
    FetchStats,
    SourceMetadata,
    SymbolSpec,
)
from equity_sources.providers import FinnhubEquitySource, PolygonEquitySource


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseEquitySource",

    # Batching
    "BatchPolicy",
    "Outcome",
    "run_batched",

    # Classification
    "Market",
    "US_EXCHANGES",
    "EU_EXCHANGES",
    "classify_market",
    "exchange_from_symbol",
    "extract_domain",
    "map_polygon_exchange",

    # Models
    "MARKET_CAP_THRESHOLD",
    "CanonicalRecord",
    "FetchStats",
    "SourceMetadata",
    "SymbolSpec",

    # Exceptions
    "DataSourceError",
    "FetchError",
    "NormalizationError",
    "RateLimitError",
    "ConfigurationError",

    # Providers
    "FinnhubEquitySource",
    "PolygonEquitySource",
]
