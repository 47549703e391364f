"""
Polygon.io Equity Source - US large-cap adapter.

Endpoints used:
- /v3/reference/tickers/{ticker} - Company profile and market cap
- /v2/aggs/ticker/{ticker}/prev - Previous close (only when market cap
  must be derived from shares outstanding)

Rate limits:
- Free tier allows 5 requests/minute
- Symbols are fetched 5 at a time with a 12 second pause between batches
- The previous-close request is not counted against the batch: a batch
  where every ticker lacks market_cap sends up to 10 requests. Reference
  data carries market_cap for the default universe, so this path is rare
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from equity_sources.base import BaseEquitySource
from equity_sources.classification import extract_domain, map_polygon_exchange
from equity_sources.exceptions import NormalizationError
from equity_sources.models import (
    DEFAULT_SECTOR,
    CanonicalRecord,
    SourceMetadata,
    SymbolSpec,
    coerce_market_cap,
)


logger = logging.getLogger(__name__)


US_LARGE_CAP_TICKERS = (
    "AAPL", "MSFT", "GOOGL", "GOOG", "AMZN", "NVDA", "BRK.A", "BRK.B",
    "TSLA", "META", "UNH", "JNJ", "V", "WMT", "XOM", "JPM", "PG", "MA",
    "CVX", "HD", "ABBV", "PFE", "KO", "AVGO", "PEP", "TMO", "COST",
    "MRK", "BAC", "NFLX", "CRM", "ACN", "LLY", "ADBE", "CSCO", "NKE",
    "DHR", "TXN", "VZ", "QCOM", "ABT", "ORCL", "WFC", "AMD", "INTC",
)


@dataclass(frozen=True)
class PolygonTickerDetails:
    """Typed subset of a /v3/reference/tickers/{ticker} response."""
    ticker: str
    name: str
    market_cap: Optional[float] = None
    shares_outstanding: Optional[float] = None
    primary_exchange: Optional[str] = None
    homepage_url: Optional[str] = None
    sic_description: Optional[str] = None
    last_close: Optional[float] = None

    @classmethod
    def from_response(cls, ticker: str, payload: Any) -> "PolygonTickerDetails":
        """
        Parse a ticker details payload.

        Raises:
            NormalizationError: If ``results`` is missing
        """
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, dict):
            raise NormalizationError(
                message=f"No data found for {ticker}",
                source_name="polygon",
                raw_data=payload,
                field_name="results",
            )
        shares = results.get("share_class_shares_outstanding")
        if shares is None:
            shares = results.get("weighted_shares_outstanding")
        return cls(
            ticker=ticker,
            name=results.get("name") or ticker,
            market_cap=results.get("market_cap"),
            shares_outstanding=shares,
            primary_exchange=results.get("primary_exchange"),
            homepage_url=results.get("homepage_url"),
            sic_description=results.get("sic_description"),
        )


def parse_previous_close(payload: Any) -> Optional[float]:
    """Extract the close price from a /v2/aggs/.../prev payload."""
    if not isinstance(payload, dict):
        return None
    results = payload.get("results") or []
    if not results or not isinstance(results[0], dict):
        return None
    return results[0].get("c")


class PolygonEquitySource(BaseEquitySource):
    """Polygon.io reference data for US-listed large caps."""

    BASE_URL = "https://api.polygon.io"
    DEFAULT_UNIVERSE = US_LARGE_CAP_TICKERS

    @property
    def name(self) -> str:
        return "polygon"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="polygon",
            display_name="Polygon.io API",
            rate_limit_per_minute=5,
            batch_size=5,
            batch_delay_seconds=12.0,
            requires_auth=True,
            base_url=self.BASE_URL,
            documentation_url="https://polygon.io/docs/stocks",
        )

    async def fetch_raw(self, spec: SymbolSpec) -> PolygonTickerDetails:
        params = {"apiKey": self._api_key}
        payload = await self._make_request(
            f"{self.BASE_URL}/v3/reference/tickers/{spec.symbol}",
            params=params,
        )
        details = PolygonTickerDetails.from_response(spec.symbol, payload)

        if details.market_cap is None and details.shares_outstanding:
            prev = await self._make_request(
                f"{self.BASE_URL}/v2/aggs/ticker/{spec.symbol}/prev",
                params=params,
            )
            close = parse_previous_close(prev)
            if close is None:
                logger.debug(f"[{self.name}] No previous close for {spec.symbol}")
            else:
                details = replace(details, last_close=close)
        return details

    def normalize(
        self,
        raw: PolygonTickerDetails,
        spec: SymbolSpec,
    ) -> Optional[CanonicalRecord]:
        if raw.market_cap:
            market_cap = coerce_market_cap(raw.market_cap)
        elif raw.shares_outstanding and raw.last_close:
            market_cap = coerce_market_cap(raw.shares_outstanding * raw.last_close)
        else:
            return None

        return CanonicalRecord(
            ticker=spec.symbol,
            company_name=spec.name or raw.name,
            market_cap=market_cap,
            exchange=map_polygon_exchange(raw.primary_exchange),
            domain=spec.domain or extract_domain(raw.homepage_url),
            sector=raw.sic_description or DEFAULT_SECTOR,
        )
