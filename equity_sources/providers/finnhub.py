"""
Finnhub Equity Source - European large-cap adapter.

Endpoints used:
- /quote - Last price
- /stock/profile2 - Company profile, market cap and shares (in millions)

Rate limits:
- 60 requests/minute
- One symbol at a time (two concurrent requests) with 1.1s between symbols
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from equity_sources.base import BaseEquitySource
from equity_sources.classification import exchange_from_symbol, extract_domain
from equity_sources.exceptions import NormalizationError
from equity_sources.models import (
    DEFAULT_SECTOR,
    CanonicalRecord,
    SourceMetadata,
    SymbolSpec,
    coerce_market_cap,
)


logger = logging.getLogger(__name__)

MILLION = 1_000_000

EUROPEAN_LARGE_CAPS = (
    SymbolSpec("ASML.AS", "ASML Holding N.V.", "asml.com"),
    SymbolSpec("NESN.SW", "Nestlé S.A.", "nestle.com"),
    SymbolSpec("NOVO-B.CO", "Novo Nordisk A/S", "novonordisk.com"),
    SymbolSpec("MC.PA", "LVMH Moët Hennessy Louis Vuitton SE", "lvmh.com"),
    SymbolSpec("RMS.PA", "Hermès International S.A.", "hermes.com"),
    SymbolSpec("SAP.DE", "SAP SE", "sap.com"),
    SymbolSpec("OR.PA", "L'Oréal S.A.", "loreal.com"),
    SymbolSpec("TTE.PA", "TotalEnergies SE", "totalenergies.com"),
)


@dataclass(frozen=True)
class FinnhubQuote:
    """Typed subset of a /quote response."""
    current_price: Optional[float] = None

    @classmethod
    def from_response(cls, payload: Any) -> "FinnhubQuote":
        if not isinstance(payload, dict):
            return cls()
        # Finnhub answers unknown symbols with c == 0
        price = payload.get("c")
        return cls(current_price=price if price else None)


@dataclass(frozen=True)
class FinnhubProfile:
    """Typed subset of a /stock/profile2 response. Sizes are in millions."""
    name: Optional[str] = None
    market_capitalization: Optional[float] = None
    share_outstanding: Optional[float] = None
    industry: Optional[str] = None
    weburl: Optional[str] = None

    @classmethod
    def from_response(cls, symbol: str, payload: Any) -> "FinnhubProfile":
        """
        Raises:
            NormalizationError: If the payload is not an object
        """
        if not isinstance(payload, dict):
            raise NormalizationError(
                message=f"Unexpected profile payload for {symbol}",
                source_name="finnhub",
                raw_data=payload,
            )
        return cls(
            name=payload.get("name"),
            market_capitalization=payload.get("marketCapitalization"),
            share_outstanding=payload.get("shareOutstanding"),
            industry=payload.get("finnhubIndustry"),
            weburl=payload.get("weburl"),
        )


@dataclass(frozen=True)
class FinnhubSnapshot:
    quote: FinnhubQuote
    profile: FinnhubProfile


class FinnhubEquitySource(BaseEquitySource):
    """Finnhub quotes and profiles for curated European large caps."""

    BASE_URL = "https://finnhub.io/api/v1"
    DEFAULT_UNIVERSE = EUROPEAN_LARGE_CAPS

    @property
    def name(self) -> str:
        return "finnhub"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="finnhub",
            display_name="Finnhub API",
            rate_limit_per_minute=60,
            batch_size=1,
            batch_delay_seconds=1.1,
            requires_auth=True,
            base_url=self.BASE_URL,
            documentation_url="https://finnhub.io/docs/api",
        )

    async def fetch_raw(self, spec: SymbolSpec) -> FinnhubSnapshot:
        params = {"symbol": spec.symbol, "token": self._api_key}
        # Both requests settle before this returns, even when one fails
        results = await asyncio.gather(
            self._make_request(f"{self.BASE_URL}/quote", params=params),
            self._make_request(f"{self.BASE_URL}/stock/profile2", params=params),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        quote_payload, profile_payload = results
        return FinnhubSnapshot(
            quote=FinnhubQuote.from_response(quote_payload),
            profile=FinnhubProfile.from_response(spec.symbol, profile_payload),
        )

    def normalize(
        self,
        raw: FinnhubSnapshot,
        spec: SymbolSpec,
    ) -> Optional[CanonicalRecord]:
        profile = raw.profile
        if profile.market_capitalization:
            market_cap = coerce_market_cap(profile.market_capitalization * MILLION)
        elif profile.share_outstanding and raw.quote.current_price:
            market_cap = coerce_market_cap(
                profile.share_outstanding * MILLION * raw.quote.current_price
            )
        else:
            return None

        return CanonicalRecord(
            ticker=spec.symbol,
            company_name=spec.name or profile.name or spec.symbol,
            market_cap=market_cap,
            exchange=exchange_from_symbol(spec.symbol),
            domain=spec.domain or extract_domain(profile.weburl),
            sector=profile.industry or DEFAULT_SECTOR,
        )
