"""
Equity Source Models - Canonical record and provider descriptors.

Every adapter normalizes its provider payload into CanonicalRecord.
No downstream module depends on provider-specific fields.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from equity_sources.classification import Market, classify_market
from equity_sources.exceptions import NormalizationError


MARKET_CAP_THRESHOLD = 200_000_000_000  # $200B
DEFAULT_SECTOR = "Unknown"
LOGO_BASE_URL = "https://logo.clearbit.com"


@dataclass(frozen=True)
class CanonicalRecord:
    """
    Normalized large-cap equity record - STRICT schema.

    ``market`` is always derived from ``exchange``; callers cannot set it.
    """
    ticker: str
    company_name: str
    market_cap: int
    exchange: str
    domain: str = ""
    sector: str = DEFAULT_SECTOR
    market: Market = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "market", classify_market(self.exchange))

    def meets_threshold(self, threshold: int = MARKET_CAP_THRESHOLD) -> bool:
        return self.market_cap >= threshold

    @property
    def logo_url(self) -> Optional[str]:
        """Logo lookup URL for the company's domain, if known."""
        if not self.domain:
            return None
        return f"{LOGO_BASE_URL}/{self.domain}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "ticker": self.ticker,
            "companyName": self.company_name,
            "marketCap": self.market_cap,
            "market": self.market.value,
            "exchange": self.exchange,
            "domain": self.domain,
            "sector": self.sector,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalRecord":
        """
        Build from the persisted JSON shape.

        A ``market`` key in the input is ignored and recomputed.

        Raises:
            NormalizationError: If a required field is missing or invalid
        """
        for key in ("ticker", "companyName", "marketCap", "exchange"):
            if data.get(key) is None:
                raise NormalizationError(
                    message=f"Missing required field '{key}'",
                    raw_data=data,
                    field_name=key,
                )
        return cls(
            ticker=str(data["ticker"]),
            company_name=str(data["companyName"]),
            market_cap=coerce_market_cap(data["marketCap"]),
            exchange=str(data["exchange"]),
            domain=data.get("domain") or "",
            sector=data.get("sector") or DEFAULT_SECTOR,
        )


def coerce_market_cap(value: Union[int, float, str]) -> int:
    """
    Convert a provider market cap to whole USD.

    Raises:
        NormalizationError: If the value is not a finite number
    """
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise NormalizationError(
            message=f"Invalid market cap: {value!r}",
            raw_data=value,
            field_name="marketCap",
            original_error=e,
        )
    if not math.isfinite(number):
        raise NormalizationError(
            message=f"Non-finite market cap: {value!r}",
            raw_data=value,
            field_name="marketCap",
        )
    if isinstance(value, int):
        return value
    return int(round(number))


@dataclass(frozen=True)
class SymbolSpec:
    """A symbol to resolve, optionally with curated display metadata."""
    symbol: str
    name: Optional[str] = None
    domain: Optional[str] = None

    @classmethod
    def coerce(cls, value: Union[str, "SymbolSpec"]) -> "SymbolSpec":
        if isinstance(value, SymbolSpec):
            return value
        return cls(symbol=value)


@dataclass(frozen=True)
class SourceMetadata:
    """Metadata about a quote provider."""
    name: str
    display_name: str
    rate_limit_per_minute: int
    batch_size: int
    batch_delay_seconds: float
    requires_auth: bool = True
    base_url: str = ""
    documentation_url: str = ""


@dataclass
class FetchStats:
    """Per-run counters for one adapter."""
    requested: int = 0
    succeeded: int = 0
    rejected: int = 0  # resolved, but below threshold or no market cap
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "requested": self.requested,
            "succeeded": self.succeeded,
            "rejected": self.rejected,
            "failed": self.failed,
        }
