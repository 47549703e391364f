"""
Exchange and domain classification helpers.

Pure functions shared by every adapter:
- classify_market: canonical exchange code -> Market
- map_polygon_exchange: Polygon MIC -> canonical exchange code
- exchange_from_symbol: Yahoo-style suffix -> canonical exchange code
- extract_domain: company homepage URL -> bare hostname for logo lookup
"""

from enum import Enum
from typing import Optional
from urllib.parse import urlsplit


class Market(str, Enum):
    """Regional market tag."""
    US = "US"
    EU = "EU"
    OTHER = "OTHER"


US_EXCHANGES = frozenset({"NYSE", "NASDAQ", "AMEX", "BATS"})
EU_EXCHANGES = frozenset({"LSE", "FRA", "AMS", "SWX", "BIT", "BME", "CPH", "EPA"})

POLYGON_EXCHANGE_MAP = {
    "XNYS": "NYSE",
    "XNAS": "NASDAQ",
    "XASE": "AMEX",
    "ARCX": "NYSE Arca",
    "BATS": "BATS",
    "IEXG": "IEX",
}
POLYGON_DEFAULT_EXCHANGE = "NASDAQ"

SUFFIX_EXCHANGE_MAP = {
    "AS": "AMS",
    "SW": "SWX",
    "CO": "CPH",
    "PA": "EPA",
    "DE": "FRA",
    "L": "LSE",
    "MI": "BIT",
    "MC": "BME",
}
UNKNOWN_EU_EXCHANGE = "EU"


def classify_market(exchange: Optional[str]) -> Market:
    """Classify a canonical exchange code into US / EU / OTHER."""
    if exchange in US_EXCHANGES:
        return Market.US
    if exchange in EU_EXCHANGES:
        return Market.EU
    return Market.OTHER


def map_polygon_exchange(code: Optional[str]) -> str:
    """Translate a Polygon ``primary_exchange`` MIC to a canonical code."""
    if not code:
        return POLYGON_DEFAULT_EXCHANGE
    return POLYGON_EXCHANGE_MAP.get(code, code)


def exchange_from_symbol(symbol: str) -> str:
    """Derive the listing exchange from a suffixed symbol like ``SAP.DE``."""
    if "." not in symbol:
        return UNKNOWN_EU_EXCHANGE
    suffix = symbol.rsplit(".", 1)[1].upper()
    return SUFFIX_EXCHANGE_MAP.get(suffix, UNKNOWN_EU_EXCHANGE)


def extract_domain(website: Optional[str]) -> str:
    """
    Reduce a homepage URL to a bare hostname.

    ``https://www.apple.com/`` -> ``apple.com``. Returns an empty string
    when the input is empty or cannot be parsed.
    """
    if not website:
        return ""
    website = website.strip()
    if not website.startswith(("http://", "https://")):
        website = f"https://{website}"
    try:
        hostname = urlsplit(website).hostname
    except ValueError:
        return ""
    if not hostname:
        return ""
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname
