"""
Tests for exchange/market classification and domain extraction.
"""

import pytest

from equity_sources.classification import (
    Market,
    classify_market,
    exchange_from_symbol,
    extract_domain,
    map_polygon_exchange,
)


class TestClassifyMarket:
    """Tests for classify_market."""

    @pytest.mark.parametrize("exchange", ["NYSE", "NASDAQ", "AMEX", "BATS"])
    def test_us_exchanges(self, exchange):
        assert classify_market(exchange) is Market.US

    @pytest.mark.parametrize(
        "exchange", ["LSE", "FRA", "AMS", "SWX", "BIT", "BME", "CPH", "EPA"]
    )
    def test_eu_exchanges(self, exchange):
        assert classify_market(exchange) is Market.EU

    @pytest.mark.parametrize("exchange", ["TSE", "NYSE Arca", "IEX", "EU", "", None, "nyse"])
    def test_everything_else_is_other(self, exchange):
        assert classify_market(exchange) is Market.OTHER

    def test_market_serializes_as_plain_string(self):
        assert Market.US.value == "US"
        assert Market.EU == "EU"


class TestPolygonExchangeMap:
    """Tests for map_polygon_exchange."""

    def test_known_codes(self):
        assert map_polygon_exchange("XNYS") == "NYSE"
        assert map_polygon_exchange("XNAS") == "NASDAQ"
        assert map_polygon_exchange("ARCX") == "NYSE Arca"
        assert map_polygon_exchange("IEXG") == "IEX"

    def test_unknown_code_passes_through(self):
        assert map_polygon_exchange("XTSE") == "XTSE"

    def test_missing_code_defaults_to_nasdaq(self):
        assert map_polygon_exchange(None) == "NASDAQ"
        assert map_polygon_exchange("") == "NASDAQ"


class TestExchangeFromSymbol:
    """Tests for exchange_from_symbol."""

    @pytest.mark.parametrize(
        "symbol,expected",
        [
            ("ASML.AS", "AMS"),
            ("NESN.SW", "SWX"),
            ("NOVO-B.CO", "CPH"),
            ("MC.PA", "EPA"),
            ("SAP.DE", "FRA"),
            ("SHEL.L", "LSE"),
        ],
    )
    def test_suffixes(self, symbol, expected):
        assert exchange_from_symbol(symbol) == expected

    def test_unknown_or_missing_suffix(self):
        assert exchange_from_symbol("7203.T") == "EU"
        assert exchange_from_symbol("ASML") == "EU"


class TestExtractDomain:
    """Tests for extract_domain."""

    def test_strips_scheme_and_www(self):
        assert extract_domain("https://www.apple.com") == "apple.com"
        assert extract_domain("http://www.microsoft.com/en-us/") == "microsoft.com"

    def test_adds_scheme_when_missing(self):
        assert extract_domain("www.nvidia.com") == "nvidia.com"
        assert extract_domain("sap.com/about") == "sap.com"

    def test_keeps_other_subdomains(self):
        assert extract_domain("https://investor.example.com") == "investor.example.com"

    def test_empty_input(self):
        assert extract_domain(None) == ""
        assert extract_domain("") == ""

    def test_unparseable_input(self):
        assert extract_domain("http://[::1") == ""
