"""
Provider Adapter Tests.

============================================================
PURPOSE
============================================================
Unit tests for the Polygon and Finnhub adapters with the HTTP layer
replaced by AsyncMock.

TEST CATEGORIES:
- Normalization: provider payload -> CanonicalRecord
- Rejection: below threshold / missing market cap
- Error isolation: one failing symbol per batch
- Retry: server errors vs client errors

============================================================
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from equity_sources.batching import BatchPolicy
from equity_sources.classification import Market
from equity_sources.exceptions import FetchError
from equity_sources.models import SymbolSpec
from equity_sources.providers import FinnhubEquitySource, PolygonEquitySource


NO_DELAY = BatchPolicy(batch_size=5, delay_seconds=0)


def polygon_details(name, market_cap=None, shares=None, exchange="XNAS",
                    homepage="https://www.example.com", sic="SERVICES"):
    results = {
        "name": name,
        "primary_exchange": exchange,
        "homepage_url": homepage,
        "sic_description": sic,
    }
    if market_cap is not None:
        results["market_cap"] = market_cap
    if shares is not None:
        results["share_class_shares_outstanding"] = shares
    return {"status": "OK", "results": results}


def url_router(routes):
    """AsyncMock side effect resolving a response by URL suffix."""
    async def _request(url, params=None):
        for suffix, response in routes.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise FetchError(message="HTTP 404", source_name="test", status_code=404, request_url=url)
    return _request


# ============================================================
# POLYGON TESTS
# ============================================================

class TestPolygonEquitySource:
    """Tests for PolygonEquitySource."""

    def test_not_configured_without_key(self):
        assert not PolygonEquitySource().is_configured
        assert not PolygonEquitySource(api_key="").is_configured
        assert PolygonEquitySource(api_key="k").is_configured

    def test_metadata_rate_limits(self):
        meta = PolygonEquitySource(api_key="k").metadata()

        assert meta.display_name == "Polygon.io API"
        assert meta.batch_size == 5
        assert meta.batch_delay_seconds == 12.0

    @pytest.mark.asyncio
    async def test_fetch_one_direct_market_cap(self):
        source = PolygonEquitySource(api_key="k")
        routes = {
            "/tickers/AAPL": polygon_details(
                "Apple Inc.", market_cap=3.1e12,
                homepage="https://www.apple.com", sic="ELECTRONIC COMPUTERS",
            ),
        }

        mock = AsyncMock(side_effect=url_router(routes))

        with patch.object(source, "_make_request", new=mock):
            record = await source.fetch_one("AAPL")

        assert mock.await_count == 1
        assert record is not None
        assert record.ticker == "AAPL"
        assert record.company_name == "Apple Inc."
        assert record.market_cap == 3_100_000_000_000
        assert record.exchange == "NASDAQ"
        assert record.market is Market.US
        assert record.domain == "apple.com"
        assert record.sector == "ELECTRONIC COMPUTERS"

    @pytest.mark.asyncio
    async def test_fetch_one_below_threshold_is_absent(self):
        source = PolygonEquitySource(api_key="k")
        routes = {"/tickers/XYZ": polygon_details("XYZ Corp", market_cap=150e9)}

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            record = await source.fetch_one("XYZ")

        assert record is None
        assert source.stats.rejected == 1
        assert source.stats.failed == 0

    @pytest.mark.asyncio
    async def test_fetch_one_derives_market_cap_from_previous_close(self):
        source = PolygonEquitySource(api_key="k")
        routes = {
            "/tickers/JPM": polygon_details("JPMorgan Chase & Co.", shares=2.9e9, exchange="XNYS"),
            "/ticker/JPM/prev": {"results": [{"T": "JPM", "c": 200.0}]},
        }
        mock = AsyncMock(side_effect=url_router(routes))

        with patch.object(source, "_make_request", new=mock):
            record = await source.fetch_one("JPM")

        assert mock.await_count == 2
        assert record.market_cap == 580_000_000_000
        assert record.exchange == "NYSE"

    @pytest.mark.asyncio
    async def test_fetch_one_without_any_market_cap_is_absent(self):
        source = PolygonEquitySource(api_key="k")
        routes = {"/tickers/NEW": polygon_details("New Co")}

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            assert await source.fetch_one("NEW") is None

    @pytest.mark.asyncio
    async def test_fetch_one_missing_results_is_absent(self):
        source = PolygonEquitySource(api_key="k")
        routes = {"/tickers/GONE": {"status": "NOT_FOUND"}}

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            assert await source.fetch_one("GONE") is None

        assert source.stats.failed == 1

    @pytest.mark.asyncio
    async def test_fetch_all_isolates_single_failure(self):
        tickers = ["AAPL", "MSFT", "FAIL", "NVDA", "AMZN"]
        source = PolygonEquitySource(api_key="k", universe=tickers, batch_policy=NO_DELAY)
        routes = {
            f"/tickers/{t}": polygon_details(t, market_cap=1e12)
            for t in tickers if t != "FAIL"
        }
        routes["/tickers/FAIL"] = FetchError(message="Connection error", source_name="polygon")

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            records = await source.fetch_all()

        assert [r.ticker for r in records] == ["AAPL", "MSFT", "NVDA", "AMZN"]
        assert source.stats.to_dict() == {
            "requested": 5, "succeeded": 4, "rejected": 0, "failed": 1,
        }

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_absent(self):
        source = PolygonEquitySource(api_key="k")
        mock = AsyncMock(side_effect=KeyError("results"))

        with patch.object(source, "_make_request", new=mock):
            assert await source.fetch_one("AAPL") is None

    @pytest.mark.asyncio
    async def test_server_error_retried(self):
        source = PolygonEquitySource(api_key="k", max_retries=2)
        mock = AsyncMock(side_effect=[
            FetchError(message="HTTP 503", source_name="polygon", status_code=503),
            polygon_details("Apple Inc.", market_cap=3e12),
        ])

        with patch.object(source, "_make_request", new=mock), \
                patch("equity_sources.base.asyncio.sleep", new=AsyncMock()):
            record = await source.fetch_one("AAPL")

        assert record is not None
        assert mock.await_count == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        source = PolygonEquitySource(api_key="k", max_retries=3)
        mock = AsyncMock(side_effect=FetchError(
            message="HTTP 403", source_name="polygon", status_code=403,
        ))

        with patch.object(source, "_make_request", new=mock):
            assert await source.fetch_one("AAPL") is None

        assert mock.await_count == 1


# ============================================================
# FINNHUB TESTS
# ============================================================

class TestFinnhubEquitySource:
    """Tests for FinnhubEquitySource."""

    def test_default_universe_is_curated(self):
        source = FinnhubEquitySource(api_key="k")

        assert len(source.universe) == 8
        assert source.universe[0] == SymbolSpec("ASML.AS", "ASML Holding N.V.", "asml.com")

    def test_metadata_rate_limits(self):
        meta = FinnhubEquitySource(api_key="k").metadata()

        assert meta.rate_limit_per_minute == 60
        assert meta.batch_size == 1
        assert meta.batch_delay_seconds == 1.1

    @pytest.mark.asyncio
    async def test_fetch_one_uses_profile_market_cap_in_millions(self):
        source = FinnhubEquitySource(api_key="k")
        spec = SymbolSpec("MC.PA", "LVMH Moët Hennessy Louis Vuitton SE", "lvmh.com")
        routes = {
            "/quote": {"c": 700.5},
            "/stock/profile2": {
                "name": "LVMH",
                "marketCapitalization": 350123.5,
                "finnhubIndustry": "Textiles, Apparel & Luxury Goods",
                "weburl": "https://www.lvmh.fr/",
            },
        }

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            record = await source.fetch_one(spec)

        assert record.ticker == "MC.PA"
        assert record.company_name == "LVMH Moët Hennessy Louis Vuitton SE"
        assert record.market_cap == 350_123_500_000
        assert record.exchange == "EPA"
        assert record.market is Market.EU
        assert record.domain == "lvmh.com"
        assert record.sector == "Textiles, Apparel & Luxury Goods"

    @pytest.mark.asyncio
    async def test_fetch_one_derives_from_shares_and_price(self):
        source = FinnhubEquitySource(api_key="k")
        routes = {
            "/quote": {"c": 200.0},
            "/stock/profile2": {"name": "SAP SE", "shareOutstanding": 1200.0, "weburl": "https://www.sap.com"},
        }

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            record = await source.fetch_one("SAP.DE")

        assert record.market_cap == 240_000_000_000
        assert record.company_name == "SAP SE"
        assert record.domain == "sap.com"
        assert record.exchange == "FRA"
        assert record.sector == "Unknown"

    @pytest.mark.asyncio
    async def test_empty_profile_is_absent(self):
        source = FinnhubEquitySource(api_key="k")
        routes = {"/quote": {"c": 0}, "/stock/profile2": {}}

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            assert await source.fetch_one("UNKNOWN.PA") is None

        assert source.stats.rejected == 1

    @pytest.mark.asyncio
    async def test_quote_failure_is_absent(self):
        source = FinnhubEquitySource(api_key="k")
        routes = {
            "/quote": FetchError(message="HTTP 500", source_name="finnhub", status_code=500),
            "/stock/profile2": {"marketCapitalization": 300000},
        }

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=url_router(routes))):
            assert await source.fetch_one("ASML.AS") is None

        assert source.stats.failed == 1

    @pytest.mark.asyncio
    async def test_quote_failure_waits_for_profile_request(self):
        source = FinnhubEquitySource(api_key="k")
        finished = []

        async def request(url, params=None):
            if url.endswith("/quote"):
                raise FetchError(message="HTTP 500", source_name="finnhub", status_code=500)
            for _ in range(5):
                await asyncio.sleep(0)
            finished.append(url)
            return {"marketCapitalization": 300000}

        with patch.object(source, "_make_request", new=AsyncMock(side_effect=request)):
            assert await source.fetch_one("ASML.AS") is None

        assert len(finished) == 1
        assert finished[0].endswith("/stock/profile2")
