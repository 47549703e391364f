"""
Shared fixtures for screener tests.
"""

import pytest

from tests.screener.sources import StaticSource, make_record


@pytest.fixture
def us_source():
    return StaticSource(
        "polygon",
        records=[
            make_record("AAPL", 3.0e12),
            make_record("JPM", 5.5e11, "NYSE"),
            make_record("MSFT", 2.8e12),
        ],
        display_name="Polygon.io API",
    )


@pytest.fixture
def eu_source():
    return StaticSource(
        "finnhub",
        records=[
            make_record("ASML.AS", 3.0e11, "AMS"),
            make_record("SAP.DE", 2.5e11, "FRA"),
        ],
        display_name="Finnhub API",
    )
