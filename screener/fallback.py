"""
Fallback Supplier - curated large-cap catalog.

Used when no provider is configured or every provider comes back empty.
Deterministic, no I/O.
"""

from equity_sources.models import CanonicalRecord


SAMPLE_DATA_SOURCE = "Sample Data"

_FALLBACK_CATALOG = (
    CanonicalRecord("AAPL", "Apple Inc.", 3_000_000_000_000, "NASDAQ", "apple.com", "Technology"),
    CanonicalRecord("MSFT", "Microsoft Corporation", 2_800_000_000_000, "NASDAQ", "microsoft.com", "Technology"),
    CanonicalRecord("GOOGL", "Alphabet Inc.", 1_700_000_000_000, "NASDAQ", "google.com", "Technology"),
    CanonicalRecord("AMZN", "Amazon.com Inc.", 1_500_000_000_000, "NASDAQ", "amazon.com", "Consumer Discretionary"),
    CanonicalRecord("NVDA", "NVIDIA Corporation", 1_800_000_000_000, "NASDAQ", "nvidia.com", "Technology"),
    CanonicalRecord("BRK.A", "Berkshire Hathaway Inc.", 900_000_000_000, "NYSE", "berkshirehathaway.com", "Financial Services"),
    CanonicalRecord("TSLA", "Tesla Inc.", 800_000_000_000, "NASDAQ", "tesla.com", "Consumer Discretionary"),
    CanonicalRecord("META", "Meta Platforms Inc.", 750_000_000_000, "NASDAQ", "meta.com", "Technology"),
    CanonicalRecord("UNH", "UnitedHealth Group Incorporated", 500_000_000_000, "NYSE", "unitedhealthgroup.com", "Healthcare"),
    CanonicalRecord("JNJ", "Johnson & Johnson", 450_000_000_000, "NYSE", "jnj.com", "Healthcare"),
    CanonicalRecord("V", "Visa Inc.", 520_000_000_000, "NYSE", "visa.com", "Financial Services"),
    CanonicalRecord("ASML", "ASML Holding N.V.", 300_000_000_000, "AMS", "asml.com", "Technology"),
    CanonicalRecord("NESN.SW", "Nestlé S.A.", 350_000_000_000, "SWX", "nestle.com", "Consumer Staples"),
    CanonicalRecord("NOVO-B.CO", "Novo Nordisk A/S", 280_000_000_000, "CPH", "novonordisk.com", "Healthcare"),
    CanonicalRecord("LVMH.PA", "LVMH Moët Hennessy Louis Vuitton SE", 400_000_000_000, "EPA", "lvmh.com", "Consumer Discretionary"),
)


def get_fallback_set() -> list[CanonicalRecord]:
    """Return the curated catalog in its declared order."""
    return list(_FALLBACK_CATALOG)
