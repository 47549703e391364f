"""
Viewer semantics - consumer-side load, filter and sort.

The browser viewer re-filters the persisted set by market and re-sorts
it. This module holds the same rules so the ordering of a filtered view
matches a fresh aggregation run.

Loading follows the viewer's three tiers:
    live artifact -> cached copy (younger than 24h) -> static sample
The cache itself is an external collaborator (DatasetCache).
"""

import json
import locale
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from numbers import Real
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Union

from equity_sources.classification import Market
from equity_sources.exceptions import NormalizationError
from equity_sources.models import MARKET_CAP_THRESHOLD, CanonicalRecord
from screener.aggregator import sort_by_market_cap
from screener.exceptions import DatasetLoadError
from screener.fallback import get_fallback_set
from screener.writer import utc_now_iso


logger = logging.getLogger(__name__)

MAX_CACHE_AGE = timedelta(hours=24)


class MarketFilter(str, Enum):
    ALL = "all"
    US = "US"
    EU = "EU"
    OTHER = "OTHER"


class SortKey(str, Enum):
    MARKET_CAP = "marketCap"
    TICKER = "ticker"
    COMPANY = "company"

    @classmethod
    def parse(cls, value: Union[str, "SortKey"]) -> "SortKey":
        """Unknown values sort by market cap, like the viewer's default branch."""
        try:
            return cls(value)
        except ValueError:
            return cls.MARKET_CAP


class DataOrigin(str, Enum):
    LIVE = "live"
    CACHE = "cache"
    SAMPLE = "sample"


def _collation_key(text: str) -> tuple[str, str]:
    return (locale.strxfrm(text.casefold()), text)


def apply_view(
    records: Iterable[CanonicalRecord],
    market: Union[str, MarketFilter] = MarketFilter.ALL,
    sort: Union[str, SortKey] = SortKey.MARKET_CAP,
) -> list[CanonicalRecord]:
    """Filter by market (``all`` keeps everything) and sort.

    An unrecognised market matches no record.
    """
    try:
        market = MarketFilter(market)
    except ValueError:
        logger.debug(f"Unknown market filter {market!r}")
        return []
    selected = list(records)
    if market is not MarketFilter.ALL:
        wanted = Market(market.value)
        selected = [r for r in selected if r.market == wanted]

    key = SortKey.parse(sort)
    if key is SortKey.TICKER:
        return sorted(selected, key=lambda r: _collation_key(r.ticker))
    if key is SortKey.COMPANY:
        return sorted(selected, key=lambda r: _collation_key(r.company_name))
    return sort_by_market_cap(selected)


def is_valid_record(raw: Any) -> bool:
    """Viewer-side sanity check on a persisted stock entry."""
    if not isinstance(raw, dict):
        return False
    market_cap = raw.get("marketCap")
    return (
        isinstance(raw.get("ticker"), str)
        and isinstance(raw.get("companyName"), str)
        and isinstance(market_cap, Real)
        and not isinstance(market_cap, bool)
        and market_cap >= MARKET_CAP_THRESHOLD
        and raw.get("market") in (Market.US.value, Market.EU.value)
    )


@dataclass(frozen=True)
class LoadedDataset:
    records: list[CanonicalRecord]
    last_updated: Optional[str]
    origin: DataOrigin


@dataclass(frozen=True)
class CachedDataset:
    stocks: list[dict[str, Any]]
    last_updated: Optional[str]
    timestamp: datetime


class DatasetCache(Protocol):
    """Storage for the last good dataset (browser localStorage in the viewer)."""

    def get(self) -> Optional[CachedDataset]:
        ...

    def put(self, entry: CachedDataset) -> None:
        ...


def _records_from_stocks(stocks: Iterable[Any]) -> list[CanonicalRecord]:
    records = []
    for raw in stocks:
        try:
            records.append(CanonicalRecord.from_dict(raw))
        except (NormalizationError, AttributeError, TypeError) as e:
            logger.warning(f"Skipping malformed stock entry: {e}")
    return records


class DatasetLoader:
    """Loads the persisted artifact with the viewer's fallback order."""

    def __init__(
        self,
        artifact_path: Union[str, Path],
        cache: Optional[DatasetCache] = None,
        max_cache_age: timedelta = MAX_CACHE_AGE,
    ) -> None:
        self._artifact_path = Path(artifact_path)
        self._cache = cache
        self._max_cache_age = max_cache_age

    def read_artifact(self) -> dict[str, Any]:
        """
        Read and check the live artifact.

        Raises:
            DatasetLoadError: If unreadable, not JSON, or without stocks
        """
        try:
            with self._artifact_path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise DatasetLoadError(
                message=f"Cannot read {self._artifact_path}",
                original_error=e,
            )
        stocks = data.get("stocks") if isinstance(data, dict) else None
        if not stocks:
            raise DatasetLoadError(message="No stock data available")
        return data

    def load(self, now: Optional[datetime] = None) -> LoadedDataset:
        """Live artifact, else fresh cache, else the static sample."""
        now = now or datetime.now(timezone.utc)

        try:
            data = self.read_artifact()
            records = _records_from_stocks(data["stocks"])
            if not records:
                raise DatasetLoadError(message="No valid stock entries")
        except DatasetLoadError as e:
            logger.error(f"Failed to load stock data: {e}")
        else:
            self._store(data, now)
            return LoadedDataset(records, data.get("lastUpdated"), DataOrigin.LIVE)

        cached = self._load_cached(now)
        if cached is not None:
            logger.info("Displaying cached stock data")
            return cached

        logger.info("Displaying sample stock data")
        return LoadedDataset(get_fallback_set(), utc_now_iso(), DataOrigin.SAMPLE)

    def _load_cached(self, now: datetime) -> Optional[LoadedDataset]:
        if self._cache is None:
            return None
        try:
            entry = self._cache.get()
        except Exception as e:
            logger.error(f"Failed to load cached data: {e}")
            return None
        if entry is None or now - entry.timestamp >= self._max_cache_age:
            return None
        records = _records_from_stocks(entry.stocks)
        if not records:
            return None
        return LoadedDataset(records, entry.last_updated, DataOrigin.CACHE)

    def _store(self, data: dict[str, Any], now: datetime) -> None:
        if self._cache is None:
            return
        try:
            self._cache.put(CachedDataset(
                stocks=list(data["stocks"]),
                last_updated=data.get("lastUpdated"),
                timestamp=now,
            ))
        except Exception as e:
            logger.error(f"Failed to cache data: {e}")
