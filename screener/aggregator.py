"""
Screener - Aggregator.

============================================================
RESPONSIBILITY
============================================================
Runs the configured equity sources and reconciles their output into
one canonical, filtered, sorted record set.

- Unconfigured sources are skipped, not attempted
- A source that raises contributes zero records
- Empty working set -> Fallback Supplier
- No cross-provider de-duplication

============================================================
DATA FLOW
============================================================
1. fetch_all() on every configured source (concurrently)
2. Concatenate in source order
3. Empty -> fallback catalog
4. Drop market_cap < MARKET_CAP_THRESHOLD
5. Stable sort by market_cap descending

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from equity_sources.base import BaseEquitySource
from equity_sources.models import MARKET_CAP_THRESHOLD, CanonicalRecord
from screener.fallback import SAMPLE_DATA_SOURCE, get_fallback_set


logger = logging.getLogger(__name__)


def filter_by_threshold(
    records: Iterable[CanonicalRecord],
    threshold: int = MARKET_CAP_THRESHOLD,
) -> list[CanonicalRecord]:
    """Keep records with market_cap >= threshold."""
    return [r for r in records if r.market_cap >= threshold]


def sort_by_market_cap(records: Iterable[CanonicalRecord]) -> list[CanonicalRecord]:
    """Sort descending by market cap; ties keep input order."""
    return sorted(records, key=lambda r: r.market_cap, reverse=True)


@dataclass
class AggregationResult:
    """Outcome of one aggregation run."""
    records: list[CanonicalRecord]
    data_source: str
    used_fallback: bool = False
    provider_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.records)


class Aggregator:
    """
    Orchestrates equity sources into one canonical dataset.

    Usage:
        aggregator = Aggregator([PolygonEquitySource(api_key=...)])
        result = await aggregator.run()
    """

    def __init__(
        self,
        sources: Sequence[BaseEquitySource] = (),
        fallback: Callable[[], list[CanonicalRecord]] = get_fallback_set,
        threshold: int = MARKET_CAP_THRESHOLD,
    ) -> None:
        self._sources = list(sources)
        self._fallback = fallback
        self._threshold = threshold

    @property
    def configured_sources(self) -> list[BaseEquitySource]:
        return [s for s in self._sources if s.is_configured]

    async def run(self) -> AggregationResult:
        """
        Run all configured sources and build the final record set.

        Note:
            Never raises - any unexpected error yields the fallback set
        """
        try:
            return await self._run()
        except Exception as e:
            logger.error(f"Aggregation failed, using fallback data: {e}", exc_info=True)
            return self.fallback_result()

    def fallback_result(
        self,
        provider_counts: Optional[dict[str, int]] = None,
    ) -> AggregationResult:
        """The fallback catalog, filtered and sorted like live data."""
        return self._finalize(
            self._fallback(),
            SAMPLE_DATA_SOURCE,
            used_fallback=True,
            provider_counts=provider_counts,
        )

    async def _run(self) -> AggregationResult:
        for source in self._sources:
            if not source.is_configured:
                logger.warning(f"[{source.name}] API key not configured, skipping")

        sources = self.configured_sources
        results = await asyncio.gather(
            *(self._fetch_source(s) for s in sources)
        )

        working: list[CanonicalRecord] = []
        provider_counts: dict[str, int] = {}
        contributors: list[str] = []

        for source, records in zip(sources, results):
            provider_counts[source.name] = len(records)
            logger.info(f"[{source.name}] Contributed {len(records)} records")
            if records:
                contributors.append(source.metadata().display_name)
                working.extend(records)

        if not working:
            if sources:
                logger.warning("Every configured source returned no records, using fallback data")
            else:
                logger.warning("No sources configured, using fallback data")
            return self.fallback_result(provider_counts)

        return self._finalize(
            working,
            " + ".join(contributors),
            used_fallback=False,
            provider_counts=provider_counts,
        )

    async def _fetch_source(self, source: BaseEquitySource) -> list[CanonicalRecord]:
        """Run one source; any exception means zero records."""
        try:
            return await source.fetch_all()
        except Exception as e:
            logger.error(f"[{source.name}] Source failed: {e}", exc_info=True)
            return []

    def _finalize(
        self,
        records: Iterable[CanonicalRecord],
        data_source: str,
        used_fallback: bool,
        provider_counts: Optional[dict[str, int]] = None,
    ) -> AggregationResult:
        filtered = filter_by_threshold(records, self._threshold)
        ordered = sort_by_market_cap(filtered)
        logger.info(
            f"Filtered to {len(ordered)} stocks with market cap >= "
            f"${self._threshold / 1e9:,.0f}B (source: {data_source})"
        )
        return AggregationResult(
            records=ordered,
            data_source=data_source,
            used_fallback=used_fallback,
            provider_counts=provider_counts or {},
        )
