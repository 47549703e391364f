"""
Screener - Pipeline.

============================================================
RESPONSIBILITY
============================================================
One end-to-end run: build sources from config, aggregate, persist.

- Live persist failure -> fallback set is written instead
- Fallback persist failure -> DatasetWriteError propagates

============================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from equity_sources.base import BaseEquitySource
from equity_sources.providers import FinnhubEquitySource, PolygonEquitySource
from screener.aggregator import AggregationResult, Aggregator
from screener.config import ScreenerConfig
from screener.exceptions import DatasetWriteError
from screener.writer import DatasetWriter


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    path: Path
    data_source: str
    total_stocks: int
    used_fallback: bool


def build_sources(config: ScreenerConfig) -> list[BaseEquitySource]:
    """Instantiate every known provider; unconfigured ones are skipped later."""
    common = {
        "timeout": config.request_timeout,
        "max_retries": config.max_retries,
    }
    return [
        PolygonEquitySource(api_key=config.polygon_api_key, **common),
        FinnhubEquitySource(api_key=config.finnhub_api_key, **common),
    ]


async def run_pipeline(
    config: ScreenerConfig,
    sources: Optional[Sequence[BaseEquitySource]] = None,
    writer: Optional[DatasetWriter] = None,
) -> PipelineResult:
    """
    Aggregate and persist one dataset.

    Raises:
        DatasetWriteError: If even the fallback dataset cannot be written
    """
    logger.info(f"Starting stock data fetch with {config!r}")
    sources = list(sources) if sources is not None else build_sources(config)
    writer = writer or DatasetWriter(config.output_path)

    aggregator = Aggregator(sources)
    try:
        result: AggregationResult = await aggregator.run()
    finally:
        for source in sources:
            await source.close()

    try:
        path = writer.persist(result.records, result.data_source)
        logger.info("Stock data fetch completed successfully")
        return PipelineResult(path, result.data_source, result.total, result.used_fallback)
    except DatasetWriteError as e:
        if result.used_fallback:
            raise
        logger.error(f"Error saving live data, using sample data as fallback: {e}")

    fallback = aggregator.fallback_result()
    path = writer.persist(fallback.records, fallback.data_source)
    return PipelineResult(path, fallback.data_source, fallback.total, True)
