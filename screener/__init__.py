"""
Screener Package - Large-cap equity aggregation pipeline.

Runs the configured equity sources, reconciles their output into one
canonical dataset (threshold filter, market-cap ordering) and writes
the JSON artifact the browser viewer reads.

Quick Start:
    import asyncio
    from screener import ScreenerConfig, run_pipeline

    result = asyncio.run(run_pipeline(ScreenerConfig.from_env()))
    print(result.data_source, result.total_stocks)
"""

from screener.aggregator import (
    AggregationResult,
    Aggregator,
    filter_by_threshold,
    sort_by_market_cap,
)
from screener.config import ScreenerConfig
from screener.exceptions import DatasetLoadError, DatasetWriteError, ScreenerError
from screener.fallback import SAMPLE_DATA_SOURCE, get_fallback_set
from screener.pipeline import PipelineResult, build_sources, run_pipeline
from screener.viewer import (
    DataOrigin,
    DatasetLoader,
    LoadedDataset,
    MarketFilter,
    SortKey,
    apply_view,
    is_valid_record,
)
from screener.writer import DatasetWriter


__all__ = [
    # Aggregation
    "Aggregator",
    "AggregationResult",
    "filter_by_threshold",
    "sort_by_market_cap",

    # Fallback
    "SAMPLE_DATA_SOURCE",
    "get_fallback_set",

    # Persistence
    "DatasetWriter",

    # Pipeline
    "ScreenerConfig",
    "PipelineResult",
    "build_sources",
    "run_pipeline",

    # Viewer
    "DataOrigin",
    "DatasetLoader",
    "LoadedDataset",
    "MarketFilter",
    "SortKey",
    "apply_view",
    "is_valid_record",

    # Exceptions
    "ScreenerError",
    "DatasetWriteError",
    "DatasetLoadError",
]
