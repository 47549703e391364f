"""
Screener - CLI.

============================================================
USAGE
============================================================
python -m screener
largecap-screener

No options. Credentials and paths come from the environment (.env is
loaded). Exit code 0 when live or fallback data was written, 1 when
the fallback write itself failed.

============================================================
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from screener.config import ScreenerConfig
from screener.exceptions import DatasetWriteError
from screener.pipeline import run_pipeline


logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    return argparse.ArgumentParser(
        prog="largecap-screener",
        description=(
            "Fetch large-cap (>= $200B) equity metadata from configured "
            "providers and write the viewer dataset."
        ),
        epilog=(
            "Environment: POLYGON_API_KEY, FINNHUB_API_KEY, SCREENER_OUTPUT_DIR, "
            "SCREENER_OUTPUT_FILE, SCREENER_REQUEST_TIMEOUT, SCREENER_MAX_RETRIES, LOG_LEVEL"
        ),
    )


def configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)-5s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    create_parser().parse_args(argv)

    config = ScreenerConfig.from_env()
    configure_logging(config.log_level)

    try:
        result = asyncio.run(run_pipeline(config))
    except DatasetWriteError as e:
        logger.error(f"Script failed: {e}")
        return 1

    logger.info(
        f"Wrote {result.total_stocks} stocks from '{result.data_source}' to {result.path}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
