"""
Dataset Writer - persists the canonical record set.

The artifact is written to a temporary sibling and moved into place with
os.replace, so readers never observe a partially written file.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Sequence, Union

from equity_sources.models import CanonicalRecord
from screener.exceptions import DatasetWriteError


logger = logging.getLogger(__name__)

# Published for the viewer, usually served by another user
ARTIFACT_MODE = 0o666


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_artifact(
    records: Sequence[CanonicalRecord],
    source_label: str,
    last_updated: str,
) -> dict[str, Any]:
    return {
        "lastUpdated": last_updated,
        "dataSource": source_label,
        "totalStocks": len(records),
        "stocks": [r.to_dict() for r in records],
    }


class DatasetWriter:
    """Writes ``{lastUpdated, dataSource, totalStocks, stocks}`` as JSON."""

    def __init__(
        self,
        output_path: Union[str, Path],
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self._output_path = Path(output_path)
        self._clock = clock

    @property
    def output_path(self) -> Path:
        return self._output_path

    def persist(self, records: Sequence[CanonicalRecord], source_label: str) -> Path:
        """
        Write the artifact, replacing any previous one.

        Returns:
            Path of the written artifact

        Raises:
            DatasetWriteError: On any I/O failure
        """
        artifact = build_artifact(records, source_label, self._clock())
        target = self._output_path
        tmp_name = None

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.",
                suffix=".tmp",
                dir=target.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(artifact, fh, indent=2, ensure_ascii=False)
                fh.write("\n")
            os.chmod(tmp_name, ARTIFACT_MODE & ~_current_umask())
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Error saving stock data to {target}: {e}")
            raise DatasetWriteError(
                message=f"Failed to write dataset to {target}",
                path=target,
                original_error=e,
            )

        logger.info(f"Saved {len(records)} stocks to {target} (source: {source_label})")
        return target
