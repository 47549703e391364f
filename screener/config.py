"""
Screener - Configuration.

============================================================
RESPONSIBILITY
============================================================
Builds the immutable run configuration from the environment.

- Loads .env (python-dotenv) before reading variables
- Provider credentials are opaque strings; absent means skipped
- Constructed once per run and passed to adapter constructors

============================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from equity_sources.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

T = TypeVar("T")


DEFAULT_OUTPUT_DIR = "data"
DEFAULT_OUTPUT_FILE = "stocks.json"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 1


def _get_str(env: Mapping[str, str], *names: str) -> Optional[str]:
    """First non-blank value among ``names``."""
    for name in names:
        value = env.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{name} must be a number, got {raw!r}",
            config_key=name,
            original_error=e,
        )
    if value <= 0:
        raise ConfigurationError(message=f"{name} must be positive", config_key=name)
    return value


def _parse_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{name} must be an integer, got {raw!r}",
            config_key=name,
            original_error=e,
        )
    if value < 1:
        raise ConfigurationError(message=f"{name} must be >= 1", config_key=name)
    return value


def _get_tuning(
    env: Mapping[str, str],
    name: str,
    default: T,
    parse: Callable[[str, str], T],
) -> T:
    """Parsed value of ``name``; a malformed value falls back to ``default``."""
    raw = _get_str(env, name)
    if raw is None:
        return default
    try:
        return parse(name, raw)
    except ConfigurationError as e:
        logger.warning(f"Ignoring {e.config_key}: {e.message}, using {default}")
        return default


@dataclass(frozen=True)
class ScreenerConfig:
    """Immutable configuration for one aggregation run."""
    polygon_api_key: Optional[str] = None
    finnhub_api_key: Optional[str] = None
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    output_filename: str = DEFAULT_OUTPUT_FILE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    log_level: str = "INFO"

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir) / self.output_filename

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ) -> "ScreenerConfig":
        """
        Read configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            load_env_file: Load a .env file first (ignored when environ is given)

        Malformed numeric values are logged and replaced by their
        defaults; credentials are never discarded.
        """
        if environ is None:
            if load_env_file:
                load_dotenv()
            environ = os.environ

        return cls(
            # IEX_API_KEY is the secret name older deployments store the Polygon key under
            polygon_api_key=_get_str(environ, "POLYGON_API_KEY", "IEX_API_KEY"),
            finnhub_api_key=_get_str(environ, "FINNHUB_API_KEY"),
            output_dir=Path(_get_str(environ, "SCREENER_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
            output_filename=_get_str(environ, "SCREENER_OUTPUT_FILE") or DEFAULT_OUTPUT_FILE,
            request_timeout=_get_tuning(
                environ, "SCREENER_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, _parse_float
            ),
            max_retries=_get_tuning(
                environ, "SCREENER_MAX_RETRIES", DEFAULT_MAX_RETRIES, _parse_int
            ),
            log_level=(_get_str(environ, "LOG_LEVEL") or "INFO").upper(),
        )

    def __repr__(self) -> str:
        # Keys stay out of logs
        return (
            f"ScreenerConfig(polygon={'set' if self.polygon_api_key else 'unset'}, "
            f"finnhub={'set' if self.finnhub_api_key else 'unset'}, "
            f"output_path={self.output_path}, timeout={self.request_timeout}, "
            f"max_retries={self.max_retries})"
        )
