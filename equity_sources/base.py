"""
Base Equity Source - Abstract interface for all quote providers.

All providers MUST implement this interface so that:
- a failing symbol never aborts its batch
- below-threshold companies are dropped as a normal outcome
- provider payloads never leave the adapter un-normalized
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Union

import aiohttp

from equity_sources.batching import BatchPolicy, run_batched
from equity_sources.exceptions import (
    DataSourceError,
    FetchError,
    RateLimitError,
)
from equity_sources.models import (
    MARKET_CAP_THRESHOLD,
    CanonicalRecord,
    FetchStats,
    SourceMetadata,
    SymbolSpec,
)


logger = logging.getLogger(__name__)


class BaseEquitySource(ABC):
    """
    Abstract base class for all equity quote providers.

    Each provider implementation must:
    1. Implement fetch_raw() - Request and parse the provider payload
    2. Implement normalize() - Map the payload to a CanonicalRecord
    3. Implement metadata() - Describe quotas and display name

    Features:
    - Batched, rate-limited fetch_all()
    - Retry on rate limiting and server errors
    - Per-run fetch statistics
    """

    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 1
    RETRY_BACKOFF_BASE = 2.0
    DEFAULT_UNIVERSE: Sequence[Union[str, SymbolSpec]] = ()

    def __init__(
        self,
        api_key: Optional[str] = None,
        universe: Optional[Sequence[Union[str, SymbolSpec]]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        session: Optional[aiohttp.ClientSession] = None,
        batch_policy: Optional[BatchPolicy] = None,
        threshold: int = MARKET_CAP_THRESHOLD,
    ) -> None:
        self._api_key = api_key or None
        self._universe = [
            SymbolSpec.coerce(s)
            for s in (universe if universe is not None else self.DEFAULT_UNIVERSE)
        ]
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._session = session
        self._owns_session = session is None
        self._threshold = threshold

        meta = self.metadata()
        self._batch_policy = batch_policy or BatchPolicy(
            batch_size=meta.batch_size,
            delay_seconds=meta.batch_delay_seconds,
        )
        self._stats = FetchStats()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider."""
        pass

    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        pass

    @abstractmethod
    async def fetch_raw(self, spec: SymbolSpec) -> Any:
        """
        Request one symbol from the provider and parse it into the
        provider's typed response shape.

        Raises:
            FetchError: On HTTP or connection errors
            NormalizationError: If the payload is unusable
        """
        pass

    @abstractmethod
    def normalize(self, raw: Any, spec: SymbolSpec) -> Optional[CanonicalRecord]:
        """
        Map a typed provider response to a CanonicalRecord.

        Returns None when no market cap can be determined.
        """
        pass

    @property
    def is_configured(self) -> bool:
        """True when the provider credential is present."""
        return self._api_key is not None or not self.metadata().requires_auth

    @property
    def universe(self) -> list[SymbolSpec]:
        return list(self._universe)

    @property
    def stats(self) -> FetchStats:
        return self._stats

    async def fetch_one(
        self,
        symbol_or_spec: Union[str, SymbolSpec],
    ) -> Optional[CanonicalRecord]:
        """
        Resolve one symbol into a CanonicalRecord.

        Returns None when the company is below threshold, has no market
        cap, or any error occurs for this symbol.

        Note:
            Never raises for per-symbol errors
        """
        spec = SymbolSpec.coerce(symbol_or_spec)
        self._stats.requested += 1

        try:
            raw = await self._fetch_with_retry(spec)
            record = self.normalize(raw, spec)

        except DataSourceError as e:
            self._stats.failed += 1
            logger.warning(f"[{self.name}] Failed to fetch {spec.symbol}: {e.to_dict()}")
            return None
        except Exception as e:
            self._stats.failed += 1
            logger.warning(
                f"[{self.name}] Unexpected error fetching {spec.symbol}: {e}",
                exc_info=True,
            )
            return None

        if record is None or not record.meets_threshold(self._threshold):
            self._stats.rejected += 1
            logger.debug(f"[{self.name}] {spec.symbol} below threshold or without market cap")
            return None

        self._stats.succeeded += 1
        return record

    async def fetch_all(self) -> list[CanonicalRecord]:
        """
        Resolve the whole universe under this provider's batch policy.

        Returns:
            Records that passed the threshold, in universe order
        """
        self._stats = FetchStats()
        policy = self._batch_policy
        logger.info(
            f"[{self.name}] Fetching {len(self._universe)} symbols "
            f"(batch={policy.batch_size}, delay={policy.delay_seconds}s)"
        )

        outcomes = await run_batched(self._universe, self.fetch_one, policy)

        records: list[CanonicalRecord] = []
        for outcome in outcomes:
            if outcome.error is not None:
                logger.warning(f"[{self.name}] Failed to fetch {outcome.item.symbol}: {outcome.error}")
            elif outcome.value is not None:
                records.append(outcome.value)

        logger.info(f"[{self.name}] Fetch complete: {self._stats.to_dict()}")
        return records

    async def _fetch_with_retry(self, spec: SymbolSpec) -> Any:
        """Fetch with backoff on rate limiting and server errors."""
        last_error: Optional[Exception] = None

        for attempt in range(self._max_retries):
            is_last = attempt + 1 >= self._max_retries
            try:
                return await self.fetch_raw(spec)

            except RateLimitError as e:
                if is_last:
                    raise
                wait_time = e.retry_after_seconds or (self.RETRY_BACKOFF_BASE ** attempt * 10)
                logger.warning(
                    f"[{self.name}] Rate limited on {spec.symbol}, waiting {wait_time}s "
                    f"(attempt {attempt + 1}/{self._max_retries})"
                )
                await asyncio.sleep(wait_time)
                last_error = e

            except FetchError as e:
                if not e.is_server_error() or is_last:
                    raise
                wait_time = self.RETRY_BACKOFF_BASE ** attempt
                logger.warning(
                    f"[{self.name}] Server error {e.status_code} on {spec.symbol}, "
                    f"retrying in {wait_time}s (attempt {attempt + 1}/{self._max_retries})"
                )
                await asyncio.sleep(wait_time)
                last_error = e

        raise FetchError(
            message=f"Failed after {self._max_retries} attempts",
            source_name=self.name,
            original_error=last_error,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "largecap-screener/1.0",
        }

    async def _make_request(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """GET a JSON document, mapping HTTP failures to FetchError."""
        session = await self._get_session()

        start_time = time.time()
        try:
            async with session.get(url, params=params) as response:
                latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        message="Rate limit exceeded",
                        source_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        request_url=url,
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=url,
                    )

                data = await response.json(content_type=None)
                logger.debug(f"[{self.name}] {url} completed in {latency_ms:.1f}ms")
                return data

        except asyncio.TimeoutError as e:
            raise FetchError(
                message=f"Request timed out after {self._timeout}s",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )
        except (aiohttp.ClientError, ValueError) as e:
            raise FetchError(
                message=f"Connection or decode error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseEquitySource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, configured={self.is_configured})>"
