"""
Fetch Gateway - One fetch-transform-validate cycle against one source.

The gateway is the only place that talks HTTP. It:
- Builds the request URL from the descriptor
- Bounds the request with a per-fetch deadline
- Maps every failure onto one FetchError subclass
- Runs the source transform and validates the record count

fetch_one() never raises: the outcome is always a FetchResult. It
never writes to a cache either; that is the coordinator's job.
"""

import asyncio
import logging
import time
from typing import Any, Optional, Sequence

import aiohttp

from data_sources.exceptions import (
    BadStatusError,
    FetchError,
    FetchTimeoutError,
    InsufficientDataError,
    MalformedPayloadError,
    TransportError,
)
from data_sources.models import Dataset, FetchParams, FetchResult, SourceDescriptor


logger = logging.getLogger(__name__)


class FetchGateway:
    """
    Executes single fetches over a shared aiohttp session.

    Usage:
        async with FetchGateway() as gateway:
            result = await gateway.fetch_one(descriptor, deadline_ms=2500)
            if result.ok:
                assets = result.payload
    """

    DEFAULT_DEADLINE_MS = 2500
    # Hard ceiling on the session; per-fetch deadlines are always shorter
    SESSION_TIMEOUT = 30.0

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        default_deadline_ms: int = DEFAULT_DEADLINE_MS,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._default_deadline_ms = default_deadline_ms

    async def fetch_one(
        self,
        descriptor: SourceDescriptor,
        params: Optional[FetchParams] = None,
        deadline_ms: Optional[int] = None,
    ) -> FetchResult:
        """
        Fetch, transform and validate one source.

        Args:
            descriptor: Source to fetch
            params: Optional request parameters for the endpoint builder
            deadline_ms: Per-fetch deadline, defaults to the gateway default

        Returns:
            FetchResult carrying either the records or the FetchError
        """
        params = params if params is not None else FetchParams()
        deadline_ms = deadline_ms if deadline_ms is not None else self._default_deadline_ms
        start_time = time.monotonic()

        logger.debug(f"[{descriptor.name}] Fetch attempt (deadline={deadline_ms}ms)")

        try:
            records = await self._fetch_records(descriptor, params, deadline_ms)
            self._validate(descriptor, records)
        except FetchError as e:
            latency_ms = (time.monotonic() - start_time) * 1000
            logger.warning(f"[{descriptor.name}] {e.kind.value}: {e.message} ({latency_ms:.0f}ms)")
            return FetchResult.failure(descriptor.name, e, latency_ms)
        except Exception as e:
            latency_ms = (time.monotonic() - start_time) * 1000
            error = TransportError(
                message=f"Unexpected error: {e}",
                source_name=descriptor.name,
                original_error=e,
            )
            logger.warning(f"[{descriptor.name}] {error}")
            return FetchResult.failure(descriptor.name, error, latency_ms)

        latency_ms = (time.monotonic() - start_time) * 1000
        logger.debug(f"[{descriptor.name}] {len(records)} records in {latency_ms:.1f}ms")
        return FetchResult.success(descriptor.name, records, latency_ms)

    async def _fetch_records(
        self,
        descriptor: SourceDescriptor,
        params: FetchParams,
        deadline_ms: int,
    ) -> Sequence[Any]:
        if descriptor.transform is None:
            raise MalformedPayloadError(
                message="Source has no transform",
                source_name=descriptor.name,
            )

        if descriptor.is_synthetic:
            raw = None
        else:
            url = self._build_url(descriptor, params)
            try:
                raw = await asyncio.wait_for(
                    self._request_json(descriptor, url),
                    timeout=deadline_ms / 1000,
                )
            except asyncio.TimeoutError:
                raise FetchTimeoutError(
                    message=f"No response within {deadline_ms}ms",
                    source_name=descriptor.name,
                    deadline_ms=deadline_ms,
                    context={"url": url},
                ) from None

        try:
            return list(descriptor.transform(raw))
        except Exception as e:
            raise MalformedPayloadError(
                message=f"Transform rejected payload: {e}",
                source_name=descriptor.name,
                raw_data=raw,
                original_error=e,
            ) from e

    def _build_url(self, descriptor: SourceDescriptor, params: FetchParams) -> str:
        if descriptor.endpoint_builder is None:
            raise TransportError(
                message="Source has no endpoint",
                source_name=descriptor.name,
            )
        try:
            return descriptor.endpoint_builder(params)
        except ValueError as e:
            raise TransportError(
                message=f"Cannot build request: {e}",
                source_name=descriptor.name,
                original_error=e,
            ) from e

    async def _request_json(self, descriptor: SourceDescriptor, url: str) -> Any:
        """GET url and decode its JSON body."""
        session = await self._get_session()
        try:
            async with session.get(url, headers=dict(descriptor.headers)) as response:
                if not 200 <= response.status < 300:
                    body = await response.text()
                    raise BadStatusError(
                        message=f"HTTP {response.status}",
                        source_name=descriptor.name,
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=url,
                    )
                try:
                    # Several upstreams mislabel JSON as text/plain
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise MalformedPayloadError(
                        message=f"Invalid JSON: {e}",
                        source_name=descriptor.name,
                        original_error=e,
                        context={"url": url},
                    ) from e

        except aiohttp.ClientError as e:
            raise TransportError(
                message=f"Connection error: {e}",
                source_name=descriptor.name,
                request_url=url,
                original_error=e,
            ) from e

    @staticmethod
    def _validate(descriptor: SourceDescriptor, records: Sequence[Any]) -> None:
        if len(records) < descriptor.min_records:
            raise InsufficientDataError(
                message=f"Got {len(records)} records, need {descriptor.min_records}",
                source_name=descriptor.name,
                record_count=len(records),
                min_records=descriptor.min_records,
            )
        if descriptor.dataset is Dataset.MARKET and records and getattr(records[0], "price", None) is None:
            raise InsufficientDataError(
                message="First record has no price",
                source_name=descriptor.name,
                record_count=len(records),
                min_records=descriptor.min_records,
            )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.SESSION_TIMEOUT),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "CryptoMarketRadar/1.0",
        }

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "FetchGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
