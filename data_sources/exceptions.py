"""
Data Source Exceptions - Typed failure taxonomy for market data sources.

Every way a single fetch can fail maps to exactly one FetchError
subclass. The gateway returns these inside a FetchResult; only
AllSourcesExhaustedError is ever raised to callers of the coordinator.

Subclasses list their extra attributes in ``detail_fields``; they are
passed as keywords and included in ``to_dict()``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class FetchErrorKind(Enum):
    """Classification of a failed fetch."""
    TIMEOUT = "timeout"
    BAD_STATUS = "bad_status"
    TRANSPORT = "transport"
    MALFORMED_PAYLOAD = "malformed_payload"
    INSUFFICIENT_DATA = "insufficient_data"
    ALL_SOURCES_EXHAUSTED = "all_sources_exhausted"


class DataSourceError(Exception):
    """Base exception for all data source errors."""

    detail_fields: tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
        **details: Any,
    ) -> None:
        unknown = set(details) - set(self.detail_fields)
        if unknown:
            raise TypeError(f"{self.__class__.__name__} got unexpected details: {sorted(unknown)}")

        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        for field in self.detail_fields:
            setattr(self, field, details.get(field))

    def _detail_value(self, field: str) -> Any:
        return getattr(self, field)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for logs and API error bodies."""
        data = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }
        for field in self.detail_fields:
            data[field] = self._detail_value(field)
        return data

    def __str__(self) -> str:
        text = f"{self.__class__.__name__}: {self.message}"
        if self.source_name:
            text += f" [source={self.source_name}]"
        if self.original_error:
            text += f" (caused by: {self.original_error})"
        return text


class FetchError(DataSourceError):
    """Base class for a failed fetch-transform-validate cycle."""

    kind: FetchErrorKind

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind.value
        return data


class FetchTimeoutError(FetchError):
    """No response before the per-fetch deadline."""

    kind = FetchErrorKind.TIMEOUT
    detail_fields = ("deadline_ms",)


class BadStatusError(FetchError):
    """Upstream answered with a non-success HTTP status."""

    kind = FetchErrorKind.BAD_STATUS
    detail_fields = ("status_code", "response_body", "request_url")

    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code < 600


class TransportError(FetchError):
    """Connection-level failure (DNS, refused, reset) with no HTTP status."""

    kind = FetchErrorKind.TRANSPORT
    detail_fields = ("request_url",)


class MalformedPayloadError(FetchError):
    """Body could not be decoded or the source transform rejected it."""

    kind = FetchErrorKind.MALFORMED_PAYLOAD
    detail_fields = ("raw_data",)

    def _detail_value(self, field: str) -> Any:
        # Payloads can be megabytes; logs get a prefix
        return None if self.raw_data is None else str(self.raw_data)[:500]


class InsufficientDataError(FetchError):
    """Transform succeeded but produced too few usable records."""

    kind = FetchErrorKind.INSUFFICIENT_DATA
    detail_fields = ("record_count", "min_records")


class AllSourcesExhaustedError(FetchError):
    """Every configured source failed and no fallback could answer."""

    kind = FetchErrorKind.ALL_SOURCES_EXHAUSTED
    detail_fields = ("attempted_sources", "cache_key", "errors")

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.attempted_sources = list(self.attempted_sources or [])
        self.errors = list(self.errors or [])

    def _detail_value(self, field: str) -> Any:
        if field == "errors":
            return [e.kind.value for e in self.errors]
        return getattr(self, field)


class ConfigurationError(DataSourceError):
    """Invalid registry or source configuration."""

    detail_fields = ("config_key",)
