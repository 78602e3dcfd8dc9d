"""
Data Source Models - Normalized market data structures.

Provides strict typing for market data normalization across all providers.
Every record is immutable; a refresh produces a new batch instead of
mutating the previous one.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Sequence


class SourceKind(Enum):
    """Role of a data source in failover ordering."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SYNTHETIC = "synthetic"


class Dataset(Enum):
    """What a source's transform produces."""
    MARKET = "market"
    HISTORY = "history"
    NEWS = "news"


@dataclass(frozen=True)
class TimeframeSpec:
    """Upstream parameters and synthetic path shape for one timeframe."""
    coingecko_days: str
    binance_interval: str
    coincap_interval: str
    synthetic_steps: int
    synthetic_step_ms: int


class Timeframe(Enum):
    """Chart timeframes offered to the presentation layer."""
    LIVE = "LIVE"
    D1 = "1D"
    W1 = "1W"
    M1 = "1M"
    Y1 = "1Y"

    @property
    def spec(self) -> TimeframeSpec:
        return TIMEFRAME_SPECS[self]

    @classmethod
    def parse(cls, value: "str | Timeframe") -> "Timeframe":
        """Accept either an enum member or its value ("1D", "live", ...)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(
                f"Unknown timeframe {value!r}, expected one of {[t.value for t in cls]}"
            ) from None


_MINUTE_MS = 60 * 1000
_HOUR_MS = 60 * _MINUTE_MS
_DAY_MS = 24 * _HOUR_MS

TIMEFRAME_SPECS: dict[Timeframe, TimeframeSpec] = {
    Timeframe.LIVE: TimeframeSpec("1", "1m", "m1", 100, _MINUTE_MS),
    Timeframe.D1: TimeframeSpec("1", "15m", "m15", 24, _HOUR_MS),
    Timeframe.W1: TimeframeSpec("7", "1h", "h1", 7, _DAY_MS),
    Timeframe.M1: TimeframeSpec("30", "4h", "h12", 30, _DAY_MS),
    Timeframe.Y1: TimeframeSpec("365", "1d", "d1", 30, _DAY_MS),
}


def _finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class NormalizedAsset:
    """
    Normalized per-asset record - STRICT schema.

    All market sources MUST normalize their data to this format.
    Construction fails with ValueError when id, symbol or name is not a
    non-empty string, or when the price is missing, non-numeric or
    negative, so an invalid record can never be built.
    """
    id: str
    symbol: str
    name: str
    price: float
    change_24h: Optional[float]
    volume_24h: float
    market_cap: float
    source_name: str
    sparkline: tuple[float, ...] = ()

    # Optional extended fields
    rank: Optional[int] = None
    change_1h: Optional[float] = None
    change_7d: Optional[float] = None
    image_url: Optional[str] = None

    def __post_init__(self) -> None:
        """Enforce the record invariants."""
        for name in ("id", "symbol", "name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
        if not _finite(self.price):
            raise ValueError(f"price must be a finite number, got {self.price!r}")
        if self.price < 0:
            raise ValueError(f"price must be >= 0, got {self.price}")

        object.__setattr__(self, "symbol", self.symbol.upper())
        object.__setattr__(self, "price", float(self.price))

        for name in ("change_24h", "change_1h", "change_7d"):
            value = getattr(self, name)
            object.__setattr__(self, name, float(value) if _finite(value) else None)

        for name in ("volume_24h", "market_cap"):
            value = getattr(self, name)
            value = float(value) if _finite(value) else 0.0
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
            object.__setattr__(self, name, value)

        object.__setattr__(
            self, "sparkline", tuple(float(p) for p in self.sparkline if _finite(p))
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change_24h": self.change_24h,
            "volume_24h": self.volume_24h,
            "market_cap": self.market_cap,
            "sparkline": list(self.sparkline),
            "source_name": self.source_name,
            "rank": self.rank,
            "change_1h": self.change_1h,
            "change_7d": self.change_7d,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NormalizedAsset":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            symbol=data["symbol"],
            name=data["name"],
            price=data["price"],
            change_24h=data.get("change_24h"),
            volume_24h=data.get("volume_24h", 0.0),
            market_cap=data.get("market_cap", 0.0),
            source_name=data["source_name"],
            sparkline=tuple(data.get("sparkline") or ()),
            rank=data.get("rank"),
            change_1h=data.get("change_1h"),
            change_7d=data.get("change_7d"),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class HistoryPoint:
    """One (timestamp, price) sample of a price chart."""
    timestamp: int  # epoch milliseconds
    price: float
    volume: Optional[float] = None

    def __post_init__(self) -> None:
        if not _finite(self.price) or self.price < 0:
            raise ValueError(f"history price must be a finite number >= 0, got {self.price!r}")
        object.__setattr__(self, "timestamp", int(self.timestamp))
        object.__setattr__(self, "price", float(self.price))

    def as_tuple(self) -> tuple[int, float]:
        return (self.timestamp, self.price)


@dataclass(frozen=True)
class NewsItem:
    """A headline used as sentiment context."""
    title: str
    published_at: datetime
    source_url: str
    source_name: str = ""

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("news title is required")

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "published_at": self.published_at.isoformat(),
            "source_url": self.source_url,
            "source_name": self.source_name,
        }


@dataclass(frozen=True)
class FetchParams:
    """Optional request parameters passed to endpoint builders."""
    symbol: Optional[str] = None
    coin_id: Optional[str] = None
    timeframe: Optional[Timeframe] = None
    limit: int = 20


@dataclass(frozen=True)
class SourceDescriptor:
    """
    One upstream data provider.

    endpoint_builder is None for SYNTHETIC sources, which generate
    their payload locally. Disabled descriptors stay listed for
    visibility but never take part in failover.
    """
    name: str
    endpoint_builder: Optional[Callable[[FetchParams], str]]
    transform: Optional[Callable[[Any], Sequence[Any]]]
    kind: SourceKind = SourceKind.SECONDARY
    dataset: Dataset = Dataset.MARKET
    min_records: int = 5
    enabled: bool = True
    display_name: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def is_synthetic(self) -> bool:
        return self.kind is SourceKind.SYNTHETIC

    @property
    def is_usable(self) -> bool:
        """Enabled and actually able to produce records."""
        return self.enabled and self.transform is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name or self.name,
            "kind": self.kind.value,
            "dataset": self.dataset.value,
            "min_records": self.min_records,
            "enabled": self.enabled,
            "usable": self.is_usable,
        }


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch-transform-validate cycle against one source."""
    source_name: str
    payload: tuple[Any, ...] = ()
    error: Optional[Any] = None  # FetchError
    latency_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source_name: str, payload: Sequence[Any], latency_ms: float = 0.0) -> "FetchResult":
        return cls(source_name=source_name, payload=tuple(payload), latency_ms=latency_ms)

    @classmethod
    def failure(cls, source_name: str, error: Any, latency_ms: float = 0.0) -> "FetchResult":
        return cls(source_name=source_name, error=error, latency_ms=latency_ms)


@dataclass
class SourceStats:
    """Running counters for one source, kept by the coordinator."""
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    last_error_kind: Optional[str] = None
    last_success_at: Optional[datetime] = None
    failure_kinds: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "last_error": self.last_error,
            "last_error_kind": self.last_error_kind,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "failure_kinds": dict(self.failure_kinds),
        }
