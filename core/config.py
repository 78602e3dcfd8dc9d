"""
Core Module - Application Configuration.

============================================================
CONFIGURABLE ACQUISITION & SCORING
============================================================

All timing and sizing parameters are configurable:
- Cache TTLs per dataset
- Per-fetch deadlines
- Failover strategy and race width
- Refresh interval
- Enabled upstream sources

Configuration can be loaded from:
- Default values
- Environment variables (RADAR_ prefix, .env supported)
- YAML config file

============================================================
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


ENV_PREFIX = "RADAR_"

VALID_STRATEGIES = ("sequential", "race")
VALID_HORIZONS = ("short", "long")


# =============================================================
# MAIN CONFIGURATION
# =============================================================


@dataclass
class AppConfig:
    """
    Main configuration for market acquisition and analysis.

    Times are in seconds except fetch deadlines, which are in
    milliseconds to match upstream timeout conventions.
    """
    # Cache TTLs
    market_ttl_seconds: float = 60.0
    history_ttl_seconds: float = 300.0
    news_ttl_seconds: float = 300.0

    # Per-fetch deadlines
    market_deadline_ms: int = 2500
    race_deadline_ms: int = 5000
    history_deadline_ms: int = 2500
    news_deadline_ms: int = 5000

    # Validation
    min_market_assets: int = 5
    min_history_points: int = 1
    market_limit: int = 20

    # Failover
    strategy: str = "sequential"
    race_width: int = 3
    enabled_sources: List[str] = field(default_factory=list)

    # Refresh loop
    refresh_interval_seconds: float = 900.0

    # News
    news_sample_size: int = 5

    # Upstream credentials (optional, free tiers work without)
    coingecko_api_key: Optional[str] = None

    # Analysis
    default_horizon: str = "short"

    # HTTP API
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.strategy not in VALID_STRATEGIES:
            raise ValueError(f"strategy must be one of {VALID_STRATEGIES}, got {self.strategy!r}")
        if self.default_horizon not in VALID_HORIZONS:
            raise ValueError(f"default_horizon must be one of {VALID_HORIZONS}, got {self.default_horizon!r}")
        if self.race_width < 1:
            raise ValueError("race_width must be at least 1")
        if self.min_market_assets < 1:
            raise ValueError("min_market_assets must be at least 1")
        for name in ("market_deadline_ms", "race_deadline_ms", "history_deadline_ms", "news_deadline_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "AppConfig":
        """
        Load configuration from environment variables.

        Every field maps to RADAR_<FIELD_NAME_UPPER>, e.g.
        RADAR_MARKET_TTL_SECONDS=30 or RADAR_ENABLED_SOURCES=coingecko,coincap.
        """
        if load_dotenv_file:
            load_dotenv()

        values: Dict[str, Any] = {}
        for f in fields(cls):
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            values[f.name] = _coerce(f.name, raw)

        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from a YAML file, falling back to defaults."""
        try:
            import yaml
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}

            known = {f.name for f in fields(cls)}
            unknown = set(data) - known
            if unknown:
                logger.warning(f"Ignoring unknown config keys in {path}: {sorted(unknown)}")

            return cls(**{k: v for k, v in data.items() if k in known})

        except Exception as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, masking credentials."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if data.get("coingecko_api_key"):
            data["coingecko_api_key"] = "***"
        return data


def _coerce(name: str, raw: str) -> Any:
    """Convert an environment string to the field's type."""
    default = AppConfig.__dataclass_fields__[name]
    if name == "enabled_sources":
        return [s.strip() for s in raw.split(",") if s.strip()]
    if name == "coingecko_api_key":
        return raw
    sample = default.default
    if isinstance(sample, bool):
        return raw.lower() in ("1", "true", "yes")
    if isinstance(sample, int):
        return int(raw)
    if isinstance(sample, float):
        return float(raw)
    return raw


# =============================================================
# GLOBAL CONFIG SINGLETON
# =============================================================


_default_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global application configuration."""
    global _default_config
    if _default_config is None:
        _default_config = AppConfig.from_env()
    return _default_config


def set_config(config: AppConfig) -> None:
    """Set the global application configuration."""
    global _default_config
    _default_config = config
