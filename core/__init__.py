"""
Core Module Package.

Shared infrastructure used by every other package.

Components:
- clock: Injectable time source (SystemClock / MockClock)
- config: Application configuration (defaults, env, YAML)
"""

from .clock import ClockProtocol, MockClock, SystemClock, get_clock, set_clock
from .config import AppConfig, get_config, set_config


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "get_clock",
    "set_clock",
    "AppConfig",
    "get_config",
    "set_config",
]
