"""
Dashboard Package.

This package provides the JSON API the presentation layer polls.

Modules:
- api: REST API endpoints
- schemas: Pydantic response models
- services: RadarService wiring acquisition and scoring
"""

from dashboard.api import create_app
from dashboard.services import RadarService


__all__ = [
    "create_app",
    "RadarService",
]
