"""
Tracking configuration.

The single public entry point for runtime config is ``get_active_config()``.
"""

from pathlib import Path

from tracking_config.loader import load_config
from tracking_config.schema import (
    DatabaseConfig,
    PayrollGrouping,
    ReportingConfig,
    TrackingConfig,
)

__all__ = [
    "get_active_config",
    "DatabaseConfig",
    "PayrollGrouping",
    "ReportingConfig",
    "TrackingConfig",
]


def get_active_config(path: Path | str | None = None) -> TrackingConfig:
    """Load the active configuration (packaged defaults when path is None)."""
    return load_config(path)
