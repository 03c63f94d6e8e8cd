"""
Configuration Loader (``tracking_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen dataclasses of
``tracking_config.schema``.  The public runtime entry point is
``tracking_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown keys are rejected -- a typo never silently falls back to a default.
* Every parse error raises ``ConfigurationError`` naming the offending key.
* Decimal values are parsed from their string form, never through float.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key / wrong type  -> ``ConfigurationError``.
"""

from __future__ import annotations

import os
from dataclasses import fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tracking_config.schema import (
    DatabaseConfig,
    PayrollGrouping,
    ReportingConfig,
    TrackingConfig,
)
from tracking_kernel.exceptions import ConfigurationError

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

DATABASE_URL_ENV = "TRACKING_DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML document is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _check_keys(section: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigurationError(
            f"{section}.{unknown[0]}" if section else unknown[0],
            "unknown configuration key",
        )


def _field_names(cls) -> set[str]:
    return {f.name for f in fields(cls)}


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse the ``database`` section."""
    _check_keys("database", data, _field_names(DatabaseConfig))
    return DatabaseConfig(**data)


def _parse_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError(key, "must be a decimal number")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(key, "must be a decimal number") from None


def parse_reporting(data: dict[str, Any]) -> ReportingConfig:
    """Parse the ``reporting`` section."""
    _check_keys("reporting", data, _field_names(ReportingConfig))
    values = dict(data)
    if "payroll_tolerance" in values:
        values["payroll_tolerance"] = _parse_decimal(
            "reporting.payroll_tolerance", values["payroll_tolerance"]
        )
    if "payroll_grouping" in values and isinstance(values["payroll_grouping"], str):
        try:
            values["payroll_grouping"] = PayrollGrouping(values["payroll_grouping"].lower())
        except ValueError:
            raise ConfigurationError(
                "reporting.payroll_grouping",
                f"must be one of {[g.value for g in PayrollGrouping]}",
            ) from None
    return ReportingConfig(**values)


def parse_config(data: dict[str, Any]) -> TrackingConfig:
    """Parse a full configuration document."""
    _check_keys("", data, {"database", "reporting"})
    database = data.get("database")
    database = {} if database is None else database
    reporting = data.get("reporting")
    reporting = {} if reporting is None else reporting
    if not isinstance(database, dict):
        raise ConfigurationError("database", "must be a mapping")
    if not isinstance(reporting, dict):
        raise ConfigurationError("reporting", "must be a mapping")
    return TrackingConfig(
        database=parse_database(database),
        reporting=parse_reporting(reporting),
    )


def apply_environment(config: TrackingConfig, environ: dict[str, str] | None = None) -> TrackingConfig:
    """Return config with ``TRACKING_DATABASE_URL`` applied, if set."""
    env = os.environ if environ is None else environ
    url = env.get(DATABASE_URL_ENV)
    if not url:
        return config
    return replace(config, database=replace(config.database, url=url))


def load_config(path: Path | str | None = None, environ: dict[str, str] | None = None) -> TrackingConfig:
    """Load, parse and environment-override a configuration file."""
    config_path = Path(path) if path is not None else DEFAULTS_PATH
    return apply_environment(parse_config(load_yaml_file(config_path)), environ)
