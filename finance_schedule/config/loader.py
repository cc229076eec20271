"""
Configuration loader (``finance_schedule.config.loader``).

Responsibility
--------------
Reads a YAML file and parses it into a ``SchedulingConfig``.  Only
``finance_schedule.config.get_active_config()`` should call this; services
receive the parsed config through their constructors.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key, wrong value type, or an invariant violation
  -> ``ConfigurationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from finance_schedule.config.schema import SchedulingConfig
from finance_schedule.exceptions import ConfigurationError

# (section, key) -> SchedulingConfig field
_FIELD_MAP: dict[tuple[str, str], str] = {
    ("overdue", "threshold_days"): "overdue_threshold_days",
    ("generation", "default_months_ahead"): "default_months_ahead",
    ("generation", "max_months_ahead"): "max_months_ahead",
    ("installments", "min_count"): "min_installments",
    ("installments", "max_count"): "max_installments",
    ("installments", "allow_past_first_due_date"): "allow_past_first_due_date",
    ("rounding", "decimal_places"): "decimal_places",
    ("rounding", "mode"): "rounding_mode",
    ("descriptions", "locale"): "locale",
    ("descriptions", "recurring_fallback"): "recurring_fallback",
    ("descriptions", "installment_label"): "installment_label",
}

_SECTIONS = frozenset(section for section, _ in _FIELD_MAP)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_config(data: dict[str, Any]) -> SchedulingConfig:
    """Build a SchedulingConfig from a parsed YAML mapping.

    Missing keys keep their dataclass defaults.  Unknown keys are rejected so
    that a typo never silently falls back to a default.
    """
    kwargs: dict[str, Any] = {}
    for section, values in data.items():
        if section not in _SECTIONS:
            raise ConfigurationError(section, "unknown configuration section")
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(section, "must be a mapping")
        for key, value in values.items():
            field_name = _FIELD_MAP.get((section, key))
            if field_name is None:
                raise ConfigurationError(f"{section}.{key}", "unknown configuration key")
            kwargs[field_name] = value

    allow_past = kwargs.get("allow_past_first_due_date", False)
    if not isinstance(allow_past, bool):
        raise ConfigurationError(
            "installments.allow_past_first_due_date", "must be true or false",
        )
    for field_name in ("rounding_mode", "locale", "recurring_fallback", "installment_label"):
        if field_name in kwargs and not isinstance(kwargs[field_name], str):
            raise ConfigurationError(field_name, "must be a string")

    return SchedulingConfig(**kwargs)


def load_config(path: Path) -> SchedulingConfig:
    """Load and validate the configuration file at ``path``."""
    return parse_config(load_yaml_file(path))
