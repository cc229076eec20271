"""
finance_schedule.config -- single public entrypoint for scheduling configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way to obtain configuration at
    runtime.  It returns a frozen ``SchedulingConfig``; YAML parsing is
    internal to this package.

Invariants enforced:
    - One overdue threshold for both entry kinds and every use case.
    - Configuration is validated before it is handed out.
    - Loaded configs are cached per resolved path; ``clear_config_cache()``
      exists for tests.

Failure modes:
    - ``FileNotFoundError`` -- explicit path does not exist.
    - ``ConfigurationError`` -- structural or invariant violation.
"""

from __future__ import annotations

import threading
from pathlib import Path

from finance_schedule.config.loader import load_config, parse_config
from finance_schedule.config.schema import SchedulingConfig
from finance_schedule.logging_config import get_logger

logger = get_logger("config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_cache: dict[Path, SchedulingConfig] = {}
_cache_lock = threading.Lock()


def get_active_config(path: Path | str | None = None) -> SchedulingConfig:
    """Return the validated configuration for ``path`` (packaged defaults if None)."""
    resolved = Path(path).resolve() if path is not None else DEFAULTS_PATH

    with _cache_lock:
        config = _cache.get(resolved)
        if config is not None:
            return config

        config = load_config(resolved)
        _cache[resolved] = config

    logger.info(
        "scheduling_config_loaded",
        extra={
            "path": str(resolved),
            "overdue_threshold_days": config.overdue_threshold_days,
            "rounding_mode": config.rounding_mode,
            "locale": config.locale,
        },
    )
    return config


def clear_config_cache() -> None:
    with _cache_lock:
        _cache.clear()


__all__ = [
    "DEFAULTS_PATH",
    "SchedulingConfig",
    "clear_config_cache",
    "get_active_config",
    "parse_config",
]
