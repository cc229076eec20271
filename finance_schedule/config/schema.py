"""
SchedulingConfig -- the runtime configuration artifact.

A frozen dataclass produced by the loader from YAML.  Services receive it
through constructor injection and never read configuration files
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass

from finance_schedule.db.types import MONEY_DECIMAL_PLACES, ROUNDING_MODES
from finance_schedule.domain.descriptions import SUPPORTED_LOCALES
from finance_schedule.domain.templates import MAX_INSTALLMENTS, MIN_INSTALLMENTS
from finance_schedule.exceptions import ConfigurationError


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Validated scheduling configuration.

    Invariants:
        - overdue_threshold_days >= 1
        - 1 <= default_months_ahead <= max_months_ahead
        - 2 <= min_installments <= max_installments <= 120
        - decimal_places == MONEY_DECIMAL_PLACES (the money column scale)
        - rounding_mode is a supported decimal rounding mode
        - locale has month names available
    """

    overdue_threshold_days: int = 30
    default_months_ahead: int = 3
    max_months_ahead: int = 12
    min_installments: int = MIN_INSTALLMENTS
    max_installments: int = MAX_INSTALLMENTS
    allow_past_first_due_date: bool = False
    decimal_places: int = 2
    rounding_mode: str = "ROUND_HALF_UP"
    locale: str = "pt_BR"
    recurring_fallback: str = "Recorrente"
    installment_label: str = "Parcela"

    def __post_init__(self) -> None:
        for key in (
            "overdue_threshold_days",
            "default_months_ahead",
            "max_months_ahead",
            "min_installments",
            "max_installments",
            "decimal_places",
        ):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(key, f"must be an integer, got {value!r}")

        if self.overdue_threshold_days < 1:
            raise ConfigurationError("overdue.threshold_days", "must be at least 1")
        if not 1 <= self.default_months_ahead <= self.max_months_ahead:
            raise ConfigurationError(
                "generation.default_months_ahead",
                f"must be within [1, {self.max_months_ahead}]",
            )
        if not (
            MIN_INSTALLMENTS
            <= self.min_installments
            <= self.max_installments
            <= MAX_INSTALLMENTS
        ):
            raise ConfigurationError(
                "installments",
                f"min_count/max_count must satisfy "
                f"{MIN_INSTALLMENTS} <= min <= max <= {MAX_INSTALLMENTS}",
            )
        if self.decimal_places != MONEY_DECIMAL_PLACES:
            raise ConfigurationError(
                "rounding.decimal_places",
                f"must be {MONEY_DECIMAL_PLACES}; money columns store "
                f"{MONEY_DECIMAL_PLACES} decimal places",
            )
        if self.rounding_mode not in ROUNDING_MODES:
            raise ConfigurationError(
                "rounding.mode",
                f"unsupported mode {self.rounding_mode!r}; "
                f"expected one of {sorted(ROUNDING_MODES)}",
            )
        if self.locale not in SUPPORTED_LOCALES:
            raise ConfigurationError(
                "descriptions.locale", f"unsupported locale {self.locale!r}",
            )

    @property
    def rounding(self) -> str:
        """The ``decimal`` module constant for ``rounding_mode``."""
        return ROUNDING_MODES[self.rounding_mode]
