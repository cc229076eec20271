"""
Module: finance_schedule.db.types
Responsibility: Money precision constants and the single sanctioned
    money-rounding function.  Centralizes precision and rounding so that every
    model, domain function and service uses identical definitions.
Architecture position: DB layer.  May be imported by models/, domain/,
    stores/ and services/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere.  All monetary amounts use Decimal with explicit
      precision.
    - Money columns are Numeric(MONEY_PRECISION, MONEY_DECIMAL_PLACES);
      nothing may round to a finer scale than the columns store.
    - round_money() is the ONLY rounding function for monetary values.
      Installment splitting and settlement both go through it, so the
      rounding mode cannot drift between components.
"""

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal


# Amounts are currency major units with cent precision
MONEY_PRECISION = 18
MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Rounding modes selectable through configuration
ROUNDING_MODES: dict[str, str] = {
    "ROUND_HALF_UP": ROUND_HALF_UP,
    "ROUND_HALF_EVEN": ROUND_HALF_EVEN,
}


def to_money(value: Decimal | int | str) -> Decimal:
    """Coerce an int/str/Decimal amount to Decimal without going through float.

    Raises:
        TypeError: If value is a float.
    """
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the currency's minor unit.

    ROUND_HALF_UP on a Decimal is round-half-away-from-zero, the behaviour
    of rounding cents with ``Math.round`` on positive amounts.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)
