"""
Transaction descriptions for settled schedule entries.

Reconciliation matches a ledger transaction back to its entry by
description, so these builders are deterministic: the same entry and
template always produce the same text, independent of the process locale.
"""

from __future__ import annotations

from datetime import date

DEFAULT_LOCALE = "pt_BR"
DEFAULT_RECURRING_FALLBACK = "Recorrente"
DEFAULT_INSTALLMENT_LABEL = "Parcela"

MONTH_NAMES: dict[str, tuple[str, ...]] = {
    "pt_BR": (
        "janeiro", "fevereiro", "março", "abril", "maio", "junho",
        "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
    ),
    "en_US": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
}

# "{month} de {year}" vs "{month} {year}"
_MONTH_YEAR_FORMATS: dict[str, str] = {
    "pt_BR": "{month} de {year}",
    "en_US": "{month} {year}",
}

SUPPORTED_LOCALES = frozenset(MONTH_NAMES)


def month_year(day: date, locale: str = DEFAULT_LOCALE) -> str:
    """Long month and year of ``day``: ``fevereiro de 2024``."""
    if locale not in SUPPORTED_LOCALES:
        raise ValueError(f"Unsupported locale: {locale}")
    return _MONTH_YEAR_FORMATS[locale].format(
        month=MONTH_NAMES[locale][day.month - 1], year=day.year,
    )


def occurrence_description(
    template_description: str | None,
    due_date: date,
    *,
    locale: str = DEFAULT_LOCALE,
    fallback: str = DEFAULT_RECURRING_FALLBACK,
) -> str:
    """``Aluguel - fevereiro de 2024``."""
    base = (template_description or "").strip() or fallback
    return f"{base} - {month_year(due_date, locale)}"


def installment_description(
    template_description: str | None,
    installment_number: int,
    total_installments: int,
    *,
    label: str = DEFAULT_INSTALLMENT_LABEL,
) -> str:
    """``Notebook - Parcela 3/12``, or ``Parcela 3/12`` without a description."""
    index = f"{label} {installment_number}/{total_installments}"
    base = (template_description or "").strip()
    if not base:
        return index
    return f"{base} - {index}"
