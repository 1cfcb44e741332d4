"""Cadence standards and calendar helpers shared by every calculator.

All income and expense records are normalized to a monthly figure using the
tables below. The approximations (4.33 weeks per month, 2.167 biweekly pay
periods per month) match the values already stored with existing income
records, so re-deriving an estimate never moves it.

Updated: 2025-Q1
"""

import calendar
from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Union

from .models.enums import ExpenseCadence, IncomeKind, PayFrequency


# =============================================================================
# VERSION TRACKING
# =============================================================================

CADENCE_STANDARDS_VERSION = "2025-Q1"


def get_cadence_standards_version() -> str:
    """Return current cadence standards version."""
    return CADENCE_STANDARDS_VERSION


# =============================================================================
# PERIODS PER MONTH
# =============================================================================

PERIODS_PER_MONTH = {
    PayFrequency.WEEKLY: Decimal("4.33"),
    PayFrequency.BIWEEKLY: Decimal("2.167"),
    PayFrequency.SEMIMONTHLY: Decimal("2"),
    PayFrequency.MONTHLY: Decimal("1"),
    # Variable pay is entered as a per-month amount
    PayFrequency.VARIABLE: Decimal("1"),
}

EXPENSE_CADENCE_FACTORS = {
    ExpenseCadence.WEEKLY: Decimal("4.33"),
    ExpenseCadence.BIWEEKLY: Decimal("2.167"),
    ExpenseCadence.SEMIMONTHLY: Decimal("2"),
    ExpenseCadence.MONTHLY: Decimal("1"),
    ExpenseCadence.QUARTERLY: Decimal("1") / Decimal("3"),
    ExpenseCadence.ANNUALLY: Decimal("1") / Decimal("12"),
    ExpenseCadence.ONE_TIME: Decimal("0"),  # Excluded from monthly
}

HOURLY_WEEKS_PER_MONTH = Decimal("4.33")

CENT = Decimal("0.01")
ZERO = Decimal("0")


def periods_per_month(frequency: PayFrequency) -> Decimal:
    """Get the number of pay periods in an average month.

    Args:
        frequency: Pay frequency of the income source

    Returns:
        Multiplier converting one period's pay to a monthly amount
    """
    return PERIODS_PER_MONTH[frequency]


def expense_cadence_factor(cadence: ExpenseCadence) -> Decimal:
    """Get the multiplier converting one expense occurrence to a monthly amount."""
    return EXPENSE_CADENCE_FACTORS[cadence]


def base_monthly_amount(
    kind: IncomeKind,
    base_amount: Decimal,
    pay_frequency: PayFrequency,
    hours_per_week: Decimal = ZERO,
) -> Decimal:
    """Monthly value of a source's base pay, before any commission.

    Hourly sources with hours_per_week set pay base x hours x 4.33; every
    other source pays base x periods per month.
    """
    if kind == IncomeKind.HOURLY and hours_per_week > 0:
        return base_amount * hours_per_week * HOURLY_WEEKS_PER_MONTH
    return base_amount * periods_per_month(pay_frequency)


# =============================================================================
# ROUNDING
# =============================================================================

def to_cents(value: Union[Decimal, int, str]) -> Decimal:
    """Quantize a money value to cents, rounding half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_cents(value: Decimal) -> Decimal:
    """Quantize a money value to cents, rounding toward zero."""
    return value.quantize(CENT, rounding=ROUND_DOWN)


# =============================================================================
# CALENDAR
# =============================================================================

def days_in_month(as_of: date) -> int:
    """Actual length (28-31) of the calendar month containing as_of."""
    return calendar.monthrange(as_of.year, as_of.month)[1]


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month.

    >>> add_months(date(2025, 1, 31), 1)
    datetime.date(2025, 2, 28)
    """
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Number of calendar-month boundaries crossed going from start to end.

    Negative when end falls in an earlier month than start.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def same_month(a: date, b: date) -> bool:
    """True when both dates fall in the same calendar month."""
    return a.year == b.year and a.month == b.month


def month_key(d: date) -> str:
    """Year-month label (YYYY-MM) used by the monthly timeline."""
    return f"{d.year:04d}-{d.month:02d}"
