"""Input records handed to the engine by the data collaborator.

These are the persisted shapes of a user's income sources, side projects,
recurring expenses, goals, one-time incomes, accounts and settings. Every
record carries the id of its single owner; the engine never mixes records
of different owners.

Derived income estimates are exposed as properties so they are recomputed
on every read instead of trusting a stored value.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, TypeVar

import pydantic
from pydantic import BaseModel, Field, field_validator, model_validator

from .. import periods
from ..exceptions import ValidationError
from .enums import (
    AccountType,
    ExpenseCadence,
    ExpenseCategory,
    ExpenseStatus,
    GoalCategory,
    GoalPriority,
    GoalStatus,
    IncomeKind,
    IncomeStatus,
    OneTimeIncomeSource,
    OneTimeIncomeState,
    PayFrequency,
    ReserveType,
    SideProjectStatus,
)


# =============================================================================
# INCOME
# =============================================================================

class IncomeSource(BaseModel):
    """A recurring source of income.

    Commission fields only matter when ``is_commission_based`` is set. A
    commission source may also carry a base amount, which is added to both
    ends of its commission range.

    Contract-style income can declare an ``initial_payment`` (paid in the
    month of ``start_date``) and a ``final_payment`` (paid in the month of
    ``final_payment_date``, or ``end_date`` when unset). Neither is part of
    the steady monthly estimate.
    """
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    kind: IncomeKind = IncomeKind.SALARY
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    base_amount: Decimal = Field(default=Decimal("0"), ge=0)
    hours_per_week: Decimal = Field(default=Decimal("0"), ge=0)

    # Commission
    is_commission_based: bool = False
    commission_low: Decimal = Field(default=Decimal("0"), ge=0)
    commission_high: Decimal = Field(default=Decimal("0"), ge=0)
    commission_frequency_per_period: Decimal = Field(default=Decimal("0"), ge=0)

    # Lifecycle
    status: IncomeStatus = IncomeStatus.ACTIVE
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_primary: bool = False

    # Contract payments
    initial_payment: Decimal = Field(default=Decimal("0"), ge=0)
    final_payment: Decimal = Field(default=Decimal("0"), ge=0)
    final_payment_date: Optional[date] = None

    @model_validator(mode="after")
    def check_commission_range(self) -> "IncomeSource":
        """Commission high must not be below commission low."""
        if self.is_commission_based and self.commission_high < self.commission_low:
            raise ValueError("commission_high must be greater than or equal to commission_low")
        return self

    @property
    def is_variable(self) -> bool:
        """Commission-based or variable-frequency pay."""
        return self.is_commission_based or self.pay_frequency == PayFrequency.VARIABLE

    def is_included_on(self, as_of: date) -> bool:
        """Whether the source counts toward monthly income on ``as_of``."""
        if self.status != IncomeStatus.ACTIVE:
            return False
        if self.start_date is not None and self.start_date > as_of:
            return False
        if self.end_date is not None and self.end_date < as_of:
            return False
        return True

    def monthly_band(self) -> tuple[Decimal, Decimal, Decimal]:
        """Monthly (low, mid, high) estimate, each rounded to cents."""
        base = periods.base_monthly_amount(
            self.kind, self.base_amount, self.pay_frequency, self.hours_per_week
        )
        if not self.is_commission_based:
            mid = periods.to_cents(base)
            return mid, mid, mid

        ppm = periods.periods_per_month(self.pay_frequency)
        freq = self.commission_frequency_per_period
        low = periods.to_cents(base + self.commission_low * freq * ppm)
        high = periods.to_cents(base + self.commission_high * freq * ppm)
        mid = periods.to_cents((low + high) / 2)
        return low, mid, high

    @property
    def estimated_monthly_low(self) -> Decimal:
        return self.monthly_band()[0]

    @property
    def estimated_monthly_mid(self) -> Decimal:
        return self.monthly_band()[1]

    @property
    def estimated_monthly_high(self) -> Decimal:
        return self.monthly_band()[2]


class SideProject(BaseModel):
    """A side project whose realized earnings count as income."""
    id: str
    owner_id: str
    name: str
    status: SideProjectStatus = SideProjectStatus.ACTIVE
    current_monthly_earnings: Decimal = Field(default=Decimal("0"), ge=0)
    projected_monthly_earnings: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def is_active_on(self, as_of: date) -> bool:
        """Whether the project's earnings count on ``as_of``."""
        if self.status != SideProjectStatus.ACTIVE:
            return False
        if self.start_date is not None and self.start_date > as_of:
            return False
        return self.end_date is None or self.end_date >= as_of


# =============================================================================
# EXPENSES
# =============================================================================

class RecurringExpense(BaseModel):
    """A recurring bill or subscription."""
    id: str
    owner_id: str
    name: str
    amount: Decimal = Field(ge=0)
    cadence: ExpenseCadence = ExpenseCadence.MONTHLY
    category: ExpenseCategory = ExpenseCategory.OTHER
    status: ExpenseStatus = ExpenseStatus.ACTIVE

    @property
    def monthly_amount(self) -> Decimal:
        """Amount normalized to a monthly charge (unrounded)."""
        return self.amount * periods.expense_cadence_factor(self.cadence)


# =============================================================================
# GOALS
# =============================================================================

class FinancialGoal(BaseModel):
    """A savings goal.

    ``current_amount`` only grows, except through corrective edits by the
    owner. The collaborator keeps the net of those edits in
    ``manual_adjustment`` so the contribution ledger can be reconciled.
    ``current_amount`` may transiently exceed ``target_amount`` through
    rounding; displays clamp it.
    """
    id: str
    owner_id: str
    title: str
    target_amount: Decimal = Field(gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: Optional[date] = None
    priority: GoalPriority = GoalPriority.MEDIUM
    urgency_score: int = Field(default=3, ge=1, le=5)
    interest_rate: Optional[Decimal] = Field(default=None, ge=0)  # Annual %
    start_date: Optional[date] = None
    monthly_target: Optional[Decimal] = Field(default=None, ge=0)
    category: GoalCategory = GoalCategory.OTHER
    status: GoalStatus = GoalStatus.ACTIVE
    completed_at: Optional[datetime] = None
    manual_adjustment: Decimal = Decimal("0")

    @property
    def remaining(self) -> Decimal:
        """Amount still to save, never negative."""
        return max(Decimal("0"), self.target_amount - self.current_amount)

    @property
    def progress_percentage(self) -> Decimal:
        """Progress toward target, clamped to 0-100."""
        pct = self.current_amount / self.target_amount * 100
        return min(Decimal("100"), max(Decimal("0"), pct)).quantize(Decimal("0.01"))

    @property
    def is_funded(self) -> bool:
        return self.current_amount >= self.target_amount


# =============================================================================
# ONE-TIME INCOME
# =============================================================================

class OneTimeIncome(BaseModel):
    """An irregular windfall (sale, gift, bonus, etc.).

    ``applied_to_goals`` is a one-way flag. Once it is set the record is
    immutable except for ``notes``.
    """
    id: str
    owner_id: str
    amount: Decimal = Field(gt=0)
    description: str = ""
    source: OneTimeIncomeSource = OneTimeIncomeSource.OTHER
    income_date: date
    applied_to_goals: bool = False
    goal_id: Optional[str] = None
    applied_amount: Optional[Decimal] = Field(default=None, ge=0)
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_goal_link(self) -> "OneTimeIncome":
        """goal_id is set if and only if the income has been applied."""
        if self.applied_to_goals and not self.goal_id:
            raise ValueError("goal_id is required once applied_to_goals is set")
        if not self.applied_to_goals and self.goal_id:
            raise ValueError("goal_id must be empty while the income is unapplied")
        return self

    @property
    def state(self) -> OneTimeIncomeState:
        if self.applied_to_goals:
            return OneTimeIncomeState.APPLIED
        return OneTimeIncomeState.UNAPPLIED

    @property
    def credited_amount(self) -> Decimal:
        """Amount actually credited to the goal (falls back to the full amount)."""
        if self.applied_amount is not None:
            return self.applied_amount
        return self.amount


# =============================================================================
# ACCOUNTS AND SETTINGS
# =============================================================================

class FinancialAccount(BaseModel):
    """A checking or savings account. Balance is negative when overdrawn."""
    id: str
    owner_id: str
    account_type: AccountType
    name: str = ""
    balance: Decimal = Decimal("0")
    institution: Optional[str] = None
    is_primary: bool = False


class UserSettings(BaseModel):
    """Per-user budget configuration."""
    owner_id: str
    daily_budget_target: Decimal = Field(default=Decimal("150"), ge=0)
    currency: str = "USD"
    bank_reserve_type: ReserveType = ReserveType.AMOUNT
    bank_reserve_amount: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are three-letter uppercase."""
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("currency must be a three-letter code")
        return v

    @model_validator(mode="after")
    def check_reserve_percentage(self) -> "UserSettings":
        if (
            self.bank_reserve_type == ReserveType.PERCENTAGE
            and self.bank_reserve_amount > 100
        ):
            raise ValueError("bank_reserve_amount must be <= 100 for a percentage reserve")
        return self


# =============================================================================
# PARSING
# =============================================================================

RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_record(model_cls: type[RecordT], data: dict[str, Any]) -> RecordT:
    """Validate a raw collaborator payload into a record.

    Pydantic failures are translated into the engine's ValidationError,
    naming the offending field and rule but never the offending value.

    Args:
        model_cls: Record class to build
        data: Raw field mapping

    Returns:
        The validated record

    Raises:
        ValidationError: If any field is missing, malformed or out of range
    """
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(
            f"Invalid {model_cls.__name__} record",
            field=field,
            constraint=first["msg"],
            details={"error_count": exc.error_count(), "record_type": model_cls.__name__},
        ) from exc


__all__ = [
    "IncomeSource",
    "SideProject",
    "RecurringExpense",
    "FinancialGoal",
    "OneTimeIncome",
    "FinancialAccount",
    "UserSettings",
    "parse_record",
]
