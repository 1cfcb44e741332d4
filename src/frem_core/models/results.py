"""Computed shapes returned by the engine.

Attributes are snake_case in Python and camelCase on the wire:
``result.model_dump(by_alias=True, mode="json")`` yields the external shape
consumed by HTTP handlers and report builders. Dates serialize as ISO
``YYYY-MM-DD``. All results are recomputed on every call and never stored.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import (
    ContributionSource,
    ExpenseCategory,
    IncomeKind,
    ProjectionStatus,
    TargetBasis,
)
from .records import FinancialGoal, OneTimeIncome


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


class ResultModel(BaseModel):
    """Base for computed shapes: camelCase aliases, snake_case population."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuditEntry(ResultModel):
    """One step of a calculation's audit trail.

    Entries name the step and the rule it applied. They never carry
    amounts, so an audit trail can be shown or logged freely.
    """
    timestamp: datetime = Field(default_factory=_utc_now)
    step: str
    source: str
    notes: Optional[str] = None


# =============================================================================
# INCOME
# =============================================================================

class MonthlyEstimate(ResultModel):
    """Low/mid/high monthly band. Equal for fixed pay."""
    low: Decimal = Field(ge=0)
    mid: Decimal = Field(ge=0)
    high: Decimal = Field(ge=0)


class IncomeSourceEstimate(ResultModel):
    id: str
    name: str
    kind: IncomeKind
    is_variable: bool
    monthly_estimate: MonthlyEstimate


class SideProjectEstimate(ResultModel):
    id: str
    name: str
    current_monthly: Decimal = Field(ge=0)
    projected_monthly: Decimal = Field(ge=0)


class ContractPayment(ResultModel):
    """A one-off contract payment landing in a given month."""
    source_id: str
    payment_type: str  # "initial" or "final"
    amount: Decimal = Field(ge=0)
    payment_date: date


class IncomeSummary(ResultModel):
    """Normalized monthly income across all included sources.

    Totals include side-project realized earnings. Projected side-project
    earnings and this month's contract payments are reported alongside but
    never folded into the totals.
    """
    sources: list[IncomeSourceEstimate] = Field(default_factory=list)
    side_projects: list[SideProjectEstimate] = Field(default_factory=list)
    total_monthly_low: Decimal = Decimal("0")
    total_monthly_mid: Decimal = Decimal("0")
    total_monthly_high: Decimal = Decimal("0")
    has_variable_income: bool = False
    side_project_income: Decimal = Decimal("0")
    side_project_projected: Decimal = Decimal("0")
    contract_payments_this_month: Decimal = Decimal("0")
    primary_source_id: Optional[str] = None
    source_count: int = 0
    audit_log: list[AuditEntry] = Field(default_factory=list)


# =============================================================================
# EXPENSES AND ACCOUNTS
# =============================================================================

class ExpenseSummary(ResultModel):
    total_monthly: Decimal = Decimal("0")
    by_category: dict[ExpenseCategory, Decimal] = Field(default_factory=dict)
    count: int = 0


class AccountTypeTotal(ResultModel):
    """Every account of one type, summed (not just the primary one)."""
    balance: Decimal = Decimal("0")
    count: int = 0
    primary_account_id: Optional[str] = None


class AccountsSummary(ResultModel):
    total_balance: Decimal = Decimal("0")
    checking: AccountTypeTotal = Field(default_factory=AccountTypeTotal)
    savings: AccountTypeTotal = Field(default_factory=AccountTypeTotal)
    account_count: int = 0


# =============================================================================
# DAILY TARGET
# =============================================================================

class DailyTarget(ResultModel):
    """The amount to act on today, with its component breakdown.

    A negative ``monthly_surplus`` is reported as-is with ``is_deficit`` set;
    the daily target then falls back to the user's configured budget.
    """
    daily_target: Decimal = Field(ge=0)
    monthly_surplus: Decimal
    savings_rate: Decimal = Field(ge=0, le=100)
    financial_cushion: Decimal = Field(ge=0)
    total_monthly_obligations: Decimal = Field(ge=0)
    is_deficit: bool
    target_basis: TargetBasis
    total_monthly_income: Decimal = Field(ge=0)
    months_of_cushion: Optional[Decimal] = None
    days_in_month: int = Field(ge=28, le=31)
    reserve_amount: Decimal = Field(ge=0)
    warnings: list[str] = Field(default_factory=list)
    audit_log: list[AuditEntry] = Field(default_factory=list)


class DerivedMetrics(ResultModel):
    total_monthly_income: Decimal = Field(ge=0)
    total_monthly_expenses: Decimal = Field(ge=0)
    monthly_surplus: Decimal
    savings_rate: Decimal = Field(ge=0, le=100)
    financial_cushion: Decimal = Field(ge=0)
    total_monthly_obligations: Decimal = Field(ge=0)


# =============================================================================
# GOALS
# =============================================================================

class GoalProjection(ResultModel):
    """Projected completion of one goal at its allocated contribution.

    ``months_remaining`` is ``math.inf`` for an unreachable goal (positive
    remaining, zero contribution). That is a normal result, not an error.
    """
    goal_id: str
    title: str
    remaining: Decimal = Field(ge=0)
    monthly_contribution: Decimal = Field(ge=0)
    required_monthly_contribution: Optional[Decimal] = None
    months_remaining: Union[int, float]
    projected_completion_date: Optional[date] = None
    progress_percentage: Decimal = Field(ge=0, le=100)
    status: ProjectionStatus
    days_ahead_or_behind: Optional[int] = None
    is_reachable: bool


class GoalProjections(ResultModel):
    projections: list[GoalProjection] = Field(default_factory=list)
    monthly_surplus: Decimal
    total_allocated: Decimal = Field(ge=0)
    unallocated_surplus: Decimal = Field(ge=0)
    as_of: date
    audit_log: list[AuditEntry] = Field(default_factory=list)

    def for_goal(self, goal_id: str) -> Optional[GoalProjection]:
        """Projection for one goal, or None if the goal was not projected."""
        for projection in self.projections:
            if projection.goal_id == goal_id:
                return projection
        return None


class GoalMonthProjection(ResultModel):
    goal_id: str
    allocation: Decimal = Field(ge=0)
    projected_balance: Decimal = Field(ge=0)
    completed: bool = False


class MonthlyProjection(ResultModel):
    """One month of the simulated timeline."""
    month: str  # YYYY-MM
    income: Decimal
    expenses: Decimal
    surplus: Decimal
    savings_rate: Decimal = Field(ge=0, le=100)
    allocated: Decimal = Field(ge=0)
    goals: list[GoalMonthProjection] = Field(default_factory=list)
    completed_goal_ids: list[str] = Field(default_factory=list)


# =============================================================================
# BREAKDOWN AND ALLOCATION
# =============================================================================

class ContributionEntry(ResultModel):
    source: ContributionSource
    amount: Decimal = Field(ge=0)
    contribution_date: Optional[date] = Field(default=None, alias="date")
    reference_id: Optional[str] = None


class GoalBreakdown(ResultModel):
    """Ledger view of where a goal's money came from.

    Contributions sum to ``current_amount - manual_adjustment`` within the
    reconciliation tolerance; any gap is reported in ``discrepancy``.
    """
    goal_id: str
    target_amount: Decimal
    current_amount: Decimal
    remaining: Decimal = Field(ge=0)
    contributions: list[ContributionEntry] = Field(default_factory=list)
    monthly_contribution: Decimal = Field(ge=0)
    months_remaining: Union[int, float]
    projected_completion: Optional[date] = None
    manual_adjustment: Decimal = Decimal("0")
    discrepancy: Decimal = Decimal("0")
    is_consistent: bool = True

    @property
    def contribution_total(self) -> Decimal:
        return sum((entry.amount for entry in self.contributions), Decimal("0"))


class ApplyResult(ResultModel):
    """Updated records after applying a one-time income to a goal."""
    goal: FinancialGoal
    income: OneTimeIncome
    credited_amount: Decimal = Field(ge=0)
    excess_amount: Decimal = Field(ge=0)
    goal_completed: bool = False


class OneTimeIncomeSummary(ResultModel):
    unapplied: list[OneTimeIncome] = Field(default_factory=list)
    unapplied_count: int = 0
    unapplied_total: Decimal = Decimal("0")
    applied_count: int = 0
    applied_total: Decimal = Decimal("0")
    total_received: Decimal = Decimal("0")


__all__ = [
    "ResultModel",
    "AuditEntry",
    "MonthlyEstimate",
    "IncomeSourceEstimate",
    "SideProjectEstimate",
    "ContractPayment",
    "IncomeSummary",
    "ExpenseSummary",
    "AccountTypeTotal",
    "AccountsSummary",
    "DailyTarget",
    "DerivedMetrics",
    "GoalProjection",
    "GoalProjections",
    "GoalMonthProjection",
    "MonthlyProjection",
    "ContributionEntry",
    "GoalBreakdown",
    "ApplyResult",
    "OneTimeIncomeSummary",
]
