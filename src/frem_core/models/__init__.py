"""Data models for frem-core.

This package provides:
- Closed enumerations for every tagged field (enums.py)
- Input records supplied by the data collaborator (records.py)
- Computed result shapes returned to callers (results.py)
"""

from frem_core.models.enums import (
    AccountType,
    CommitOutcome,
    ContributionSource,
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
    ProjectionStatus,
    ReserveType,
    SideProjectStatus,
    TargetBasis,
)
from frem_core.models.records import (
    FinancialAccount,
    FinancialGoal,
    IncomeSource,
    OneTimeIncome,
    RecurringExpense,
    SideProject,
    UserSettings,
    parse_record,
)
from frem_core.models.results import (
    AccountsSummary,
    AccountTypeTotal,
    ApplyResult,
    AuditEntry,
    ContractPayment,
    ContributionEntry,
    DailyTarget,
    DerivedMetrics,
    ExpenseSummary,
    GoalBreakdown,
    GoalMonthProjection,
    GoalProjection,
    GoalProjections,
    IncomeSourceEstimate,
    IncomeSummary,
    MonthlyEstimate,
    MonthlyProjection,
    OneTimeIncomeSummary,
    SideProjectEstimate,
)

__all__ = [
    # Enumerations
    "AccountType",
    "CommitOutcome",
    "ContributionSource",
    "ExpenseCadence",
    "ExpenseCategory",
    "ExpenseStatus",
    "GoalCategory",
    "GoalPriority",
    "GoalStatus",
    "IncomeKind",
    "IncomeStatus",
    "OneTimeIncomeSource",
    "OneTimeIncomeState",
    "PayFrequency",
    "ProjectionStatus",
    "ReserveType",
    "SideProjectStatus",
    "TargetBasis",
    # Records
    "FinancialAccount",
    "FinancialGoal",
    "IncomeSource",
    "OneTimeIncome",
    "RecurringExpense",
    "SideProject",
    "UserSettings",
    "parse_record",
    # Results
    "AccountsSummary",
    "AccountTypeTotal",
    "ApplyResult",
    "AuditEntry",
    "ContractPayment",
    "ContributionEntry",
    "DailyTarget",
    "DerivedMetrics",
    "ExpenseSummary",
    "GoalBreakdown",
    "GoalMonthProjection",
    "GoalProjection",
    "GoalProjections",
    "IncomeSourceEstimate",
    "IncomeSummary",
    "MonthlyEstimate",
    "MonthlyProjection",
    "OneTimeIncomeSummary",
    "SideProjectEstimate",
]
