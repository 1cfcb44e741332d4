"""Closed enumerations used by the FREM records and results.

Every enum is a ``str, Enum`` so records serialize to their plain tag and
unknown tags are rejected by pydantic at the data layer.
"""

from enum import Enum


# =============================================================================
# INCOME
# =============================================================================

class IncomeKind(str, Enum):
    """Kind of recurring income source."""
    SALARY = "salary"
    HOURLY = "hourly"
    COMMISSION = "commission"
    FREELANCE = "freelance"
    OTHER = "other"


class PayFrequency(str, Enum):
    """How often an income source pays."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"
    VARIABLE = "variable"


class IncomeStatus(str, Enum):
    """Lifecycle of an income source."""
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class SideProjectStatus(str, Enum):
    """Lifecycle of a side project."""
    PLANNING = "planning"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OneTimeIncomeSource(str, Enum):
    """Origin of a one-time income."""
    SALE = "sale"
    GIFT = "gift"
    BONUS = "bonus"
    REFUND = "refund"
    CASHBACK = "cashback"
    SETTLEMENT = "settlement"
    INHERITANCE = "inheritance"
    OTHER = "other"


class OneTimeIncomeState(str, Enum):
    """The two states of a one-time income. APPLIED is terminal."""
    UNAPPLIED = "unapplied"
    APPLIED = "applied"


class CommitOutcome(str, Enum):
    """Result of the collaborator's conditional write for an application."""
    COMMITTED = "committed"
    INCOME_ALREADY_APPLIED = "income_already_applied"
    GOAL_CHANGED = "goal_changed"


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseCadence(str, Enum):
    """How often a recurring expense is charged."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    ONE_TIME = "one_time"


class ExpenseCategory(str, Enum):
    """Budget categories for recurring expenses."""
    HOUSING = "housing"
    UTILITIES = "utilities"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    TRANSPORTATION = "transportation"
    FOOD = "food"
    SUBSCRIPTIONS = "subscriptions"
    INSURANCE = "insurance"
    OTHER = "other"


class ExpenseStatus(str, Enum):
    """Whether a recurring expense is currently charged."""
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


# =============================================================================
# GOALS
# =============================================================================

class GoalPriority(str, Enum):
    """Goal priority. Higher priority goals receive surplus first."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Sort weight, larger first."""
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class GoalCategory(str, Enum):
    """What a goal is saving for."""
    EMERGENCY = "emergency"
    VACATION = "vacation"
    CAR = "car"
    HOUSE = "house"
    DEBT = "debt"
    INVESTMENT = "investment"
    OTHER = "other"


class GoalStatus(str, Enum):
    """Lifecycle of a goal. Only ACTIVE goals receive surplus."""
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class ProjectionStatus(str, Enum):
    """Where a goal's projected completion sits relative to its deadline."""
    COMPLETED = "completed"
    ON_TRACK = "on_track"
    AHEAD = "ahead"
    BEHIND = "behind"
    AT_RISK = "at_risk"
    NO_DEADLINE = "no_deadline"
    UNREACHABLE = "unreachable"


class ContributionSource(str, Enum):
    """Where money in a goal came from."""
    RECURRING_SURPLUS = "recurring_surplus"
    ONE_TIME_INCOME = "one_time_income"
    INTEREST = "interest"


# =============================================================================
# ACCOUNTS AND SETTINGS
# =============================================================================

class AccountType(str, Enum):
    """Liquid account types."""
    CHECKING = "checking"
    SAVINGS = "savings"


class ReserveType(str, Enum):
    """How the bank reserve is expressed."""
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


class TargetBasis(str, Enum):
    """What the daily target was derived from."""
    SURPLUS = "surplus"
    FALLBACK = "fallback"


__all__ = [
    "IncomeKind",
    "PayFrequency",
    "IncomeStatus",
    "SideProjectStatus",
    "OneTimeIncomeSource",
    "OneTimeIncomeState",
    "ExpenseCadence",
    "ExpenseCategory",
    "ExpenseStatus",
    "GoalPriority",
    "GoalCategory",
    "GoalStatus",
    "ProjectionStatus",
    "ContributionSource",
    "AccountType",
    "ReserveType",
    "TargetBasis",
]
