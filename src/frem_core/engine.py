"""Per-request facade over the FREM calculators.

FinancialEngine loads one owner's records through the data collaborator
and runs the calculators over them. It holds no state between calls; every
method that depends on the date takes an explicit ``as_of``.

Records the collaborator returns for a different owner are dropped (and
logged by id) before any calculation. Collaborator failures surface as
DependencyFailure and no numbers are computed in their place.
"""

from collections.abc import Sequence
from datetime import date
from typing import Optional, TypeVar

import structlog

from . import periods
from .accounts import AccountSummarizer
from .allocator import OneTimeIncomeAllocator, summarize_one_time_incomes
from .breakdown import GoalBreakdownResolver
from .config import EngineSettings
from .daily_target import DailyTargetCalculator
from .exceptions import ValidationError
from .expenses import ExpenseAggregator
from .goals import GoalProjectionEngine
from .income import IncomeAggregator, contract_payments_for_month
from .models import (
    AccountsSummary,
    ApplyResult,
    DailyTarget,
    DerivedMetrics,
    ExpenseSummary,
    GoalBreakdown,
    GoalProjections,
    IncomeSummary,
    MonthlyProjection,
    OneTimeIncomeSummary,
    UserSettings,
)
from .store import FinancialDataStore, call_store

logger = structlog.get_logger()

RecordT = TypeVar("RecordT")


class FinancialEngine:
    """
    Compute a user's financial picture from the collaborator's records.

    Example:
        engine = FinancialEngine(store, settings=EngineSettings())
        target = engine.daily_target("user-1", as_of=date(2025, 3, 15))
        print(target.daily_target, target.is_deficit)
    """

    def __init__(self, store: FinancialDataStore, settings: Optional[EngineSettings] = None):
        """
        Initialize the engine.

        Args:
            store: Data collaborator supplying owner-scoped records
            settings: Engine configuration (loaded from the environment if omitted)
        """
        self.store = store
        self.settings = settings or EngineSettings()

        self.income_aggregator = IncomeAggregator()
        self.expense_aggregator = ExpenseAggregator()
        self.account_summarizer = AccountSummarizer()
        self.daily_target_calculator = DailyTargetCalculator(
            self.settings.default_daily_budget_target
        )
        self.projection_engine = GoalProjectionEngine(self.settings.max_projection_months)
        self.breakdown_resolver = GoalBreakdownResolver(self.settings.reconciliation_tolerance)
        self.allocator = OneTimeIncomeAllocator(store)

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load(self, operation: str, owner_id: str, *args) -> list:
        """Fetch an owner's records, dropping any that belong to someone else."""
        method = getattr(self.store, operation)
        records = call_store(self.store, operation, lambda: method(owner_id, *args))
        return self._owned_only(records, owner_id, operation)

    @staticmethod
    def _owned_only(
        records: Sequence[RecordT], owner_id: str, operation: str
    ) -> list[RecordT]:
        owned = [r for r in records if r.owner_id == owner_id]
        if len(owned) != len(records):
            foreign = [r.id for r in records if r.owner_id != owner_id]
            logger.warning(
                "foreign_records_dropped",
                operation=operation,
                owner_id=owner_id,
                record_ids=foreign,
            )
        return owned

    def _user_settings(self, owner_id: str) -> UserSettings:
        settings = call_store(
            self.store, "get_user_settings", lambda: self.store.get_user_settings(owner_id)
        )
        if settings is None or settings.owner_id != owner_id:
            return UserSettings(
                owner_id=owner_id,
                daily_budget_target=self.settings.default_daily_budget_target,
                currency=self.settings.default_currency,
            )
        return settings

    # =========================================================================
    # SUMMARIES
    # =========================================================================

    def income_summary(self, owner_id: str, *, as_of: date) -> IncomeSummary:
        """Normalized monthly income for ``owner_id``."""
        sources = self._load("get_income_sources", owner_id)
        projects = self._load("get_side_projects", owner_id)
        return self.income_aggregator.aggregate(sources, projects, as_of=as_of)

    def expense_summary(self, owner_id: str) -> ExpenseSummary:
        """Monthly recurring expenses for ``owner_id``."""
        return self.expense_aggregator.aggregate(self._load("get_recurring_expenses", owner_id))

    def accounts_summary(self, owner_id: str) -> AccountsSummary:
        """Account balances for ``owner_id``."""
        return self.account_summarizer.summarize(self._load("get_accounts", owner_id))

    def daily_target(self, owner_id: str, *, as_of: date) -> DailyTarget:
        """The amount to act on today, with its breakdown."""
        return self.daily_target_calculator.calculate(
            self.income_summary(owner_id, as_of=as_of),
            self.expense_summary(owner_id),
            self.accounts_summary(owner_id),
            self._user_settings(owner_id),
            as_of=as_of,
        )

    def derived_metrics(self, owner_id: str, *, as_of: date) -> DerivedMetrics:
        """Headline metrics recomputed from the current records."""
        return self.daily_target_calculator.derive_metrics(
            self.income_summary(owner_id, as_of=as_of),
            self.expense_summary(owner_id),
            self.accounts_summary(owner_id),
            self._user_settings(owner_id),
        )

    # =========================================================================
    # GOALS
    # =========================================================================

    def goal_projections(self, owner_id: str, *, as_of: date) -> GoalProjections:
        """Allocate this month's surplus and project every goal."""
        target = self.daily_target(owner_id, as_of=as_of)
        goals = self._load("get_goals", owner_id)
        return self.projection_engine.project(goals, target.monthly_surplus, as_of=as_of)

    def goal_breakdown(self, owner_id: str, goal_id: str, *, as_of: date) -> GoalBreakdown:
        """Contribution ledger for one goal.

        Raises:
            NotFoundError: If the goal is missing or not owned by the caller
        """
        goals = self._load("get_goals", owner_id)
        incomes = self._load("get_one_time_incomes", owner_id, False)
        projections = self.goal_projections(owner_id, as_of=as_of)
        return self.breakdown_resolver.resolve(
            goal_id, owner_id, goals, incomes, projections, as_of=as_of
        )

    def apply_one_time_income(
        self, owner_id: str, income_id: str, goal_id: str, *, as_of: date
    ) -> ApplyResult:
        """Apply a one-time income to a goal (the engine's only mutation)."""
        return self.allocator.apply(income_id, goal_id, owner_id=owner_id, as_of=as_of)

    def one_time_income_summary(self, owner_id: str) -> OneTimeIncomeSummary:
        """Applied and unapplied one-time income totals."""
        return summarize_one_time_incomes(self._load("get_one_time_incomes", owner_id, False))

    def monthly_projections(
        self, owner_id: str, *, as_of: date, months: Optional[int] = None
    ) -> list[MonthlyProjection]:
        """
        Month-by-month goal timeline starting at ``as_of``'s month.

        Args:
            owner_id: Caller
            as_of: First simulated month
            months: Timeline length (defaults to the configured length)

        Raises:
            ValidationError: If ``months`` is outside 1..max_timeline_months
        """
        months = self.settings.timeline_months if months is None else months
        if not 1 <= months <= self.settings.max_timeline_months:
            raise ValidationError(
                "Timeline length out of range",
                field="months",
                constraint=f"1 <= months <= {self.settings.max_timeline_months}",
            )

        sources = self._load("get_income_sources", owner_id)
        income = self.income_aggregator.aggregate(
            sources, self._load("get_side_projects", owner_id), as_of=as_of
        )
        expenses = self.expense_summary(owner_id)
        goals = self._load("get_goals", owner_id)

        contract: dict = {}
        for index in range(months):
            month_date = periods.add_months(as_of, index)
            payments = contract_payments_for_month(sources, month_date)
            if payments:
                contract[periods.month_key(month_date)] = sum(
                    (p.amount for p in payments), periods.ZERO
                )

        return self.projection_engine.timeline(
            goals,
            income.total_monthly_mid,
            expenses.total_monthly,
            as_of=as_of,
            months=months,
            contract_payments=contract,
        )
