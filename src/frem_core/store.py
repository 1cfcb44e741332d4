"""Data collaborator interface for the FREM engine.

The engine owns no persistence. It reads records through an object
satisfying FinancialDataStore and asks it to persist exactly one kind of
mutation: applying a one-time income to a goal. The protocol uses Python's
structural subtyping via typing.Protocol, so any class with matching
methods is compatible without inheriting from it.

Design Goals:
- Records are passed by value; the engine never mutates what it is given
- Every read is scoped to one owner
- ``commit_application`` is a single conditional write: it succeeds only
  while the stored income is still unapplied and the stored goal still
  holds the balance the plan was computed from. Two applies of one income
  never both credit the goal, and two incomes applied to one goal never
  overwrite each other's credit

Example Usage:
    ```python
    from frem_core.store import FinancialDataStore, InMemoryFinancialDataStore

    store = InMemoryFinancialDataStore()
    store.add(goal, income)
    assert isinstance(store, FinancialDataStore)
    ```
"""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, TypeVar, runtime_checkable

import structlog
from pydantic import BaseModel

from .exceptions import DependencyFailure, FremError
from .models import (
    CommitOutcome,
    FinancialAccount,
    FinancialGoal,
    IncomeSource,
    OneTimeIncome,
    RecurringExpense,
    SideProject,
    UserSettings,
)

logger = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# PROTOCOL
# =============================================================================

@runtime_checkable
class FinancialDataStore(Protocol):
    """Read accessors and the single conditional write the engine needs.

    Implementations may raise any exception when the backing store is
    unavailable; the engine surfaces those as DependencyFailure.
    """

    def get_income_sources(self, owner_id: str) -> list[IncomeSource]:
        """All income sources owned by ``owner_id``."""
        ...

    def get_side_projects(self, owner_id: str) -> list[SideProject]:
        """All side projects owned by ``owner_id``."""
        ...

    def get_recurring_expenses(self, owner_id: str) -> list[RecurringExpense]:
        """All recurring expenses owned by ``owner_id``."""
        ...

    def get_goals(self, owner_id: str) -> list[FinancialGoal]:
        """All goals owned by ``owner_id``."""
        ...

    def get_accounts(self, owner_id: str) -> list[FinancialAccount]:
        """All accounts owned by ``owner_id``."""
        ...

    def get_one_time_incomes(
        self, owner_id: str, unapplied_only: bool = False
    ) -> list[OneTimeIncome]:
        """One-time incomes owned by ``owner_id``, optionally only unapplied ones."""
        ...

    def get_user_settings(self, owner_id: str) -> Optional[UserSettings]:
        """The owner's settings, or None if never saved."""
        ...

    def get_goal(self, owner_id: str, goal_id: str) -> Optional[FinancialGoal]:
        """One goal, or None if missing or not owned by ``owner_id``."""
        ...

    def get_one_time_income(self, owner_id: str, income_id: str) -> Optional[OneTimeIncome]:
        """One one-time income, or None if missing or not owned by ``owner_id``."""
        ...

    def commit_application(
        self,
        income: OneTimeIncome,
        goal: FinancialGoal,
        expected_current_amount: Decimal,
    ) -> CommitOutcome:
        """Persist an applied income and its credited goal together.

        Args:
            income: The income, marked applied
            goal: The goal with its new balance
            expected_current_amount: Goal balance the new one was computed from

        Returns:
            COMMITTED if both records were written. Otherwise nothing is
            written: INCOME_ALREADY_APPLIED if the stored income is missing
            or applied, GOAL_CHANGED if the stored goal is missing or its
            balance differs from ``expected_current_amount``
        """
        ...


def call_store(store: Any, operation: str, call: Callable[[], T]) -> T:
    """Run a collaborator call, surfacing its failures as DependencyFailure.

    Engine errors pass through unchanged. Nothing is retried and no fallback
    value is substituted.

    Args:
        store: The collaborator (named in the error details)
        operation: Collaborator method being called
        call: Zero-argument callable performing the call

    Returns:
        Whatever the collaborator returned
    """
    try:
        return call()
    except FremError:
        raise
    except Exception as exc:
        collaborator = type(store).__name__
        logger.error(
            "collaborator_failed",
            operation=operation,
            collaborator=collaborator,
            error_type=type(exc).__name__,
        )
        raise DependencyFailure(
            f"Data collaborator failed during {operation}",
            operation=operation,
            collaborator=collaborator,
        ) from exc


# =============================================================================
# IN-MEMORY IMPLEMENTATION
# =============================================================================

class InMemoryFinancialDataStore:
    """Reference collaborator holding records in process memory.

    Used by tests and demos. ``commit_application`` performs its
    compare-and-set under one lock; a database-backed store does the same
    with a conditional update keyed on ``applied_to_goals = false`` and the
    goal's ``current_amount``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._income_sources: dict[str, IncomeSource] = {}
        self._side_projects: dict[str, SideProject] = {}
        self._expenses: dict[str, RecurringExpense] = {}
        self._goals: dict[str, FinancialGoal] = {}
        self._accounts: dict[str, FinancialAccount] = {}
        self._one_time_incomes: dict[str, OneTimeIncome] = {}
        self._settings: dict[str, UserSettings] = {}

    def add(self, *records: BaseModel) -> None:
        """Store records, replacing any with the same id."""
        tables: dict[type, dict[str, Any]] = {
            IncomeSource: self._income_sources,
            SideProject: self._side_projects,
            RecurringExpense: self._expenses,
            FinancialGoal: self._goals,
            FinancialAccount: self._accounts,
            OneTimeIncome: self._one_time_incomes,
        }
        with self._lock:
            for record in records:
                if isinstance(record, UserSettings):
                    self._settings[record.owner_id] = record
                    continue
                table = tables.get(type(record))
                if table is None:
                    raise TypeError(f"Unsupported record type: {type(record).__name__}")
                table[record.id] = record

    @staticmethod
    def _owned(table: dict[str, T], owner_id: str) -> list[T]:
        return [r for r in table.values() if r.owner_id == owner_id]

    def get_income_sources(self, owner_id: str) -> list[IncomeSource]:
        return self._owned(self._income_sources, owner_id)

    def get_side_projects(self, owner_id: str) -> list[SideProject]:
        return self._owned(self._side_projects, owner_id)

    def get_recurring_expenses(self, owner_id: str) -> list[RecurringExpense]:
        return self._owned(self._expenses, owner_id)

    def get_goals(self, owner_id: str) -> list[FinancialGoal]:
        return self._owned(self._goals, owner_id)

    def get_accounts(self, owner_id: str) -> list[FinancialAccount]:
        return self._owned(self._accounts, owner_id)

    def get_one_time_incomes(
        self, owner_id: str, unapplied_only: bool = False
    ) -> list[OneTimeIncome]:
        incomes = self._owned(self._one_time_incomes, owner_id)
        if unapplied_only:
            incomes = [i for i in incomes if not i.applied_to_goals]
        return incomes

    def get_user_settings(self, owner_id: str) -> Optional[UserSettings]:
        return self._settings.get(owner_id)

    def get_goal(self, owner_id: str, goal_id: str) -> Optional[FinancialGoal]:
        goal = self._goals.get(goal_id)
        if goal is None or goal.owner_id != owner_id:
            return None
        return goal

    def get_one_time_income(self, owner_id: str, income_id: str) -> Optional[OneTimeIncome]:
        income = self._one_time_incomes.get(income_id)
        if income is None or income.owner_id != owner_id:
            return None
        return income

    def commit_application(
        self,
        income: OneTimeIncome,
        goal: FinancialGoal,
        expected_current_amount: Decimal,
    ) -> CommitOutcome:
        with self._lock:
            stored_income = self._one_time_incomes.get(income.id)
            if stored_income is None or stored_income.applied_to_goals:
                return CommitOutcome.INCOME_ALREADY_APPLIED
            stored_goal = self._goals.get(goal.id)
            if stored_goal is None or stored_goal.current_amount != expected_current_amount:
                return CommitOutcome.GOAL_CHANGED
            self._one_time_incomes[income.id] = income
            self._goals[goal.id] = goal
            return CommitOutcome.COMMITTED
