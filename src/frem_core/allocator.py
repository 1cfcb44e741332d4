"""Applying one-time incomes to goals.

A one-time income has two states, UNAPPLIED and APPLIED, and one legal
transition between them. Applying credits the goal (never past its target)
and reports any overflow as excess for the caller to redirect.

The transition is committed through the data collaborator's single
conditional write. Retries and concurrent requests for one income credit
a goal at most once; the losing call fails with AlreadyAppliedError.
Different incomes applied to one goal at the same time are each planned
again from the balance the other left behind, so no credit is lost.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from typing import Optional

import structlog

from . import periods
from .exceptions import AlreadyAppliedError, ConfigurationError, DependencyFailure, NotFoundError
from .models import (
    ApplyResult,
    CommitOutcome,
    FinancialGoal,
    GoalStatus,
    OneTimeIncome,
    OneTimeIncomeState,
    OneTimeIncomeSummary,
)
from .store import FinancialDataStore, call_store

logger = structlog.get_logger()

DEFAULT_MAX_COMMIT_ATTEMPTS = 5


def _as_timestamp(as_of: date) -> datetime:
    """Application timestamp: as_of itself if it is a datetime, else midnight UTC."""
    if isinstance(as_of, datetime):
        return as_of
    return datetime.combine(as_of, time.min, tzinfo=timezone.utc)


class OneTimeIncomeAllocator:
    """
    Apply one-time incomes to goals.

    ``plan_application`` is pure and can be used for previews. ``apply``
    loads both records through the store and commits the plan.
    """

    def __init__(
        self,
        store: Optional[FinancialDataStore] = None,
        max_commit_attempts: int = DEFAULT_MAX_COMMIT_ATTEMPTS,
    ):
        """
        Initialize allocator.

        Args:
            store: Data collaborator; required for ``apply`` only
            max_commit_attempts: How many times ``apply`` re-reads and
                re-plans when the goal balance changes under it
        """
        self.store = store
        self.max_commit_attempts = max_commit_attempts

    def plan_application(
        self,
        income: OneTimeIncome,
        goal: FinancialGoal,
        *,
        owner_id: str,
        as_of: date,
    ) -> ApplyResult:
        """
        Compute the updated goal and income without persisting anything.

        Args:
            income: Income to apply
            goal: Goal to credit
            owner_id: Caller; must own both records
            as_of: Application date (a datetime is kept as the exact timestamp)

        Returns:
            ApplyResult with the updated records and the excess amount

        Raises:
            NotFoundError: If either record is not owned by the caller
            AlreadyAppliedError: If the income was already applied
        """
        if income.owner_id != owner_id:
            raise NotFoundError("One-time income not found", entity="one_time_income", entity_id=income.id)
        if goal.owner_id != owner_id:
            raise NotFoundError("Goal not found", entity="goal", entity_id=goal.id)
        if income.state == OneTimeIncomeState.APPLIED:
            raise AlreadyAppliedError(
                "One-time income has already been applied",
                income_id=income.id,
                goal_id=goal.id,
            )

        current = goal.current_amount
        # A goal already over target keeps its balance; everything is excess
        new_current = max(current, min(goal.target_amount, current + income.amount))
        credited = new_current - current
        excess = current + income.amount - new_current

        applied_at = _as_timestamp(as_of)
        goal_update: dict = {"current_amount": new_current}
        goal_completed = new_current >= goal.target_amount and goal.status != GoalStatus.COMPLETED
        if goal_completed:
            goal_update["status"] = GoalStatus.COMPLETED
            goal_update["completed_at"] = applied_at

        updated_goal = goal.model_copy(update=goal_update)
        updated_income = income.model_copy(
            update={
                "applied_to_goals": True,
                "goal_id": goal.id,
                "applied_amount": credited,
                "applied_at": applied_at,
            }
        )
        return ApplyResult(
            goal=updated_goal,
            income=updated_income,
            credited_amount=credited,
            excess_amount=excess,
            goal_completed=goal_completed,
        )

    def apply(
        self,
        income_id: str,
        goal_id: str,
        *,
        owner_id: str,
        as_of: date,
    ) -> ApplyResult:
        """
        Apply a stored one-time income to a stored goal.

        Args:
            income_id: Income to apply
            goal_id: Goal to credit
            owner_id: Caller; must own both records
            as_of: Application date

        Returns:
            ApplyResult with the persisted records

        Raises:
            NotFoundError: If either record is missing or not owned by the caller
            AlreadyAppliedError: If the income was already applied, including
                by a concurrent call that committed first
            DependencyFailure: If the store cannot be read or written, or the
                goal kept changing for ``max_commit_attempts`` attempts
        """
        if self.store is None:
            raise ConfigurationError(
                "OneTimeIncomeAllocator.apply requires a data store",
                config_key="store",
                expected="FinancialDataStore",
            )
        store = self.store

        for attempt in range(1, self.max_commit_attempts + 1):
            income = call_store(
                store, "get_one_time_income", lambda: store.get_one_time_income(owner_id, income_id)
            )
            if income is None:
                raise NotFoundError("One-time income not found", entity="one_time_income", entity_id=income_id)
            goal = call_store(store, "get_goal", lambda: store.get_goal(owner_id, goal_id))
            if goal is None:
                raise NotFoundError("Goal not found", entity="goal", entity_id=goal_id)

            try:
                result = self.plan_application(income, goal, owner_id=owner_id, as_of=as_of)
            except AlreadyAppliedError:
                logger.warning("one_time_income_already_applied", income_id=income_id, goal_id=goal_id)
                raise

            outcome = call_store(
                store,
                "commit_application",
                lambda: store.commit_application(result.income, result.goal, goal.current_amount),
            )
            if outcome == CommitOutcome.COMMITTED:
                logger.info(
                    "one_time_income_applied",
                    income_id=income_id,
                    goal_id=goal_id,
                    goal_completed=result.goal_completed,
                    has_excess=result.excess_amount > 0,
                    attempt=attempt,
                )
                return result
            if outcome == CommitOutcome.INCOME_ALREADY_APPLIED:
                logger.warning(
                    "one_time_income_already_applied",
                    income_id=income_id,
                    goal_id=goal_id,
                    reason="conditional_write_rejected",
                )
                raise AlreadyAppliedError(
                    "One-time income has already been applied",
                    income_id=income_id,
                    goal_id=goal_id,
                )
            # The goal balance moved since it was read; plan again from the new one
            logger.info("goal_changed_during_apply", income_id=income_id, goal_id=goal_id, attempt=attempt)

        logger.error(
            "one_time_income_apply_conflict",
            income_id=income_id,
            goal_id=goal_id,
            attempts=self.max_commit_attempts,
        )
        raise DependencyFailure(
            "Goal kept changing while the one-time income was being applied",
            operation="commit_application",
            collaborator=type(store).__name__,
            details={"income_id": income_id, "goal_id": goal_id},
        )


def summarize_one_time_incomes(incomes: Iterable[OneTimeIncome]) -> OneTimeIncomeSummary:
    """
    Totals of applied and unapplied one-time incomes.

    Args:
        incomes: The user's one-time incomes

    Returns:
        OneTimeIncomeSummary listing the unapplied incomes, newest first
    """
    unapplied: list[OneTimeIncome] = []
    unapplied_total = applied_total = periods.ZERO
    applied_count = 0
    for income in incomes:
        if income.state == OneTimeIncomeState.APPLIED:
            applied_total += income.amount
            applied_count += 1
        else:
            unapplied.append(income)
            unapplied_total += income.amount

    unapplied.sort(key=lambda i: (i.income_date, i.id), reverse=True)
    return OneTimeIncomeSummary(
        unapplied=unapplied,
        unapplied_count=len(unapplied),
        unapplied_total=unapplied_total,
        applied_count=applied_count,
        applied_total=applied_total,
        total_received=unapplied_total + applied_total,
    )
