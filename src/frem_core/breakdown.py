"""Per-goal contribution ledger.

This module provides the GoalBreakdownResolver, which explains a goal's
current balance as a ledger of recurring surplus, applied one-time incomes
and accrued interest.

Recurring surplus is what the goal's monthly allocation accounts for since
its start date, with interest accrued on it. One-time entries are the
credited part of every income applied to the goal. A balance larger than
those entries explain is not attributed anywhere.

The ledger must reconcile:

    sum(contributions) == current_amount - manual_adjustment

Any gap beyond the tolerance is a data-consistency problem. It is reported
on the result and logged by goal id, never absorbed into another entry.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

import structlog

from . import periods
from .exceptions import NotFoundError
from .goals import months_to_complete, monthly_rate
from .models import (
    ContributionEntry,
    ContributionSource,
    FinancialGoal,
    GoalBreakdown,
    GoalProjections,
    OneTimeIncome,
)

logger = structlog.get_logger()

DEFAULT_RECONCILIATION_TOLERANCE = Decimal("0.01")


class GoalBreakdownResolver:
    """Resolve the contribution ledger for one goal."""

    def __init__(self, tolerance: Decimal = DEFAULT_RECONCILIATION_TOLERANCE):
        self.tolerance = tolerance

    def resolve(
        self,
        goal_id: str,
        owner_id: str,
        goals: Iterable[FinancialGoal],
        incomes: Iterable[OneTimeIncome],
        projections: GoalProjections,
        *,
        as_of: date,
    ) -> GoalBreakdown:
        """
        Build the ledger for ``goal_id``.

        Args:
            goal_id: Goal to explain
            owner_id: Caller; must own the goal
            goals: The caller's goals
            incomes: The caller's one-time incomes
            projections: Current projections (for the monthly contribution)
            as_of: Date the ledger is computed for

        Returns:
            GoalBreakdown with contributions and reconciliation status

        Raises:
            NotFoundError: If the goal is missing or owned by someone else
        """
        goal = next((g for g in goals if g.id == goal_id and g.owner_id == owner_id), None)
        if goal is None:
            raise NotFoundError("Goal not found", entity="goal", entity_id=goal_id)

        contributions: list[ContributionEntry] = []
        one_time_total = periods.ZERO
        for income in incomes:
            if (
                income.applied_to_goals
                and income.goal_id == goal.id
                and income.owner_id == owner_id
            ):
                amount = income.credited_amount
                one_time_total += amount
                contributions.append(
                    ContributionEntry(
                        source=ContributionSource.ONE_TIME_INCOME,
                        amount=amount,
                        contribution_date=income.income_date,
                        reference_id=income.id,
                    )
                )

        explained = goal.current_amount - goal.manual_adjustment
        base = explained - one_time_total

        projection = projections.for_goal(goal.id)
        monthly = projection.monthly_contribution if projection is not None else periods.ZERO

        if base >= 0:
            recurring, interest = self._recurring_and_interest(goal, monthly, base, as_of)
        else:
            # One-time credits alone exceed the balance; nothing left to attribute
            recurring = interest = periods.ZERO
        discrepancy = base - recurring - interest

        contributions.insert(
            0,
            ContributionEntry(source=ContributionSource.RECURRING_SURPLUS, amount=recurring),
        )
        if interest > 0:
            contributions.append(
                ContributionEntry(source=ContributionSource.INTEREST, amount=interest)
            )

        is_consistent = abs(discrepancy) <= self.tolerance
        if not is_consistent:
            logger.warning("breakdown_discrepancy", goal_id=goal.id, owner_id=owner_id)

        if projection is not None:
            months = projection.months_remaining
            completion = projection.projected_completion_date
        else:
            months = months_to_complete(
                goal.current_amount, goal.target_amount, monthly, goal.interest_rate
            )
            completion = as_of if months == 0 else None

        logger.info(
            "goal_breakdown_resolved",
            goal_id=goal.id,
            contribution_count=len(contributions),
            is_consistent=is_consistent,
        )
        return GoalBreakdown(
            goal_id=goal.id,
            target_amount=goal.target_amount,
            current_amount=goal.current_amount,
            remaining=goal.remaining,
            contributions=contributions,
            monthly_contribution=monthly,
            months_remaining=months,
            projected_completion=completion,
            manual_adjustment=goal.manual_adjustment,
            discrepancy=discrepancy,
            is_consistent=is_consistent,
        )

    @classmethod
    def _recurring_and_interest(
        cls, goal: FinancialGoal, allocated: Decimal, base: Decimal, as_of: date
    ) -> tuple[Decimal, Decimal]:
        """
        Recurring surplus and accrued interest the allocation accounts for.

        The goal is assumed to have received the larger of its current
        allocation and its ``monthly_target`` at the end of every month
        since ``start_date``, compounding monthly. Without a start date no
        recurring history can be modelled. When the model covers more than
        ``base``, only ``base`` is attributed, split by the same model; any
        part of ``base`` the model does not cover is left unattributed.
        """
        contribution = max(allocated, goal.monthly_target or periods.ZERO)
        if goal.start_date is None or contribution <= 0:
            return periods.ZERO, periods.ZERO
        elapsed = periods.months_between(goal.start_date, as_of)
        if elapsed < 1:
            return periods.ZERO, periods.ZERO

        principal = contribution * elapsed
        r = monthly_rate(goal.interest_rate)
        accrued = principal if r == 0 else contribution * ((1 + r) ** elapsed - 1) / r
        if accrued >= base:
            return cls._split_interest(base, r, elapsed)
        principal = periods.to_cents(principal)
        return principal, periods.to_cents(accrued) - principal

    @staticmethod
    def _split_interest(base: Decimal, r: Decimal, elapsed: int) -> tuple[Decimal, Decimal]:
        """
        Split a balance built from level monthly payments into principal and interest.

        With ``elapsed`` months at monthly rate r, the level payment that
        grows to ``base`` is P = base x r / ((1+r)^m - 1). Principal is
        P x m; the rest is interest.
        """
        if r == 0:
            return base, periods.ZERO
        growth = (1 + r) ** elapsed - 1
        payment = base * r / growth
        principal = min(base, periods.to_cents(payment * elapsed))
        return principal, base - principal
