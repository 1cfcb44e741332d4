"""Goal allocation and completion projections.

This module provides the GoalProjectionEngine, which:
1. Splits the monthly surplus across active goals (waterfall + pro-rata)
2. Projects each goal's completion at its allocated contribution
3. Simulates a month-by-month timeline of goal balances

Waterfall order is priority (high first), urgency (5 first), deadline
(soonest first, none last) and finally goal id, so equal goals always
allocate the same way.

Goals with interest compound monthly at interest_rate / 12, contributions
landing at the end of each month:

    balance(n+1) = balance(n) x (1 + r) + P
"""

import math
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional, Union

import structlog

from . import periods
from .daily_target import DailyTargetCalculator
from .models import (
    AuditEntry,
    FinancialGoal,
    GoalMonthProjection,
    GoalProjection,
    GoalProjections,
    GoalStatus,
    MonthlyProjection,
    ProjectionStatus,
)

logger = structlog.get_logger()

DEFAULT_MAX_PROJECTION_MONTHS = 1200

# Days of slack around a deadline still counted as on track
ON_TRACK_WINDOW_DAYS = 30

MonthCount = Union[int, float]


def waterfall_key(goal: FinancialGoal) -> tuple:
    """Sort key: priority desc, urgency desc, deadline asc (None last), id."""
    return (
        -goal.priority.rank,
        -goal.urgency_score,
        goal.deadline is None,
        goal.deadline or date.max,
        goal.id,
    )


def monthly_rate(annual_rate: Optional[Decimal]) -> Decimal:
    """Monthly compounding rate for an annual percentage."""
    if not annual_rate:
        return periods.ZERO
    return annual_rate / Decimal("1200")


def months_to_complete(
    current: Decimal,
    target: Decimal,
    contribution: Decimal,
    annual_rate: Optional[Decimal] = None,
) -> MonthCount:
    """
    Months of contributions needed to reach ``target``.

    Args:
        current: Current balance
        target: Target balance
        contribution: Monthly contribution
        annual_rate: Annual interest rate in percent, if the goal earns interest

    Returns:
        0 when already funded, ``math.inf`` when the contribution is zero,
        otherwise the smallest whole number of months
    """
    remaining = target - current
    if remaining <= 0:
        return 0
    if contribution <= 0:
        return math.inf

    r = monthly_rate(annual_rate)
    if r == 0:
        return math.ceil(remaining / contribution)

    # Future value of an annuity solved for n:
    #   current(1+r)^n + P((1+r)^n - 1)/r >= target
    rate = float(r)
    payment = float(contribution)
    ratio = (float(target) * rate + payment) / (float(current) * rate + payment)
    n = math.log(ratio) / math.log1p(rate)
    months = max(1, math.ceil(n - 1e-9))
    return months


def _months_until(as_of: date, deadline: date) -> int:
    return max(1, periods.months_between(as_of, deadline))


class GoalProjectionEngine:
    """
    Allocate surplus to goals and project their completion.

    All methods are pure: goals are never mutated, and every date is
    derived from the explicit ``as_of`` argument.
    """

    def __init__(self, max_projection_months: int = DEFAULT_MAX_PROJECTION_MONTHS):
        """
        Initialize engine.

        Args:
            max_projection_months: No completion date is given for goals
                further out than this
        """
        self.max_projection_months = max_projection_months

    @staticmethod
    def _log_step(
        audit: list[AuditEntry], step: str, source: str, notes: Optional[str] = None
    ) -> None:
        """Add an entry to the audit log of the call in progress."""
        audit.append(AuditEntry(step=step, source=source, notes=notes))
        logger.debug("calculation_step", step=step, source=source)

    # =========================================================================
    # ALLOCATION
    # =========================================================================

    @staticmethod
    def monthly_demand(goal: FinancialGoal, as_of: date) -> Decimal:
        """What a goal asks for in the sorted pass.

        Its monthly target if configured, else what it needs per month to
        meet its deadline, else nothing (it waits for the pro-rata pass).
        """
        if goal.monthly_target is not None:
            return goal.monthly_target
        if goal.deadline is not None:
            return goal.remaining / _months_until(as_of, goal.deadline)
        return periods.ZERO

    def allocate(
        self,
        goals: Iterable[FinancialGoal],
        monthly_surplus: Decimal,
        *,
        as_of: date,
    ) -> tuple[dict[str, Decimal], Decimal]:
        """
        Split one month's surplus across the eligible goals.

        Args:
            goals: Goals to allocate to (ineligible ones receive nothing)
            monthly_surplus: Surplus available this month
            as_of: Date the allocation is for

        Returns:
            (allocation per eligible goal id, unallocated surplus)
        """
        eligible = sorted(
            (g for g in goals if g.status == GoalStatus.ACTIVE and g.remaining > 0),
            key=waterfall_key,
        )
        left = periods.floor_cents(max(periods.ZERO, monthly_surplus))
        allocations: dict[str, Decimal] = {}

        # Sorted pass
        for goal in eligible:
            demand = self.monthly_demand(goal, as_of)
            share = periods.floor_cents(min(demand, left, goal.remaining))
            allocations[goal.id] = share
            left -= share

        # Pro-rata pass over what is still unfunded
        if left > 0:
            unfunded = {
                g.id: g.remaining - allocations[g.id]
                for g in eligible
                if g.remaining - allocations[g.id] > 0
            }
            total_unfunded = sum(unfunded.values(), periods.ZERO)
            if total_unfunded > 0:
                pool = left
                for goal_id, need in unfunded.items():
                    if pool >= total_unfunded:
                        extra = need
                    else:
                        extra = min(need, periods.floor_cents(pool * need / total_unfunded))
                    allocations[goal_id] += extra
                    left -= extra

        return allocations, left

    # =========================================================================
    # PROJECTION
    # =========================================================================

    def project_goal(
        self,
        goal: FinancialGoal,
        contribution: Decimal,
        *,
        as_of: date,
    ) -> GoalProjection:
        """Project one goal at a given monthly contribution."""
        months = months_to_complete(
            goal.current_amount, goal.target_amount, contribution, goal.interest_rate
        )
        reachable = months != math.inf

        completion: Optional[date] = None
        if reachable and months <= self.max_projection_months:
            completion = periods.add_months(as_of, int(months))

        required = None
        if goal.deadline is not None and goal.remaining > 0:
            required = periods.to_cents(goal.remaining / _months_until(as_of, goal.deadline))
        elif goal.monthly_target is not None:
            required = goal.monthly_target

        days_diff = None
        if goal.deadline is not None and completion is not None:
            days_diff = (goal.deadline - completion).days

        return GoalProjection(
            goal_id=goal.id,
            title=goal.title,
            remaining=goal.remaining,
            monthly_contribution=contribution,
            required_monthly_contribution=required,
            months_remaining=months,
            projected_completion_date=completion,
            progress_percentage=goal.progress_percentage,
            status=self._status(goal, months, completion, days_diff),
            days_ahead_or_behind=days_diff,
            is_reachable=reachable,
        )

    @staticmethod
    def _status(
        goal: FinancialGoal,
        months: MonthCount,
        completion: Optional[date],
        days_diff: Optional[int],
    ) -> ProjectionStatus:
        if goal.remaining <= 0 or goal.status == GoalStatus.COMPLETED:
            return ProjectionStatus.COMPLETED
        if months == math.inf:
            return ProjectionStatus.UNREACHABLE
        if goal.deadline is None:
            return ProjectionStatus.NO_DEADLINE
        if completion is None or days_diff is None:
            return ProjectionStatus.AT_RISK
        if days_diff >= ON_TRACK_WINDOW_DAYS:
            return ProjectionStatus.AHEAD
        if days_diff >= 0:
            return ProjectionStatus.ON_TRACK
        if days_diff >= -ON_TRACK_WINDOW_DAYS:
            return ProjectionStatus.BEHIND
        return ProjectionStatus.AT_RISK

    def project(
        self,
        goals: Sequence[FinancialGoal],
        monthly_surplus: Decimal,
        *,
        as_of: date,
    ) -> GoalProjections:
        """
        Allocate the surplus and project every goal.

        Args:
            goals: The user's goals
            monthly_surplus: Monthly surplus from the daily target calculation
            as_of: Date the projections are computed for

        Returns:
            GoalProjections in waterfall order, with allocation totals
        """
        audit: list[AuditEntry] = []
        allocations, unallocated = self.allocate(goals, monthly_surplus, as_of=as_of)
        self._log_step(
            audit,
            step="allocate_surplus",
            source="waterfall by priority, urgency, deadline, id; leftover pro-rata by remaining",
            notes=f"{len(allocations)} eligible of {len(goals)} goals",
        )

        projections = [
            self.project_goal(goal, allocations.get(goal.id, periods.ZERO), as_of=as_of)
            for goal in sorted(goals, key=waterfall_key)
        ]
        unreachable = [p.goal_id for p in projections if not p.is_reachable]
        self._log_step(
            audit,
            step="project_completion",
            source="annuity inversion with monthly compounding",
            notes=f"{len(unreachable)} unreachable" if unreachable else None,
        )

        result = GoalProjections(
            projections=projections,
            monthly_surplus=monthly_surplus,
            total_allocated=sum(allocations.values(), periods.ZERO),
            unallocated_surplus=unallocated,
            as_of=as_of,
            audit_log=audit,
        )
        logger.info(
            "goals_projected",
            goal_count=len(projections),
            funded_count=sum(1 for a in allocations.values() if a > 0),
            unreachable_goal_ids=unreachable,
        )
        return result

    # =========================================================================
    # TIMELINE
    # =========================================================================

    def timeline(
        self,
        goals: Sequence[FinancialGoal],
        monthly_income: Decimal,
        monthly_expenses: Decimal,
        *,
        as_of: date,
        months: int,
        contract_payments: Optional[dict[str, Decimal]] = None,
    ) -> list[MonthlyProjection]:
        """
        Simulate goal balances month by month.

        Each month re-runs the allocation on the simulated balances, grows
        interest-bearing goals, and drops goals once they reach their target.
        Goals with a start date join the simulation from that month.

        Args:
            goals: The user's goals
            monthly_income: Steady monthly income (mid estimate)
            monthly_expenses: Monthly recurring expenses
            as_of: First simulated month
            months: Number of months to simulate
            contract_payments: Extra one-off income keyed by month (YYYY-MM)

        Returns:
            One MonthlyProjection per simulated month
        """
        contract_payments = contract_payments or {}
        balances = {g.id: g.current_amount for g in goals if g.status == GoalStatus.ACTIVE}
        active = {g.id: g for g in goals if g.status == GoalStatus.ACTIVE}
        done: set[str] = {gid for gid, g in active.items() if g.remaining <= 0}
        rows: list[MonthlyProjection] = []

        for index in range(months):
            month_date = periods.add_months(as_of, index)
            key = periods.month_key(month_date)
            income = monthly_income + contract_payments.get(key, periods.ZERO)
            surplus = income - monthly_expenses

            started = [
                g.model_copy(update={"current_amount": balances[g.id]})
                for g in active.values()
                if g.id not in done
                and (g.start_date is None or periods.months_between(g.start_date, month_date) >= 0)
            ]
            allocations, _ = self.allocate(started, surplus, as_of=month_date)

            goal_rows: list[GoalMonthProjection] = []
            completed_now: list[str] = []
            for goal in started:
                allocation = allocations.get(goal.id, periods.ZERO)
                grown = balances[goal.id] * (1 + monthly_rate(goal.interest_rate))
                balances[goal.id] = periods.to_cents(grown + allocation)
                completed = balances[goal.id] >= goal.target_amount
                if completed:
                    done.add(goal.id)
                    completed_now.append(goal.id)
                goal_rows.append(
                    GoalMonthProjection(
                        goal_id=goal.id,
                        allocation=allocation,
                        projected_balance=balances[goal.id],
                        completed=completed,
                    )
                )

            allocated = sum(allocations.values(), periods.ZERO)
            rows.append(
                MonthlyProjection(
                    month=key,
                    income=income,
                    expenses=monthly_expenses,
                    surplus=surplus,
                    savings_rate=DailyTargetCalculator.savings_rate(surplus, income),
                    allocated=allocated,
                    goals=goal_rows,
                    completed_goal_ids=completed_now,
                )
            )

        logger.info(
            "timeline_projected",
            month_count=months,
            goal_count=len(active),
            completed_count=len(done),
        )
        return rows
