"""Tests for the per-goal contribution ledger."""

import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from frem_core import GoalBreakdownResolver, GoalProjectionEngine, NotFoundError
from frem_core.models import (
    ContributionSource,
    FinancialGoal,
    GoalProjections,
    OneTimeIncome,
)

OWNER = "user-1"
OTHER_OWNER = "user-2"
AS_OF = date(2025, 3, 15)


def goal(current: str, target: str = "10000", **kwargs) -> FinancialGoal:
    fields = {
        "id": "goal-1",
        "owner_id": OWNER,
        "title": "Emergency fund",
        "target_amount": Decimal(target),
        "current_amount": Decimal(current),
    }
    fields.update(kwargs)
    return FinancialGoal(**fields)


def applied_income(income_id: str, amount: str, credited: Optional[str] = None, **kwargs) -> OneTimeIncome:
    fields = {
        "id": income_id,
        "owner_id": OWNER,
        "amount": Decimal(amount),
        "income_date": date(2025, 2, 1),
        "applied_to_goals": True,
        "goal_id": "goal-1",
        "applied_amount": Decimal(credited) if credited is not None else None,
        "applied_at": datetime(2025, 2, 2, tzinfo=timezone.utc),
    }
    fields.update(kwargs)
    return OneTimeIncome(**fields)


def no_projections() -> GoalProjections:
    return GoalProjections(
        monthly_surplus=Decimal("0"),
        total_allocated=Decimal("0"),
        unallocated_surplus=Decimal("0"),
        as_of=AS_OF,
    )


@pytest.fixture
def resolver() -> GoalBreakdownResolver:
    return GoalBreakdownResolver()


class TestGoalBreakdown:
    """Test suite for GoalBreakdownResolver."""

    def test_ledger_reconciles(self, resolver):
        """Recurring surplus plus one-time incomes equals the balance."""
        goals = [goal("1500", start_date=date(2024, 11, 15), monthly_target=Decimal("250"))]
        incomes = [applied_income("oti-1", "500")]

        result = resolver.resolve("goal-1", OWNER, goals, incomes, no_projections(), as_of=AS_OF)

        assert abs(result.contribution_total - result.current_amount) <= Decimal("0.01")
        assert result.is_consistent is True
        assert result.discrepancy == Decimal("0")
        sources = [c.source for c in result.contributions]
        assert sources == [ContributionSource.RECURRING_SURPLUS, ContributionSource.ONE_TIME_INCOME]
        assert result.contributions[0].amount == Decimal("1000")
        assert result.contributions[1].reference_id == "oti-1"
        assert result.contributions[1].contribution_date == date(2025, 2, 1)

    def test_credited_amount_not_face_amount(self, resolver):
        """A capped application contributes what was credited, not the income's amount."""
        goals = [goal("1000", target="1000", start_date=date(2025, 1, 15), monthly_target=Decimal("350"))]
        incomes = [applied_income("oti-1", "500", credited="300")]

        result = resolver.resolve("goal-1", OWNER, goals, incomes, no_projections(), as_of=AS_OF)

        assert result.contributions[1].amount == Decimal("300")
        assert result.contributions[0].amount == Decimal("700")
        assert result.remaining == Decimal("0")

    def test_ignores_other_goals_and_unapplied_incomes(self, resolver):
        """Only incomes applied to this goal appear in its ledger."""
        goals = [goal("800", start_date=date(2025, 1, 15), monthly_target=Decimal("400"))]
        incomes = [
            applied_income("oti-other-goal", "200", goal_id="goal-2"),
            OneTimeIncome(
                id="oti-pending",
                owner_id=OWNER,
                amount=Decimal("300"),
                income_date=date(2025, 3, 1),
            ),
        ]

        result = resolver.resolve("goal-1", OWNER, goals, incomes, no_projections(), as_of=AS_OF)

        assert len(result.contributions) == 1
        assert result.contributions[0].amount == Decimal("800")

    def test_manual_adjustment_is_reported_separately(self, resolver):
        """Owner corrections are excluded from the contribution ledger."""
        goals = [
            goal(
                "1100",
                manual_adjustment=Decimal("100"),
                start_date=date(2024, 11, 15),
                monthly_target=Decimal("250"),
            )
        ]

        result = resolver.resolve("goal-1", OWNER, goals, [], no_projections(), as_of=AS_OF)

        assert result.contribution_total == Decimal("1000")
        assert result.contribution_total + result.manual_adjustment == result.current_amount
        assert result.is_consistent is True

    def test_discrepancy_when_one_time_exceeds_balance(self, resolver):
        """One-time credits larger than the balance are reported, not hidden."""
        goals = [goal("300")]
        incomes = [applied_income("oti-1", "500")]

        result = resolver.resolve("goal-1", OWNER, goals, incomes, no_projections(), as_of=AS_OF)

        assert result.is_consistent is False
        assert result.discrepancy == Decimal("-200")
        assert result.contributions[0].amount == Decimal("0")

    def test_interest_split(self, resolver):
        """An interest-bearing goal separates principal from interest."""
        # $100/month for 12 months at 12% grows to 1268.25
        goals = [
            goal(
                "1268.25",
                interest_rate=Decimal("12"),
                start_date=date(2024, 3, 15),
                monthly_target=Decimal("100"),
            )
        ]

        result = resolver.resolve("goal-1", OWNER, goals, [], no_projections(), as_of=AS_OF)

        by_source = {c.source: c.amount for c in result.contributions}
        assert by_source[ContributionSource.RECURRING_SURPLUS] == Decimal("1200.00")
        assert by_source[ContributionSource.INTEREST] == Decimal("68.25")
        assert result.contribution_total == Decimal("1268.25")

    def test_without_start_date_nothing_is_recurring(self, resolver):
        """With no start date the unexplained balance is reported, not attributed."""
        goals = [goal("500", interest_rate=Decimal("5"), monthly_target=Decimal("100"))]

        result = resolver.resolve("goal-1", OWNER, goals, [], no_projections(), as_of=AS_OF)

        assert [c.source for c in result.contributions] == [ContributionSource.RECURRING_SURPLUS]
        assert result.contributions[0].amount == Decimal("0")
        assert result.discrepancy == Decimal("500")
        assert result.is_consistent is False

    def test_recurring_comes_from_allocation(self, resolver):
        """Recurring surplus is the projected allocation times the months since start."""
        goals = [goal("600", start_date=date(2024, 12, 15))]
        projections = GoalProjectionEngine().project(goals, Decimal("200"), as_of=AS_OF)

        result = resolver.resolve("goal-1", OWNER, goals, [], projections, as_of=AS_OF)

        assert result.contributions[0].amount == Decimal("600.00")
        assert result.discrepancy == Decimal("0")
        assert result.is_consistent is True

    def test_over_reported_balance_is_flagged(self, resolver):
        """A balance the allocation cannot account for is a discrepancy."""
        goals = [goal("5000", start_date=date(2024, 12, 15))]
        projections = GoalProjectionEngine().project(goals, Decimal("100"), as_of=AS_OF)

        result = resolver.resolve("goal-1", OWNER, goals, [], projections, as_of=AS_OF)

        assert result.contributions[0].amount == Decimal("300.00")
        assert result.discrepancy == Decimal("4700.00")
        assert result.is_consistent is False
        assert result.contribution_total + result.discrepancy == result.current_amount

    def test_over_reported_interest_goal(self, resolver):
        """Interest accrues only on the modelled contributions."""
        # $1000/month for 3 months at 12% grows to 3030.10
        goals = [goal("5000", interest_rate=Decimal("12"), start_date=date(2024, 12, 15))]
        projections = GoalProjectionEngine().project(goals, Decimal("1000"), as_of=AS_OF)

        result = resolver.resolve("goal-1", OWNER, goals, [], projections, as_of=AS_OF)

        by_source = {c.source: c.amount for c in result.contributions}
        assert by_source[ContributionSource.RECURRING_SURPLUS] == Decimal("3000.00")
        assert by_source[ContributionSource.INTEREST] == Decimal("30.10")
        assert result.discrepancy == Decimal("1969.90")
        assert result.is_consistent is False

    def test_uses_projection_for_forecast(self, resolver):
        """Monthly contribution and completion come from the projections."""
        goals = [goal("0")]
        projections = GoalProjectionEngine().project(goals, Decimal("2000"), as_of=AS_OF)

        result = resolver.resolve("goal-1", OWNER, goals, [], projections, as_of=AS_OF)

        assert result.monthly_contribution == Decimal("2000.00")
        assert result.months_remaining == 5
        assert result.projected_completion == date(2025, 8, 15)

    def test_without_projection_goal_is_unreachable(self, resolver):
        """A goal missing from the projections has no contribution."""
        result = resolver.resolve("goal-1", OWNER, [goal("10")], [], no_projections(), as_of=AS_OF)

        assert result.monthly_contribution == Decimal("0")
        assert result.months_remaining == math.inf
        assert result.projected_completion is None

    def test_missing_goal(self, resolver):
        """An unknown goal id raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            resolver.resolve("goal-404", OWNER, [goal("0")], [], no_projections(), as_of=AS_OF)

        assert exc_info.value.details["entity_id"] == "goal-404"

    def test_foreign_goal_looks_missing(self, resolver):
        """Another owner's goal is indistinguishable from a missing one."""
        goals = [goal("0", owner_id=OTHER_OWNER)]

        with pytest.raises(NotFoundError):
            resolver.resolve("goal-1", OWNER, goals, [], no_projections(), as_of=AS_OF)

    def test_external_shape(self, resolver):
        """Ledger entries serialize with a date key."""
        result = resolver.resolve(
            "goal-1", OWNER, [goal("700")], [applied_income("oti-1", "200")], no_projections(), as_of=AS_OF
        )

        data = result.model_dump(by_alias=True, mode="json")

        assert data["goalId"] == "goal-1"
        assert data["contributions"][1]["date"] == "2025-02-01"
        assert data["contributions"][1]["referenceId"] == "oti-1"
