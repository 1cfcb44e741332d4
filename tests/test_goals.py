"""Tests for goal allocation and projections."""

import math
from datetime import date
from decimal import Decimal

import pytest

from frem_core import GoalProjectionEngine
from frem_core.goals import months_to_complete, waterfall_key
from frem_core.models import FinancialGoal, GoalPriority, GoalStatus, ProjectionStatus

OWNER = "user-1"
AS_OF = date(2025, 3, 15)


def goal(goal_id: str, target: str, current: str = "0", **kwargs) -> FinancialGoal:
    return FinancialGoal(
        id=goal_id,
        owner_id=OWNER,
        title=goal_id,
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        **kwargs,
    )


@pytest.fixture
def engine() -> GoalProjectionEngine:
    return GoalProjectionEngine()


class TestMonthsToComplete:
    """Test suite for months_to_complete."""

    def test_without_interest(self):
        """N = ceil(remaining / contribution)."""
        assert months_to_complete(Decimal("0"), Decimal("10000"), Decimal("2000")) == 5
        assert months_to_complete(Decimal("100"), Decimal("1000"), Decimal("200")) == 5

    def test_already_funded(self):
        """A funded goal needs zero months whatever the contribution."""
        assert months_to_complete(Decimal("1000"), Decimal("1000"), Decimal("0")) == 0
        assert months_to_complete(Decimal("1200"), Decimal("1000"), Decimal("50")) == 0

    def test_zero_contribution_is_unreachable(self):
        """Zero contribution with money remaining is infinite, even with interest."""
        assert months_to_complete(Decimal("0"), Decimal("500"), Decimal("0")) == math.inf
        assert (
            months_to_complete(Decimal("100"), Decimal("500"), Decimal("0"), Decimal("5"))
            == math.inf
        )

    def test_with_interest(self):
        """12% a year on $100/month reaches $1200 in 12 months, not 11."""
        # 11 payments grow to 1156.68, 12 payments to 1268.25
        assert months_to_complete(Decimal("0"), Decimal("1200"), Decimal("100"), Decimal("12")) == 12

    def test_interest_shortens_the_horizon(self):
        """Interest never makes a goal take longer."""
        plain = months_to_complete(Decimal("5000"), Decimal("20000"), Decimal("300"))
        with_interest = months_to_complete(
            Decimal("5000"), Decimal("20000"), Decimal("300"), Decimal("6")
        )

        assert with_interest <= plain


class TestAllocation:
    """Test suite for the waterfall and pro-rata allocation."""

    def test_single_goal_gets_all_surplus(self, engine):
        """One goal with no deadline receives the whole surplus."""
        allocations, unallocated = engine.allocate(
            [goal("g1", "10000", priority=GoalPriority.HIGH)], Decimal("2000"), as_of=AS_OF
        )

        assert allocations == {"g1": Decimal("2000.00")}
        assert unallocated == Decimal("0")

    def test_monthly_target_is_served_in_order(self, engine):
        """Higher priority goals get their monthly target first."""
        goals = [
            goal("low", "5000", priority=GoalPriority.LOW, monthly_target=Decimal("400")),
            goal("high", "5000", priority=GoalPriority.HIGH, monthly_target=Decimal("700")),
        ]

        allocations, _ = engine.allocate(goals, Decimal("800"), as_of=AS_OF)

        assert allocations["high"] == Decimal("700.00")
        assert allocations["low"] == Decimal("100.00")

    def test_deadline_demand(self, engine):
        """Without a monthly target a goal asks for remaining / months to deadline."""
        goals = [goal("trip", "1200", deadline=date(2025, 9, 1), priority=GoalPriority.HIGH)]

        # 6 months away: 200/month
        assert engine.monthly_demand(goals[0], AS_OF) == Decimal("200")
        allocations, _ = engine.allocate(goals, Decimal("150"), as_of=AS_OF)
        assert allocations["trip"] == Decimal("150.00")

    def test_leftover_is_pro_rata(self, engine):
        """Leftover surplus is split by unfunded remaining amount."""
        goals = [goal("a", "3000"), goal("b", "1000")]

        allocations, unallocated = engine.allocate(goals, Decimal("400"), as_of=AS_OF)

        assert allocations["a"] == Decimal("300.00")
        assert allocations["b"] == Decimal("100.00")
        assert unallocated == Decimal("0")

    def test_allocation_capped_at_remaining(self, engine):
        """No goal receives more than it still needs."""
        goals = [goal("a", "500", "400"), goal("b", "300", "100")]

        allocations, unallocated = engine.allocate(goals, Decimal("1000"), as_of=AS_OF)

        assert allocations == {"a": Decimal("100"), "b": Decimal("200")}
        assert unallocated == Decimal("700.00")

    def test_allocations_never_exceed_surplus(self, engine):
        """Rounding never hands out more than the surplus."""
        goals = [goal("a", "1000"), goal("b", "1000"), goal("c", "1000")]

        allocations, unallocated = engine.allocate(goals, Decimal("100"), as_of=AS_OF)

        assert sum(allocations.values()) + unallocated == Decimal("100.00")
        assert all(a == Decimal("33.33") for a in allocations.values())

    def test_inactive_and_funded_goals_get_nothing(self, engine):
        """Paused, cancelled and funded goals are not eligible."""
        goals = [
            goal("paused", "1000", status=GoalStatus.PAUSED),
            goal("cancelled", "1000", status=GoalStatus.CANCELLED),
            goal("funded", "1000", "1000"),
            goal("open", "1000"),
        ]

        allocations, _ = engine.allocate(goals, Decimal("300"), as_of=AS_OF)

        assert list(allocations) == ["open"]

    def test_negative_surplus_allocates_nothing(self, engine):
        """A deficit month allocates zero."""
        allocations, unallocated = engine.allocate(
            [goal("a", "1000", monthly_target=Decimal("100"))], Decimal("-50"), as_of=AS_OF
        )

        assert allocations["a"] == Decimal("0")
        assert unallocated == Decimal("0")

    def test_waterfall_order_and_tie_break(self):
        """Priority, urgency, deadline (None last), then id."""
        goals = [
            goal("z-none", "100", priority=GoalPriority.HIGH, urgency_score=5),
            goal("b-soon", "100", priority=GoalPriority.HIGH, urgency_score=5, deadline=date(2025, 6, 1)),
            goal("a-soon", "100", priority=GoalPriority.HIGH, urgency_score=5, deadline=date(2025, 6, 1)),
            goal("urgent-low", "100", priority=GoalPriority.LOW, urgency_score=5),
            goal("calm-high", "100", priority=GoalPriority.HIGH, urgency_score=1),
        ]

        ordered = [g.id for g in sorted(goals, key=waterfall_key)]

        assert ordered == ["a-soon", "b-soon", "z-none", "calm-high", "urgent-low"]

    def test_allocation_is_deterministic(self, engine):
        """Input order does not change the allocation."""
        goals = [
            goal("a", "900", monthly_target=Decimal("300")),
            goal("b", "900", monthly_target=Decimal("300")),
        ]

        first, _ = engine.allocate(goals, Decimal("450"), as_of=AS_OF)
        second, _ = engine.allocate(list(reversed(goals)), Decimal("450"), as_of=AS_OF)

        assert first == second
        assert first["a"] == Decimal("300.00")


class TestProjection:
    """Test suite for GoalProjectionEngine.project."""

    def test_end_to_end_single_goal(self, engine):
        """$2000 surplus on a $10000 goal completes in 5 months."""
        result = engine.project(
            [goal("house", "10000", priority=GoalPriority.HIGH)], Decimal("2000"), as_of=AS_OF
        )

        projection = result.for_goal("house")
        assert projection.monthly_contribution == Decimal("2000.00")
        assert projection.months_remaining == 5
        assert projection.projected_completion_date == date(2025, 8, 15)
        assert projection.status == ProjectionStatus.NO_DEADLINE
        assert result.total_allocated == Decimal("2000.00")

    def test_funded_goal(self, engine):
        """A goal at target is 100% with 0 months regardless of contribution."""
        result = engine.project([goal("done", "1000", "1000")], Decimal("0"), as_of=AS_OF)

        projection = result.for_goal("done")
        assert projection.progress_percentage == Decimal("100")
        assert projection.months_remaining == 0
        assert projection.projected_completion_date == AS_OF
        assert projection.status == ProjectionStatus.COMPLETED

    def test_overfunded_goal_is_clamped(self, engine):
        """Progress never exceeds 100%."""
        result = engine.project([goal("over", "1000", "1000.01")], Decimal("0"), as_of=AS_OF)

        assert result.for_goal("over").progress_percentage == Decimal("100")
        assert result.for_goal("over").remaining == Decimal("0")

    def test_unreachable_goal(self, engine):
        """Zero contribution with money remaining is reported as unreachable."""
        result = engine.project([goal("far", "1000", "100")], Decimal("0"), as_of=AS_OF)

        projection = result.for_goal("far")
        assert projection.months_remaining == math.inf
        assert projection.projected_completion_date is None
        assert projection.is_reachable is False
        assert projection.status == ProjectionStatus.UNREACHABLE

    def test_completion_beyond_horizon_has_no_date(self):
        """Completion further out than the horizon gets no date."""
        engine = GoalProjectionEngine(max_projection_months=12)

        result = engine.project([goal("slow", "10000")], Decimal("100"), as_of=AS_OF)

        projection = result.for_goal("slow")
        assert projection.months_remaining == 100
        assert projection.is_reachable is True
        assert projection.projected_completion_date is None

    @pytest.mark.parametrize(
        "deadline,expected",
        [
            (date(2025, 12, 15), ProjectionStatus.AHEAD),
            (date(2025, 8, 20), ProjectionStatus.ON_TRACK),
            (date(2025, 8, 1), ProjectionStatus.BEHIND),
            (date(2025, 5, 1), ProjectionStatus.AT_RISK),
        ],
    )
    def test_deadline_status(self, engine, deadline, expected):
        """Status compares the projected date with the deadline."""
        goals = [goal("g", "1000", monthly_target=Decimal("200"), deadline=deadline)]

        result = engine.project(goals, Decimal("200"), as_of=AS_OF)

        projection = result.for_goal("g")
        assert projection.projected_completion_date == date(2025, 8, 15)
        assert projection.status == expected
        assert projection.days_ahead_or_behind == (deadline - date(2025, 8, 15)).days

    def test_required_contribution(self, engine):
        """Required monthly contribution is remaining spread to the deadline."""
        goals = [goal("g", "1200", deadline=date(2025, 9, 15))]

        result = engine.project(goals, Decimal("0"), as_of=AS_OF)

        assert result.for_goal("g").required_monthly_contribution == Decimal("200.00")

    def test_projection_shape(self, engine):
        """Projections serialize with camelCase keys and ISO dates."""
        result = engine.project([goal("house", "10000")], Decimal("2000"), as_of=AS_OF)

        data = result.model_dump(by_alias=True, mode="json")["projections"][0]

        assert data["goalId"] == "house"
        assert data["monthsRemaining"] == 5
        assert data["projectedCompletionDate"] == "2025-08-15"
        assert "progressPercentage" in data


class TestTimeline:
    """Test suite for GoalProjectionEngine.timeline."""

    def test_goal_completes_and_drops_out(self, engine):
        """A completed goal stops receiving allocations."""
        goals = [
            goal("small", "1000", priority=GoalPriority.HIGH, monthly_target=Decimal("1000")),
            goal("big", "10000"),
        ]

        rows = engine.timeline(
            goals, Decimal("3000"), Decimal("2000"), as_of=AS_OF, months=6
        )

        assert len(rows) == 6
        assert rows[0].month == "2025-03"
        assert rows[0].surplus == Decimal("1000")
        completed_month = next(r for r in rows if "small" in r.completed_goal_ids)
        later = rows[rows.index(completed_month) + 1]
        assert [g.goal_id for g in later.goals] == ["big"]
        assert later.allocated == Decimal("1000.00")

    def test_interest_compounds(self, engine):
        """Interest-bearing goals grow between allocations."""
        goals = [goal("invest", "100000", "1200", interest_rate=Decimal("12"))]

        rows = engine.timeline(goals, Decimal("0"), Decimal("0"), as_of=AS_OF, months=2)

        assert rows[0].goals[0].projected_balance == Decimal("1212.00")
        assert rows[1].goals[0].projected_balance == Decimal("1224.12")

    def test_contract_payment_month(self, engine):
        """Contract payments add income only in their month."""
        rows = engine.timeline(
            [goal("g", "100000")],
            Decimal("1000"),
            Decimal("1000"),
            as_of=AS_OF,
            months=3,
            contract_payments={"2025-04": Decimal("500")},
        )

        assert [r.allocated for r in rows] == [Decimal("0"), Decimal("500.00"), Decimal("0")]

    def test_future_start_date_waits(self, engine):
        """A goal with a later start date joins when it starts."""
        goals = [goal("later", "5000", start_date=date(2025, 5, 1))]

        rows = engine.timeline(goals, Decimal("1000"), Decimal("0"), as_of=AS_OF, months=3)

        assert rows[0].goals == []
        assert rows[1].goals == []
        assert rows[2].goals[0].allocation == Decimal("1000.00")
