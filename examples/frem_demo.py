#!/usr/bin/env python3
"""
FREM Engine Demonstration

This script walks one user's finances through the engine:
1. Load records into an in-memory data store
2. Compute the daily target
3. Project every goal from the monthly surplus
4. Apply a one-time tax refund and show the goal's contribution ledger
5. Simulate a twelve-month timeline

Run: python examples/frem_demo.py
"""

from datetime import date
from decimal import Decimal

from frem_core import (
    AlreadyAppliedError,
    EngineSettings,
    FinancialEngine,
    InMemoryFinancialDataStore,
    configure_logging,
)
from frem_core.models import (
    AccountType,
    ExpenseCadence,
    ExpenseCategory,
    FinancialAccount,
    FinancialGoal,
    GoalCategory,
    GoalPriority,
    IncomeKind,
    IncomeSource,
    OneTimeIncome,
    OneTimeIncomeSource,
    PayFrequency,
    RecurringExpense,
    SideProject,
    UserSettings,
)

OWNER = "demo-user"
AS_OF = date(2025, 3, 15)


def create_sample_store() -> InMemoryFinancialDataStore:
    """Create a store holding one user's realistic records."""
    store = InMemoryFinancialDataStore()

    # Income
    store.add(
        IncomeSource(
            id="inc-salary",
            owner_id=OWNER,
            name="Software engineer",
            kind=IncomeKind.SALARY,
            pay_frequency=PayFrequency.BIWEEKLY,
            base_amount=Decimal("2400"),
            is_primary=True,
        ),
        IncomeSource(
            id="inc-sales",
            owner_id=OWNER,
            name="Referral commissions",
            kind=IncomeKind.COMMISSION,
            pay_frequency=PayFrequency.MONTHLY,
            is_commission_based=True,
            commission_low=Decimal("100"),
            commission_high=Decimal("600"),
            commission_frequency_per_period=Decimal("1"),
        ),
        IncomeSource(
            id="inc-contract",
            owner_id=OWNER,
            name="Website rebuild",
            kind=IncomeKind.FREELANCE,
            start_date=date(2025, 5, 1),
            end_date=date(2025, 7, 31),
            initial_payment=Decimal("1500"),
            final_payment=Decimal("2500"),
        ),
        SideProject(
            id="sp-prints",
            owner_id=OWNER,
            name="Photo prints",
            current_monthly_earnings=Decimal("150"),
            projected_monthly_earnings=Decimal("400"),
        ),
    )

    # Expenses
    store.add(
        RecurringExpense(
            id="exp-rent", owner_id=OWNER, name="Rent",
            amount=Decimal("1850"), category=ExpenseCategory.HOUSING,
        ),
        RecurringExpense(
            id="exp-food", owner_id=OWNER, name="Groceries",
            amount=Decimal("120"), cadence=ExpenseCadence.WEEKLY, category=ExpenseCategory.FOOD,
        ),
        RecurringExpense(
            id="exp-insurance", owner_id=OWNER, name="Car insurance",
            amount=Decimal("960"), cadence=ExpenseCadence.ANNUALLY,
            category=ExpenseCategory.INSURANCE,
        ),
    )

    # Goals
    store.add(
        FinancialGoal(
            id="goal-emergency",
            owner_id=OWNER,
            title="Emergency fund",
            target_amount=Decimal("6000"),
            current_amount=Decimal("2200"),
            priority=GoalPriority.HIGH,
            urgency_score=5,
            monthly_target=Decimal("500"),
            category=GoalCategory.EMERGENCY,
        ),
        FinancialGoal(
            id="goal-trip",
            owner_id=OWNER,
            title="Lisbon trip",
            target_amount=Decimal("3000"),
            deadline=date(2025, 10, 1),
            category=GoalCategory.VACATION,
        ),
        FinancialGoal(
            id="goal-house",
            owner_id=OWNER,
            title="House deposit",
            target_amount=Decimal("40000"),
            current_amount=Decimal("8000"),
            priority=GoalPriority.LOW,
            interest_rate=Decimal("4.5"),
            start_date=date(2024, 1, 1),
            category=GoalCategory.HOUSE,
        ),
    )

    # Accounts, windfalls and settings
    store.add(
        FinancialAccount(
            id="acct-checking", owner_id=OWNER, account_type=AccountType.CHECKING,
            name="Everyday", balance=Decimal("3200"), is_primary=True,
        ),
        FinancialAccount(
            id="acct-savings", owner_id=OWNER, account_type=AccountType.SAVINGS,
            name="Rainy day", balance=Decimal("5400"),
        ),
        OneTimeIncome(
            id="oti-tax-refund",
            owner_id=OWNER,
            amount=Decimal("850"),
            description="Tax refund",
            source=OneTimeIncomeSource.REFUND,
            income_date=date(2025, 3, 3),
        ),
        UserSettings(owner_id=OWNER, daily_budget_target=Decimal("60"), bank_reserve_amount=Decimal("1500")),
    )
    return store


def main():
    """Run the FREM engine demonstration."""
    settings = EngineSettings(env="development", log_level="WARNING")
    configure_logging(settings)

    print("=" * 70)
    print("FREM CORE - Allocation & Projection Demo")
    print("=" * 70)
    print()

    # Step 1: Load data
    print("Step 1: Loading sample records...")
    store = create_sample_store()
    engine = FinancialEngine(store, settings=settings)
    income = engine.income_summary(OWNER, as_of=AS_OF)
    print(f"  - Income sources included: {income.source_count}")
    print(f"  - Monthly income (low/mid/high): ${income.total_monthly_low:,.2f} / "
          f"${income.total_monthly_mid:,.2f} / ${income.total_monthly_high:,.2f}")
    print(f"  - Variable income: {income.has_variable_income}")
    print()

    # Step 2: Daily target
    print("Step 2: Computing daily target...")
    target = engine.daily_target(OWNER, as_of=AS_OF)
    print(f"  - Monthly Surplus: ${target.monthly_surplus:,.2f}")
    print(f"  - Daily Target: ${target.daily_target:,.2f} ({target.target_basis.value})")
    print(f"  - Savings Rate: {target.savings_rate}%")
    print(f"  - Financial Cushion: ${target.financial_cushion:,.2f}")
    for warning in target.warnings:
        print(f"  ! {warning}")
    print()

    # Step 3: Projections
    print("Step 3: Projecting goals...")
    projections = engine.goal_projections(OWNER, as_of=AS_OF)
    for p in projections.projections:
        when = p.projected_completion_date.isoformat() if p.projected_completion_date else "n/a"
        print(f"  - {p.title:<16} ${p.monthly_contribution:>9,.2f}/mo  "
              f"{p.progress_percentage:>6}%  done {when}  [{p.status.value}]")
    print(f"  - Unallocated: ${projections.unallocated_surplus:,.2f}")
    print()

    # Step 4: Apply windfall
    print("Step 4: Applying tax refund to the trip goal...")
    applied = engine.apply_one_time_income(OWNER, "oti-tax-refund", "goal-trip", as_of=AS_OF)
    print(f"  - Credited: ${applied.credited_amount:,.2f}")
    print(f"  - Excess: ${applied.excess_amount:,.2f}")
    try:
        engine.apply_one_time_income(OWNER, "oti-tax-refund", "goal-trip", as_of=AS_OF)
    except AlreadyAppliedError as e:
        print(f"  - Retry rejected: {e}")

    breakdown = engine.goal_breakdown(OWNER, "goal-trip", as_of=AS_OF)
    for entry in breakdown.contributions:
        print(f"  - {entry.source.value:<18} ${entry.amount:,.2f}")
    print(f"  - Ledger consistent: {breakdown.is_consistent}")
    print()

    # Step 5: Timeline
    print("Step 5: Simulating twelve months...")
    for row in engine.monthly_projections(OWNER, as_of=AS_OF, months=12):
        completed = ", ".join(row.completed_goal_ids) or "-"
        print(f"  {row.month}  income ${row.income:>9,.2f}  "
              f"allocated ${row.allocated:>9,.2f}  completed: {completed}")

    print()
    print("=" * 70)
    print("Demo complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
