"""Shared fixtures for frem-core tests."""

from datetime import date
from decimal import Decimal

import pytest

from frem_core import InMemoryFinancialDataStore
from frem_core.models import (
    AccountType,
    FinancialAccount,
    FinancialGoal,
    GoalPriority,
    IncomeSource,
    OneTimeIncome,
    OneTimeIncomeSource,
    PayFrequency,
    RecurringExpense,
    UserSettings,
)

OWNER = "user-1"
OTHER_OWNER = "user-2"

# March 2025 has 31 days
AS_OF = date(2025, 3, 15)


@pytest.fixture
def as_of() -> date:
    """Fixed calculation date."""
    return AS_OF


@pytest.fixture
def salary() -> IncomeSource:
    """A $5000/month salary."""
    return IncomeSource(
        id="inc-salary",
        owner_id=OWNER,
        name="Day job",
        base_amount=Decimal("5000"),
        pay_frequency=PayFrequency.MONTHLY,
        is_primary=True,
    )


@pytest.fixture
def rent() -> RecurringExpense:
    """A $3000/month expense."""
    return RecurringExpense(
        id="exp-rent",
        owner_id=OWNER,
        name="Rent",
        amount=Decimal("3000"),
    )


@pytest.fixture
def house_goal() -> FinancialGoal:
    """High-priority goal: $10000 target, nothing saved yet."""
    return FinancialGoal(
        id="goal-house",
        owner_id=OWNER,
        title="House deposit",
        target_amount=Decimal("10000"),
        current_amount=Decimal("0"),
        priority=GoalPriority.HIGH,
    )


@pytest.fixture
def bonus() -> OneTimeIncome:
    """An unapplied $500 bonus."""
    return OneTimeIncome(
        id="oti-bonus",
        owner_id=OWNER,
        amount=Decimal("500"),
        description="Year-end bonus",
        source=OneTimeIncomeSource.BONUS,
        income_date=date(2025, 3, 1),
    )


@pytest.fixture
def checking() -> FinancialAccount:
    """Primary checking account with $4000."""
    return FinancialAccount(
        id="acct-checking",
        owner_id=OWNER,
        account_type=AccountType.CHECKING,
        name="Everyday",
        balance=Decimal("4000"),
        is_primary=True,
    )


@pytest.fixture
def store(salary, rent, house_goal, bonus, checking) -> InMemoryFinancialDataStore:
    """In-memory store holding one user's basic records."""
    data = InMemoryFinancialDataStore()
    data.add(
        salary,
        rent,
        house_goal,
        bonus,
        checking,
        UserSettings(owner_id=OWNER, bank_reserve_amount=Decimal("1000")),
    )
    return data
