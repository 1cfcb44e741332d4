"""Daily target calculation.

This module combines the income, expense and account summaries with the
user's reserve configuration into one "amount to act on today" figure.

A month with a positive surplus spreads that surplus over the actual number
of days in the calendar month. A month with no surplus falls back to the
user's configured daily budget. A negative surplus is reported as a deficit
rather than clamped to zero.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from . import periods
from .models import (
    AccountsSummary,
    AuditEntry,
    DailyTarget,
    DerivedMetrics,
    ExpenseSummary,
    IncomeSummary,
    ReserveType,
    TargetBasis,
    UserSettings,
)

logger = structlog.get_logger()

DEFAULT_DAILY_BUDGET_TARGET = Decimal("150")

HUNDRED = Decimal("100")


class DailyTargetCalculator:
    """
    Calculate the daily target and its component breakdown.

    Every step is recorded on the result's audit trail.
    """

    def __init__(self, default_daily_budget_target: Decimal = DEFAULT_DAILY_BUDGET_TARGET):
        """
        Initialize calculator.

        Args:
            default_daily_budget_target: Fallback daily target used when the
                user has no settings record
        """
        self.default_daily_budget_target = default_daily_budget_target

    @staticmethod
    def _log_step(
        audit: list[AuditEntry], step: str, source: str, notes: Optional[str] = None
    ) -> None:
        """Add an entry to the audit log of the call in progress."""
        audit.append(AuditEntry(step=step, source=source, notes=notes))
        logger.debug("calculation_step", step=step, source=source)

    def calculate_reserve(
        self, accounts: AccountsSummary, settings: Optional[UserSettings]
    ) -> Decimal:
        """
        Bank reserve kept out of the cushion.

        A fixed amount, or a percentage of the total balance. Never negative,
        even when the accounts are overdrawn.
        """
        if settings is None:
            return periods.ZERO
        if settings.bank_reserve_type == ReserveType.PERCENTAGE:
            base = max(periods.ZERO, accounts.total_balance)
            return periods.to_cents(base * settings.bank_reserve_amount / HUNDRED)
        return periods.to_cents(settings.bank_reserve_amount)

    def calculate(
        self,
        income: IncomeSummary,
        expenses: ExpenseSummary,
        accounts: AccountsSummary,
        settings: Optional[UserSettings] = None,
        *,
        as_of: date,
    ) -> DailyTarget:
        """
        Calculate the daily target for ``as_of``.

        Args:
            income: Aggregated income (the mid estimate is used)
            expenses: Aggregated recurring expenses
            accounts: Aggregated account balances
            settings: User's reserve and fallback configuration
            as_of: Date the target is for

        Returns:
            DailyTarget with surplus, savings rate, cushion and deficit flag
        """
        audit: list[AuditEntry] = []
        warnings: list[str] = []

        total_income = income.total_monthly_mid
        total_expenses = expenses.total_monthly
        self._log_step(
            audit,
            step="monthly_income",
            source="IncomeAggregator mid estimate",
            notes="variable income present" if income.has_variable_income else None,
        )

        # Reserve and cushion
        reserve = self.calculate_reserve(accounts, settings)
        cushion = max(periods.ZERO, accounts.total_balance - reserve)
        self._log_step(
            audit,
            step="financial_cushion",
            source="max(0, total balance - reserve)",
            notes=(settings.bank_reserve_type.value if settings else "no reserve configured"),
        )

        # Surplus
        surplus = total_income - total_expenses
        days = periods.days_in_month(as_of)
        is_deficit = surplus < 0

        if surplus > 0:
            daily_target = periods.to_cents(surplus / days)
            basis = TargetBasis.SURPLUS
            self._log_step(
                audit,
                step="daily_target",
                source="monthly surplus / days in calendar month",
                notes=f"{days} days",
            )
        else:
            daily_target = (
                settings.daily_budget_target
                if settings is not None
                else self.default_daily_budget_target
            )
            basis = TargetBasis.FALLBACK
            self._log_step(
                audit,
                step="daily_target",
                source="configured daily budget target",
                notes="no positive surplus",
            )
            if is_deficit:
                warnings.append(
                    "Monthly expenses exceed monthly income; the daily target "
                    "falls back to the configured budget."
                )
            else:
                warnings.append("Monthly income exactly covers expenses; there is no surplus.")

        if income.has_variable_income:
            warnings.append("Income is variable; the target uses the mid estimate.")

        savings_rate = self.savings_rate(surplus, total_income)
        months_of_cushion = None
        if total_expenses > 0:
            months_of_cushion = (cushion / total_expenses).quantize(Decimal("0.1"))

        result = DailyTarget(
            daily_target=daily_target,
            monthly_surplus=surplus,
            savings_rate=savings_rate,
            financial_cushion=periods.to_cents(cushion),
            total_monthly_obligations=total_expenses,
            is_deficit=is_deficit,
            target_basis=basis,
            total_monthly_income=total_income,
            months_of_cushion=months_of_cushion,
            days_in_month=days,
            reserve_amount=reserve,
            warnings=warnings,
            audit_log=audit,
        )

        logger.info(
            "daily_target_calculated",
            target_basis=basis.value,
            is_deficit=is_deficit,
            warning_count=len(warnings),
        )
        return result

    @staticmethod
    def savings_rate(surplus: Decimal, income: Decimal) -> Decimal:
        """Surplus as a percentage of income, clamped to 0-100 (0 with no income)."""
        if income <= 0:
            return periods.ZERO
        rate = surplus / income * HUNDRED
        return min(HUNDRED, max(periods.ZERO, rate)).quantize(Decimal("0.01"))

    def derive_metrics(
        self,
        income: IncomeSummary,
        expenses: ExpenseSummary,
        accounts: AccountsSummary,
        settings: Optional[UserSettings] = None,
    ) -> DerivedMetrics:
        """
        Recompute the derived headline metrics.

        Unlike ``calculate`` this needs no date: none of the metrics depend
        on the month length.
        """
        total_income = income.total_monthly_mid
        total_expenses = expenses.total_monthly
        surplus = total_income - total_expenses
        reserve = self.calculate_reserve(accounts, settings)
        return DerivedMetrics(
            total_monthly_income=total_income,
            total_monthly_expenses=total_expenses,
            monthly_surplus=surplus,
            savings_rate=self.savings_rate(surplus, total_income),
            financial_cushion=periods.to_cents(max(periods.ZERO, accounts.total_balance - reserve)),
            total_monthly_obligations=total_expenses,
        )
