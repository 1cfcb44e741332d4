"""Recurring expense totals."""

from collections.abc import Iterable
from decimal import Decimal

import structlog

from . import periods
from .models import ExpenseCategory, ExpenseStatus, ExpenseSummary, RecurringExpense

logger = structlog.get_logger()


class ExpenseAggregator:
    """Sum active recurring expenses into a monthly total."""

    def aggregate(self, expenses: Iterable[RecurringExpense]) -> ExpenseSummary:
        """
        Normalize each active expense to its monthly charge and total them.

        Args:
            expenses: All of the user's recurring expenses

        Returns:
            ExpenseSummary with the monthly total and per-category totals
        """
        total = periods.ZERO
        by_category: dict[ExpenseCategory, Decimal] = {}
        count = 0

        for expense in expenses:
            if expense.status != ExpenseStatus.ACTIVE:
                continue
            monthly = expense.monthly_amount
            total += monthly
            by_category[expense.category] = by_category.get(expense.category, periods.ZERO) + monthly
            count += 1

        summary = ExpenseSummary(
            total_monthly=periods.to_cents(total),
            by_category={k: periods.to_cents(v) for k, v in by_category.items()},
            count=count,
        )
        logger.info("expenses_aggregated", expense_count=count, category_count=len(by_category))
        return summary
