"""Liquid account balances."""

from collections.abc import Iterable
from decimal import Decimal

import structlog

from .models import AccountsSummary, AccountType, AccountTypeTotal, FinancialAccount

logger = structlog.get_logger()


class AccountSummarizer:
    """
    Aggregate account balances for reserve and cushion math.

    Every account of a type is summed, not just the primary one. Overdrawn
    (negative) balances reduce the total.
    """

    def summarize(self, accounts: Iterable[FinancialAccount]) -> AccountsSummary:
        """
        Total the balances by account type.

        Args:
            accounts: All of the user's accounts

        Returns:
            AccountsSummary with the overall and per-type totals
        """
        totals = {t: AccountTypeTotal() for t in AccountType}
        count = 0

        for account in accounts:
            bucket = totals[account.account_type]
            bucket.balance += account.balance
            bucket.count += 1
            if account.is_primary and bucket.primary_account_id is None:
                bucket.primary_account_id = account.id
            count += 1

        summary = AccountsSummary(
            total_balance=sum((t.balance for t in totals.values()), Decimal("0")),
            checking=totals[AccountType.CHECKING],
            savings=totals[AccountType.SAVINGS],
            account_count=count,
        )
        logger.info(
            "accounts_summarized",
            account_count=count,
            checking_count=summary.checking.count,
            savings_count=summary.savings.count,
        )
        return summary
