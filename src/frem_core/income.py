"""Monthly income normalization.

This module provides the IncomeAggregator, which turns a user's recurring
income sources and side projects into one low/mid/high monthly band.

Fixed pay has a single value (low = mid = high). Commission pay spans the
configured per-period commission range. Side-project realized earnings are
added to every band; projected side-project earnings and contract payments
are reported separately and never summed into the totals.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional

import structlog

from . import periods
from .models import (
    AuditEntry,
    ContractPayment,
    IncomeSource,
    IncomeSourceEstimate,
    IncomeSummary,
    MonthlyEstimate,
    SideProject,
    SideProjectEstimate,
)

logger = structlog.get_logger()


class IncomeAggregator:
    """
    Aggregate recurring income into a monthly estimate band.

    Sources are included when active and inside their start/end dates on
    the as-of date. Paused, ended and expired sources are skipped but left
    untouched in the caller's history.
    """

    @staticmethod
    def _log_step(
        audit: list[AuditEntry], step: str, source: str, notes: Optional[str] = None
    ) -> None:
        """Add an entry to the audit log of the call in progress."""
        audit.append(AuditEntry(step=step, source=source, notes=notes))
        logger.debug("calculation_step", step=step, source=source)

    def estimate_monthly(self, source: IncomeSource) -> MonthlyEstimate:
        """
        Estimate one source's monthly band.

        Args:
            source: Income source record

        Returns:
            Monthly low/mid/high, each rounded to cents
        """
        low, mid, high = source.monthly_band()
        return MonthlyEstimate(low=low, mid=mid, high=high)

    def aggregate(
        self,
        sources: Iterable[IncomeSource],
        side_projects: Iterable[SideProject] = (),
        *,
        as_of: date,
    ) -> IncomeSummary:
        """
        Build the income summary for one user.

        Args:
            sources: All of the user's income sources
            side_projects: All of the user's side projects
            as_of: Date the summary is computed for

        Returns:
            IncomeSummary with per-source bands and totals
        """
        audit: list[AuditEntry] = []
        sources = list(sources)

        included = [s for s in sources if s.is_included_on(as_of)]
        self._log_step(
            audit,
            step="select_sources",
            source="status active and dated on as_of",
            notes=f"{len(included)} of {len(sources)} sources included",
        )

        estimates: list[IncomeSourceEstimate] = []
        total_low = total_mid = total_high = periods.ZERO
        for source in included:
            band = self.estimate_monthly(source)
            total_low += band.low
            total_mid += band.mid
            total_high += band.high
            estimates.append(
                IncomeSourceEstimate(
                    id=source.id,
                    name=source.name,
                    kind=source.kind,
                    is_variable=source.is_variable,
                    monthly_estimate=band,
                )
            )
            self._log_step(
                audit,
                step=f"estimate_{source.id}",
                source=(
                    "commission range x frequency x periods per month"
                    if source.is_commission_based
                    else "base x periods per month"
                ),
                notes=f"{source.kind.value}/{source.pay_frequency.value}",
            )

        # Side projects: realized earnings join every band
        project_rows: list[SideProjectEstimate] = []
        side_current = side_projected = periods.ZERO
        for project in side_projects:
            if not project.is_active_on(as_of):
                continue
            side_current += project.current_monthly_earnings
            side_projected += project.projected_monthly_earnings
            project_rows.append(
                SideProjectEstimate(
                    id=project.id,
                    name=project.name,
                    current_monthly=periods.to_cents(project.current_monthly_earnings),
                    projected_monthly=periods.to_cents(project.projected_monthly_earnings),
                )
            )
        side_current = periods.to_cents(side_current)
        side_projected = periods.to_cents(side_projected)
        if project_rows:
            self._log_step(
                audit,
                step="side_projects",
                source="current monthly earnings added to all bands",
                notes=f"{len(project_rows)} active side projects in date range",
            )

        # Contract payments are dated events, so expired sources still count
        contract_total = sum(
            (p.amount for p in contract_payments_for_month(sources, as_of)),
            periods.ZERO,
        )

        primary = next((s.id for s in included if s.is_primary), None)
        if primary is None and included:
            primary = included[0].id

        summary = IncomeSummary(
            sources=estimates,
            side_projects=project_rows,
            total_monthly_low=total_low + side_current,
            total_monthly_mid=total_mid + side_current,
            total_monthly_high=total_high + side_current,
            has_variable_income=any(s.is_variable for s in included),
            side_project_income=side_current,
            side_project_projected=side_projected,
            contract_payments_this_month=periods.to_cents(contract_total),
            primary_source_id=primary,
            source_count=len(included),
            audit_log=audit,
        )

        logger.info(
            "income_aggregated",
            source_count=summary.source_count,
            side_project_count=len(project_rows),
            has_variable_income=summary.has_variable_income,
        )
        return summary


def contract_payments_for_month(
    sources: Sequence[IncomeSource], month: date
) -> list[ContractPayment]:
    """
    One-off contract payments landing in the calendar month of ``month``.

    The initial payment lands in the month of ``start_date``; the final
    payment in the month of ``final_payment_date`` (or ``end_date``).

    Args:
        sources: Income sources to scan
        month: Any date inside the month of interest

    Returns:
        Contract payments in that month, in source order
    """
    payments: list[ContractPayment] = []
    for source in sources:
        if (
            source.initial_payment > 0
            and source.start_date is not None
            and periods.same_month(source.start_date, month)
        ):
            payments.append(
                ContractPayment(
                    source_id=source.id,
                    payment_type="initial",
                    amount=source.initial_payment,
                    payment_date=source.start_date,
                )
            )
        final_date = source.final_payment_date or source.end_date
        if (
            source.final_payment > 0
            and final_date is not None
            and periods.same_month(final_date, month)
        ):
            payments.append(
                ContractPayment(
                    source_id=source.id,
                    payment_type="final",
                    amount=source.final_payment,
                    payment_date=final_date,
                )
            )
    return payments
