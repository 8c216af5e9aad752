"""
Financial Reports Service

Entry point of the reporting engine. Parses request arguments, applies
the tenant's reporting configuration and runs every report under the
configured deadline.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Awaitable, Optional, TypeVar
from uuid import UUID

from app.core.config import ReportingConfig
from app.modules.ledger.facts import RECEIVABLE_STATUSES, InvoiceStatus
from app.modules.ledger.source import LedgerSource
from ..exceptions import ReportTimeoutError
from ..money import growth_rate, sum_money
from ..periods import (
    AS_OF_COMPARISONS,
    PERIOD_COMPARISONS,
    DateInput,
    Period,
    add_months,
    parse_comparison_mode,
    parse_date,
)
from ..schemas import (
    BalanceSheetReport,
    CashFlowReport,
    DashboardInsights,
    DashboardSummary,
    ProfitLossReport,
    TrialBalanceReport,
    TrendResponse,
)
from .aggregators import RevenueAggregator, cash_balance
from .balance_sheet import BalanceSheetBuilder
from . import insights
from .base import BaseReportService, gather_all
from .cash_flow import CashFlowBuilder, CashFlowMethod, parse_cash_flow_method
from .profit_loss import ProfitLossBuilder
from .trends import TrendMetrics, TrendSeriesBuilder
from .trial_balance import TrialBalanceBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FinancialReportService(BaseReportService):
    """Service for generating financial statements for one tenant"""

    def __init__(self, ledger: LedgerSource, tenant_id: UUID, config: Optional[ReportingConfig] = None):
        super().__init__(ledger, config)
        self.tenant_id = tenant_id

    async def _run(self, coro: Awaitable[T], name: str) -> T:
        """Await a report under the deadline; on expiry nothing partial is returned."""
        try:
            return await asyncio.wait_for(coro, timeout=self.config.report_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                f"{name} for tenant {self.tenant_id} exceeded {self.config.report_timeout_seconds}s"
            )
            raise ReportTimeoutError(
                f"{name} did not complete within {self.config.report_timeout_seconds} seconds"
            )

    async def get_profit_loss(
        self,
        start_date: DateInput,
        end_date: DateInput,
        comparison: Optional[str] = "none"
    ) -> ProfitLossReport:
        period = Period.parse(start_date, end_date)
        mode = parse_comparison_mode(comparison, PERIOD_COMPARISONS)
        builder = ProfitLossBuilder(self.ledger, self.config)
        return await self._run(builder.build(self.tenant_id, period, mode), "Profit & Loss")

    async def get_balance_sheet(
        self,
        as_of_date: DateInput,
        comparison: Optional[str] = "none"
    ) -> BalanceSheetReport:
        as_of = parse_date(as_of_date)
        mode = parse_comparison_mode(comparison, AS_OF_COMPARISONS)
        builder = BalanceSheetBuilder(self.ledger, self.config)
        return await self._run(builder.build(self.tenant_id, as_of, mode), "Balance Sheet")

    async def get_cash_flow(
        self,
        start_date: DateInput,
        end_date: DateInput,
        method: str = CashFlowMethod.INDIRECT.value
    ) -> CashFlowReport:
        period = Period.parse(start_date, end_date)
        cash_flow_method = parse_cash_flow_method(method)
        builder = CashFlowBuilder(self.ledger, self.config)
        return await self._run(builder.build(self.tenant_id, period, cash_flow_method), "Cash Flow")

    async def get_trial_balance(self, as_of_date: DateInput) -> TrialBalanceReport:
        as_of = parse_date(as_of_date)
        builder = TrialBalanceBuilder(self.ledger, self.config)
        return await self._run(builder.build(self.tenant_id, as_of), "Trial Balance")

    async def get_trend(self, metric: str, months: int = 12, today: Optional[DateInput] = None) -> TrendResponse:
        today = parse_date(today) if today else date.today()
        metric_fn = TrendMetrics(self.ledger, self.config).resolve(metric)
        builder = TrendSeriesBuilder(self.ledger, self.config)
        points = await self._run(
            builder.build_series(self.tenant_id, metric_fn, months, today),
            f"{metric} trend"
        )
        return TrendResponse(metric=metric, months=months, currency=self.currency, points=points)

    async def get_dashboard_summary(self, today: Optional[DateInput] = None) -> DashboardSummary:
        today = parse_date(today) if today else date.today()
        return await self._run(self._dashboard(today), "Dashboard summary")

    async def _dashboard(self, today: date) -> DashboardSummary:
        revenue = RevenueAggregator(self.ledger, self.config)
        current_month, last_month, year_to_date, receivables, paid_invoices, expenses, cash = await gather_all(
            revenue.aggregate(self.tenant_id, Period.month_of(today)),
            revenue.aggregate(self.tenant_id, Period.month_of(add_months(today, -1))),
            revenue.aggregate(self.tenant_id, Period.year_to_date(today)),
            self.ledger.fetch_invoices(self.tenant_id, end=today, statuses=RECEIVABLE_STATUSES),
            self.ledger.fetch_invoices(self.tenant_id, end=today, statuses=[InvoiceStatus.PAID]),
            self.ledger.fetch_expenses(
                self.tenant_id,
                start=today - timedelta(days=insights.RECENT_EXPENSE_DAYS),
                end=today
            ),
            cash_balance(self, self.tenant_id, today)
        )

        overdue = [invoice for invoice in receivables if insights.is_overdue(invoice, today)]

        return DashboardSummary(
            as_of_date=today,
            currency=self.currency,
            current_month_revenue=current_month.total,
            last_month_revenue=last_month.total,
            revenue_growth=growth_rate(current_month.total, last_month.total),
            current_year_revenue=year_to_date.total,
            outstanding_amount=sum_money(invoice.total for invoice in receivables),
            overdue_amount=sum_money(invoice.total for invoice in overdue),
            cash_position=cash,
            insights=DashboardInsights(
                top_customers=insights.top_customers(paid_invoices),
                recent_expenses=insights.recent_expenses(expenses, today),
                outstanding_invoices=insights.outstanding_invoices(receivables, today),
                overdue_invoices=insights.overdue_invoices(receivables, today)
            )
        )
