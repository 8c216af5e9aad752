"""
Profit & Loss builder
"""

import logging
from typing import Dict
from uuid import UUID

from ..money import margin_percent, to_money
from ..periods import ComparisonMode, Period
from ..schemas import AmountWithMargin, PeriodInfo, ProfitLossReport, ProfitLossSummary
from .aggregators import (
    COGSAggregator,
    OperatingExpenseAggregator,
    OtherExpenseAggregator,
    OtherIncomeAggregator,
    RevenueAggregator,
)
from .base import BaseReportService, gather_all
from .comparison import ComparisonEngine

logger = logging.getLogger(__name__)


class ProfitLossBuilder(BaseReportService):

    async def build(
        self,
        tenant_id: UUID,
        period: Period,
        comparison: ComparisonMode = ComparisonMode.NONE
    ) -> ProfitLossReport:
        revenue, cogs, operating_expenses, other_income, other_expenses = await gather_all(
            RevenueAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            COGSAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            OperatingExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            OtherIncomeAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            OtherExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period)
        )

        total_revenue = revenue.total
        gross_profit = to_money(total_revenue - cogs.total)
        operating_income = to_money(gross_profit - operating_expenses.total)
        net_income = to_money(operating_income + other_income.total - other_expenses.total)
        total_expenses = to_money(cogs.total + operating_expenses.total + other_expenses.total)
        net_margin = margin_percent(net_income, total_revenue)

        report = ProfitLossReport(
            period=PeriodInfo.from_period(period),
            currency=self.currency,
            revenue=revenue,
            cogs=cogs,
            gross_profit=AmountWithMargin(
                amount=gross_profit,
                margin=margin_percent(gross_profit, total_revenue)
            ),
            operating_expenses=operating_expenses,
            operating_income=AmountWithMargin(
                amount=operating_income,
                margin=margin_percent(operating_income, total_revenue)
            ),
            other_income=other_income,
            other_expenses=other_expenses,
            net_income=AmountWithMargin(amount=net_income, margin=net_margin),
            summary=ProfitLossSummary(
                total_revenue=total_revenue,
                total_expenses=total_expenses,
                net_profit=net_income,
                profit_margin=net_margin
            )
        )
        logger.debug(f"P&L {period.name} for tenant {tenant_id}: revenue={total_revenue} net={net_income}")

        if comparison != ComparisonMode.NONE:
            block = await ComparisonEngine(self, tenant_id).with_comparison(report, comparison)
            report = report.model_copy(update={"comparison": block})

        return report

    @staticmethod
    def figures(report: ProfitLossReport) -> Dict:
        return {
            "revenue": report.revenue.total,
            "gross_profit": report.gross_profit.amount,
            "operating_income": report.operating_income.amount,
            "total_expenses": report.summary.total_expenses,
            "net_income": report.net_income.amount
        }
