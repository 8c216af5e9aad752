"""
Trend series

A trend is one independent metric computation per calendar month, run
concurrently under a semaphore and returned oldest first.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Awaitable, Callable, Dict, List
from uuid import UUID

from ..exceptions import InvalidPeriodError, UnknownTrendMetricError
from ..money import margin_percent, to_money
from ..periods import Period, monthly_windows
from ..schemas import TrendPoint
from .aggregators import RevenueAggregator, TotalExpenseAggregator
from .base import BaseReportService, gather_all
from .cash_flow import CashFlowBuilder, CashFlowMethod

logger = logging.getLogger(__name__)

MetricFn = Callable[[UUID, Period], Awaitable[Dict[str, Decimal]]]


class TrendMetrics(BaseReportService):
    """Per-month metric functions available to trend series."""

    async def revenue(self, tenant_id: UUID, period: Period) -> Dict[str, Decimal]:
        revenue = await RevenueAggregator(self.ledger, self.config).aggregate(tenant_id, period)
        return {"amount": revenue.total, "count": Decimal(revenue.count)}

    async def expenses(self, tenant_id: UUID, period: Period) -> Dict[str, Decimal]:
        expenses = await TotalExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period)
        return {
            "amount": expenses.total,
            "cogs": expenses.entries["cogs"],
            "operating": expenses.entries["operating"],
            "other": expenses.entries["other"]
        }

    async def profit(self, tenant_id: UUID, period: Period) -> Dict[str, Decimal]:
        revenue, expenses = await gather_all(
            RevenueAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            TotalExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period)
        )
        profit = to_money(revenue.total - expenses.total)
        return {
            "revenue": revenue.total,
            "expenses": expenses.total,
            "profit": profit,
            "margin": margin_percent(profit, revenue.total)
        }

    async def cash_flow(self, tenant_id: UUID, period: Period) -> Dict[str, Decimal]:
        builder = CashFlowBuilder(self.ledger, self.config)
        operating, investing, financing = await gather_all(
            builder.operating_activities(tenant_id, period, CashFlowMethod.INDIRECT),
            builder.investing_activities(tenant_id, period),
            builder.financing_activities(tenant_id, period)
        )
        return {
            "cash_flow": to_money(operating.total + investing.total + financing.total),
            "operating": operating.total
        }

    def resolve(self, metric: str) -> MetricFn:
        if metric not in TREND_METRICS:
            raise UnknownTrendMetricError(
                f"Unknown trend metric: {metric!r}; use one of {list(TREND_METRICS)}"
            )
        return getattr(self, metric)


TREND_METRICS = ("revenue", "expenses", "profit", "cash_flow")


class TrendSeriesBuilder(BaseReportService):

    async def build_series(
        self,
        tenant_id: UUID,
        metric_fn: MetricFn,
        window_size: int,
        today: date
    ) -> List[TrendPoint]:
        if not 1 <= window_size <= self.config.trend_max_months:
            raise InvalidPeriodError(
                f"Trend window must be between 1 and {self.config.trend_max_months} months, got {window_size}"
            )

        semaphore = asyncio.Semaphore(self.config.trend_max_concurrency)

        async def point(period: Period) -> TrendPoint:
            async with semaphore:
                metrics = await metric_fn(tenant_id, period)
            return TrendPoint(
                period_label=period.label,
                period_start=period.start,
                period_end=period.end,
                month=period.start.month,
                year=period.start.year,
                metrics=metrics
            )

        windows = monthly_windows(window_size, today)
        logger.debug(f"Building {window_size}-month trend for tenant {tenant_id} ending {windows[-1].label}")
        return await gather_all(*(point(period) for period in windows))
