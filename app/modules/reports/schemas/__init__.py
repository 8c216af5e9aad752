"""
Pydantic schemas for the financial reports module

Report value objects returned by the engine and serialized by the API.
Monetary fields are Decimal and serialize as decimal strings.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import AggregationError
from ..money import ZERO, sum_breakdown, to_money
from ..periods import Period

logger = logging.getLogger(__name__)


class ReportModel(BaseModel):
    """Immutable base for report value objects"""
    model_config = ConfigDict(frozen=True)


class CategoryBreakdown(ReportModel):
    """Amounts per category plus their total; the total always equals the sum"""
    entries: Dict[str, Decimal] = Field(default_factory=dict)
    total: Decimal = ZERO
    count: int = Field(0, ge=0, description="Number of source records aggregated")

    @model_validator(mode="after")
    def check_total(self):
        expected = sum_breakdown(self.entries)
        if to_money(self.total) != expected:
            logger.error(
                f"CategoryBreakdown total {self.total} disagrees with entries sum {expected}: {self.entries}"
            )
            raise AggregationError(
                f"Breakdown total {self.total} does not match the sum of its entries ({expected})"
            )
        return self

    @classmethod
    def from_entries(cls, entries: Mapping[str, Decimal], count: int = 0) -> "CategoryBreakdown":
        quantized = {name: to_money(amount) for name, amount in entries.items()}
        return cls(entries=quantized, total=sum_breakdown(quantized), count=count)

    @classmethod
    def zero(cls, *names: str) -> "CategoryBreakdown":
        return cls.from_entries({name: ZERO for name in names})


class PeriodInfo(ReportModel):
    start_date: date
    end_date: date
    name: str

    @classmethod
    def from_period(cls, period: Period) -> "PeriodInfo":
        return cls(start_date=period.start, end_date=period.end, name=period.name)


class AmountWithMargin(ReportModel):
    amount: Decimal
    margin: Decimal = Field(description="Percentage of total revenue")


class Variance(ReportModel):
    amount: Decimal
    percentage: Decimal


class ComparisonBlock(ReportModel):
    """Figures of the comparison run and their variance against the base report"""
    mode: str
    period: Optional[PeriodInfo] = None
    as_of_date: Optional[date] = None
    figures: Dict[str, Decimal]
    variance: Dict[str, Variance]


# Profit & Loss
class ProfitLossSummary(ReportModel):
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal


class ProfitLossReport(ReportModel):
    period: PeriodInfo
    currency: str
    revenue: CategoryBreakdown
    cogs: CategoryBreakdown
    gross_profit: AmountWithMargin
    operating_expenses: CategoryBreakdown
    operating_income: AmountWithMargin
    other_income: CategoryBreakdown
    other_expenses: CategoryBreakdown
    net_income: AmountWithMargin
    summary: ProfitLossSummary
    comparison: Optional[ComparisonBlock] = None


# Balance Sheet
class AssetsSection(ReportModel):
    current: CategoryBreakdown
    fixed: CategoryBreakdown
    total: Decimal


class LiabilitiesSection(ReportModel):
    current: CategoryBreakdown
    long_term: CategoryBreakdown
    total: Decimal


class BalanceSheetTotals(ReportModel):
    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    liabilities_and_equity: Decimal
    difference: Decimal
    balanced: bool


class BalanceSheetReport(ReportModel):
    as_of_date: date
    currency: str
    assets: AssetsSection
    liabilities: LiabilitiesSection
    equity: CategoryBreakdown
    totals: BalanceSheetTotals
    comparison: Optional[ComparisonBlock] = None


# Cash Flow
class CashFlowSummary(ReportModel):
    cash_generated: Decimal
    cash_used: Decimal
    net_change: Decimal
    ending_balance: Decimal


class CashFlowReport(ReportModel):
    period: PeriodInfo
    currency: str
    method: str
    beginning_cash: Decimal
    operating: CategoryBreakdown
    investing: CategoryBreakdown
    financing: CategoryBreakdown
    net_cash_flow: Decimal
    ending_cash: Decimal
    summary: CashFlowSummary


# Trial Balance
class TrialBalanceRow(ReportModel):
    account_name: str
    account_type: str
    debit: Decimal
    credit: Decimal


class TrialBalanceTotals(ReportModel):
    debits: Decimal
    credits: Decimal
    difference: Decimal
    balanced: bool


class TrialBalanceReport(ReportModel):
    as_of_date: date
    currency: str
    accounts: List[TrialBalanceRow]
    totals: TrialBalanceTotals


# Trends
class TrendPoint(ReportModel):
    period_label: str
    period_start: date
    period_end: date
    month: int
    year: int
    metrics: Dict[str, Decimal]


class TrendResponse(ReportModel):
    metric: str
    months: int
    currency: str
    points: List[TrendPoint]


# Dashboard
class CustomerRevenue(ReportModel):
    customer_id: UUID
    total_revenue: Decimal
    invoice_count: int
    average_invoice: Decimal


class RecentExpense(ReportModel):
    category: str
    description: Optional[str] = None
    amount: Decimal
    expense_date: date


class OutstandingInvoice(ReportModel):
    id: UUID
    number: Optional[str] = None
    customer_id: Optional[UUID] = None
    amount: Decimal
    due_date: Optional[date] = None
    days_outstanding: Optional[int] = Field(None, description="Days since the due date; negative when not yet due")


class OverdueInvoice(ReportModel):
    id: UUID
    number: Optional[str] = None
    customer_id: Optional[UUID] = None
    amount: Decimal
    due_date: date
    days_overdue: int


class DashboardInsights(ReportModel):
    top_customers: List[CustomerRevenue]
    recent_expenses: List[RecentExpense]
    outstanding_invoices: List[OutstandingInvoice]
    overdue_invoices: List[OverdueInvoice]


class DashboardSummary(ReportModel):
    as_of_date: date
    currency: str
    current_month_revenue: Decimal
    last_month_revenue: Decimal
    revenue_growth: Decimal
    current_year_revenue: Decimal
    outstanding_amount: Decimal
    overdue_amount: Decimal
    cash_position: Decimal
    insights: DashboardInsights
