"""
Aggregators

Turn ledger facts into CategoryBreakdowns. Period aggregators cover a
date range (P&L and cash flow); point-in-time aggregators describe the
position on an as-of date (balance sheet and trial balance).

An aggregator returns zeros when no records match and lets
LedgerSourceError propagate unchanged when the source fails.

Revenue is recognized on the invoice date among paid invoices: an invoice
dated inside the period counts even if it was paid after the period
ended. This mixes accrual and cash bases on purpose and is kept as the
product's documented policy.
"""

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from app.modules.ledger.facts import (
    RECEIVABLE_STATUSES,
    ExpenseCategory,
    ExpenseStatus,
    InvoiceStatus,
    PaymentType,
)
from ..money import ZERO, sum_money, to_money
from ..periods import Period
from ..schemas import CategoryBreakdown
from .base import BaseReportService, gather_all

logger = logging.getLogger(__name__)


# ===== PERIOD AGGREGATORS =====

class PeriodAggregator(BaseReportService):
    """aggregate(tenant_id, period) -> CategoryBreakdown"""

    async def aggregate(self, tenant_id: UUID, period: Period) -> CategoryBreakdown:
        raise NotImplementedError


class RevenueAggregator(PeriodAggregator):
    """Totals of paid invoices dated inside the period."""

    async def aggregate(self, tenant_id, period):
        invoices = await self.ledger.fetch_invoices(
            tenant_id,
            start=period.start,
            end=period.end,
            statuses=[InvoiceStatus.PAID]
        )
        return CategoryBreakdown.from_entries(
            {
                "sales": sum_money(invoice.total for invoice in invoices),
                "services": ZERO,
                "other": ZERO
            },
            count=len(invoices)
        )


class COGSAggregator(PeriodAggregator):
    """Cost price times quantity over the lines of paid invoices in the period."""

    async def aggregate(self, tenant_id, period):
        lines = await self.ledger.fetch_sold_product_costs(tenant_id, period.start, period.end)

        materials = Decimal("0")
        missing = 0
        for line in lines:
            if line.cost_price is None:
                missing += 1
                continue
            materials += line.cost_price * line.quantity_sold

        if missing:
            logger.debug(f"COGS for tenant {tenant_id}: {missing} line(s) without product cost counted as zero")

        return CategoryBreakdown.from_entries(
            {"materials": to_money(materials), "labor": ZERO, "overhead": ZERO},
            count=len(lines)
        )


class OperatingExpenseAggregator(PeriodAggregator):
    """
    Expenses in the period bucketed by category.

    Unapproved expenses count unless the tenant configuration sets
    include_unapproved_expenses to False.
    """

    async def aggregate(self, tenant_id, period):
        statuses = None if self.config.include_unapproved_expenses else [ExpenseStatus.APPROVED]
        expenses = await self.ledger.fetch_expenses(
            tenant_id,
            start=period.start,
            end=period.end,
            statuses=statuses
        )

        entries = {category.value: Decimal("0") for category in ExpenseCategory}
        for expense in expenses:
            entries[expense.category.value] += expense.amount

        return CategoryBreakdown.from_entries(entries, count=len(expenses))


OTHER_ENTRIES = ("interest", "investments", "other")


class OtherIncomeAggregator(PeriodAggregator):
    """Non-operating income. Zero until non-operating transactions are modeled."""

    async def aggregate(self, tenant_id, period):
        return CategoryBreakdown.zero(*OTHER_ENTRIES)


class OtherExpenseAggregator(PeriodAggregator):
    """Non-operating expenses. Zero until non-operating transactions are modeled."""

    async def aggregate(self, tenant_id, period):
        return CategoryBreakdown.zero(*OTHER_ENTRIES)


class TotalExpenseAggregator(PeriodAggregator):
    """COGS + operating + other expenses."""

    async def aggregate(self, tenant_id, period):
        cogs, operating, other = await gather_all(
            COGSAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            OperatingExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            OtherExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period)
        )
        return CategoryBreakdown.from_entries(
            {"cogs": cogs.total, "operating": operating.total, "other": other.total},
            count=cogs.count + operating.count + other.count
        )


class NetIncomeAggregator(PeriodAggregator):
    """Revenue plus other income minus total expenses; entries carry their sign."""

    async def aggregate(self, tenant_id, period):
        revenue, other_income, expenses = await gather_all(
            RevenueAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            OtherIncomeAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            TotalExpenseAggregator(self.ledger, self.config).aggregate(tenant_id, period)
        )
        return CategoryBreakdown.from_entries({
            "revenue": revenue.total,
            "other_income": other_income.total,
            "expenses": -expenses.total
        })


# ===== POINT-IN-TIME AGGREGATORS =====

class PointInTimeAggregator(BaseReportService):
    """aggregate(tenant_id, as_of) -> CategoryBreakdown"""

    async def aggregate(self, tenant_id: UUID, as_of: date) -> CategoryBreakdown:
        raise NotImplementedError


async def cash_balance(service: BaseReportService, tenant_id: UUID, as_of: date) -> Decimal:
    """Cumulative inflows minus outflows up to and including `as_of`."""
    payments = await service.ledger.fetch_payments(tenant_id, end=as_of)
    balance = Decimal("0")
    for payment in payments:
        if payment.type == PaymentType.INFLOW:
            balance += payment.amount
        else:
            balance -= payment.amount
    return to_money(balance)


async def accounts_receivable(service: BaseReportService, tenant_id: UUID, as_of: date) -> Decimal:
    """Totals of sent and overdue invoices dated on or before `as_of`."""
    invoices = await service.ledger.fetch_invoices(tenant_id, end=as_of, statuses=RECEIVABLE_STATUSES)
    return sum_money(invoice.total for invoice in invoices)


class CurrentAssetAggregator(PointInTimeAggregator):

    async def aggregate(self, tenant_id, as_of):
        cash, receivables, inventory, expenses = await gather_all(
            cash_balance(self, tenant_id, as_of),
            accounts_receivable(self, tenant_id, as_of),
            self.ledger.fetch_inventory(tenant_id, as_of),
            self.ledger.fetch_expenses(tenant_id, end=as_of)
        )

        inventory_value = sum(
            (item.quantity_on_hand * item.cost_price for item in inventory),
            Decimal("0")
        )
        prepaid = sum_money(
            expense.amount for expense in expenses
            if expense.category == ExpenseCategory.PREPAID
        )

        return CategoryBreakdown.from_entries({
            "cash": cash,
            "accounts_receivable": receivables,
            "inventory": to_money(inventory_value),
            "prepaid_expenses": prepaid,
            "other": ZERO
        })


class FixedAssetAggregator(PointInTimeAggregator):
    """
    Fixed assets. Zero until a fixed-asset register exists; consumers must
    not assume these entries stay zero.
    """

    async def aggregate(self, tenant_id, as_of):
        return CategoryBreakdown.zero(
            "equipment", "furniture", "buildings", "vehicles", "less_accumulated_depreciation"
        )


class CurrentLiabilityAggregator(PointInTimeAggregator):

    async def aggregate(self, tenant_id, as_of):
        expenses = await self.ledger.fetch_expenses(tenant_id, end=as_of)

        payables = sum_money(
            expense.amount for expense in expenses
            if expense.status == ExpenseStatus.PENDING
        )
        accrued = sum_money(
            expense.amount for expense in expenses
            if expense.category == ExpenseCategory.ACCRUED
        )

        return CategoryBreakdown.from_entries({
            "accounts_payable": payables,
            "accrued_expenses": accrued,
            "short_term_debt": ZERO,
            "taxes_payable": ZERO,
            "other": ZERO
        })


class LongTermLiabilityAggregator(PointInTimeAggregator):
    """Long-term liabilities. Zero until debt instruments are modeled."""

    async def aggregate(self, tenant_id, as_of):
        return CategoryBreakdown.zero("long_term_debt", "mortgages", "deferred_tax", "other")


class EquityAggregator(PointInTimeAggregator):
    """Owners' equity (configured constant) plus retained earnings."""

    async def calculate_retained_earnings(self, tenant_id: UUID, as_of: date) -> Decimal:
        """Cumulative net income from inception to the end of the prior calendar year."""
        end_of_last_year = date(as_of.year - 1, 12, 31)
        if end_of_last_year < self.config.inception_date:
            return ZERO

        closed_years = Period(self.config.inception_date, end_of_last_year)
        net_income = await NetIncomeAggregator(self.ledger, self.config).aggregate(tenant_id, closed_years)
        return net_income.total

    async def aggregate(self, tenant_id, as_of):
        retained_earnings = await self.calculate_retained_earnings(tenant_id, as_of)
        return CategoryBreakdown.from_entries({
            "owners_equity": to_money(self.config.owners_equity),
            "retained_earnings": retained_earnings,
            "current_year_earnings": ZERO
        })