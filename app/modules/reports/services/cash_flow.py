"""
Cash Flow builder

Operating activities use either the direct method (actual payments by
category) or the indirect method (net income reconciled through the
change in receivables). Investing and financing are shared by both.

Investing activities come from Capital Equipment expenses, not from
outflow payments, so `ending_cash` is beginning cash plus the reported
flows and can differ from the balance-sheet cash figure at period end,
which is derived from payments only.
"""

import enum
import logging
from decimal import Decimal
from uuid import UUID

from app.modules.ledger.facts import ExpenseCategory, PaymentCategory, PaymentType
from ..exceptions import UnknownCashFlowMethodError
from ..money import ZERO, to_money
from ..periods import Period, day_before
from ..schemas import CashFlowReport, CashFlowSummary, CategoryBreakdown, PeriodInfo
from .aggregators import NetIncomeAggregator, accounts_receivable, cash_balance
from .base import BaseReportService, gather_all

logger = logging.getLogger(__name__)


class CashFlowMethod(str, enum.Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"


def parse_cash_flow_method(value) -> CashFlowMethod:
    try:
        return CashFlowMethod(value)
    except ValueError:
        raise UnknownCashFlowMethodError(f"Unknown cash flow method: {value!r}")


FINANCING_CATEGORIES = (PaymentCategory.LOANS, PaymentCategory.LOAN_PAYMENTS, PaymentCategory.CAPITAL)
SUPPLIER_CATEGORIES = (PaymentCategory.SUPPLIERS, PaymentCategory.INVENTORY)
LOAN_CATEGORIES = (PaymentCategory.LOANS, PaymentCategory.LOAN_PAYMENTS)


class CashFlowBuilder(BaseReportService):

    async def build(self, tenant_id: UUID, period: Period, method=CashFlowMethod.INDIRECT) -> CashFlowReport:
        method = parse_cash_flow_method(method)

        operating, investing, financing, beginning_cash = await gather_all(
            self.operating_activities(tenant_id, period, method),
            self.investing_activities(tenant_id, period),
            self.financing_activities(tenant_id, period),
            cash_balance(self, tenant_id, day_before(period.start))
        )

        net_cash_flow = to_money(operating.total + investing.total + financing.total)
        ending_cash = to_money(beginning_cash + net_cash_flow)

        logger.debug(
            f"Cash flow ({method.value}) {period.name} for tenant {tenant_id}: "
            f"begin={beginning_cash} net={net_cash_flow} end={ending_cash}"
        )

        return CashFlowReport(
            period=PeriodInfo.from_period(period),
            currency=self.currency,
            method=method.value,
            beginning_cash=beginning_cash,
            operating=operating,
            investing=investing,
            financing=financing,
            net_cash_flow=net_cash_flow,
            ending_cash=ending_cash,
            summary=CashFlowSummary(
                cash_generated=max(ZERO, net_cash_flow),
                cash_used=max(ZERO, -net_cash_flow),
                net_change=net_cash_flow,
                ending_balance=ending_cash
            )
        )

    async def operating_activities(self, tenant_id: UUID, period: Period, method: CashFlowMethod) -> CategoryBreakdown:
        if method == CashFlowMethod.DIRECT:
            return await self._direct_operating(tenant_id, period)
        return await self._indirect_operating(tenant_id, period)

    async def _indirect_operating(self, tenant_id, period):
        net_income, receivables_start, receivables_end = await gather_all(
            NetIncomeAggregator(self.ledger, self.config).aggregate(tenant_id, period),
            accounts_receivable(self, tenant_id, day_before(period.start)),
            accounts_receivable(self, tenant_id, period.end)
        )
        # Depreciation stays zero until fixed assets are modeled
        depreciation = ZERO
        # Growth in receivables is income not yet collected
        working_capital_changes = -(receivables_end - receivables_start)

        return CategoryBreakdown.from_entries({
            "net_income": net_income.total,
            "depreciation": depreciation,
            "working_capital_changes": working_capital_changes,
            "other": ZERO
        })

    async def _direct_operating(self, tenant_id, period):
        payments = await self.ledger.fetch_payments(tenant_id, start=period.start, end=period.end)

        from_customers = Decimal("0")
        to_suppliers = Decimal("0")
        for_operating = Decimal("0")
        count = 0
        for payment in payments:
            if payment.category in FINANCING_CATEGORIES:
                continue
            count += 1
            if payment.type == PaymentType.INFLOW:
                from_customers += payment.amount
            elif payment.category in SUPPLIER_CATEGORIES:
                to_suppliers += payment.amount
            else:
                for_operating += payment.amount

        return CategoryBreakdown.from_entries(
            {
                "cash_from_customers": from_customers,
                "cash_to_suppliers": -to_suppliers,
                "cash_for_operating": -for_operating,
                "other": ZERO
            },
            count=count
        )

    async def investing_activities(self, tenant_id: UUID, period: Period) -> CategoryBreakdown:
        """Capital expenditures are the period's Capital Equipment expenses, whatever their payment."""
        expenses = await self.ledger.fetch_expenses(tenant_id, start=period.start, end=period.end)
        capital_expenditures = sum(
            (expense.amount for expense in expenses if expense.category == ExpenseCategory.CAPITAL_EQUIPMENT),
            Decimal("0")
        )
        return CategoryBreakdown.from_entries({
            "capital_expenditures": -capital_expenditures,
            "investments": ZERO,
            "disposals": ZERO,
            "other": ZERO
        })

    async def financing_activities(self, tenant_id: UUID, period: Period) -> CategoryBreakdown:
        payments = await self.ledger.fetch_payments(tenant_id, start=period.start, end=period.end)

        entries = {
            "loan_proceeds": Decimal("0"),
            "loan_payments": Decimal("0"),
            "equity_investments": Decimal("0"),
            "distributions": Decimal("0"),
            "other": ZERO
        }
        count = 0
        for payment in payments:
            if payment.category not in FINANCING_CATEGORIES:
                continue
            count += 1
            inflow = payment.type == PaymentType.INFLOW
            if payment.category in LOAN_CATEGORIES:
                if inflow:
                    entries["loan_proceeds"] += payment.amount
                else:
                    entries["loan_payments"] -= payment.amount
            elif inflow:
                entries["equity_investments"] += payment.amount
            else:
                entries["distributions"] -= payment.amount

        return CategoryBreakdown.from_entries(entries, count=count)
