"""
Shared pytest fixtures

InMemoryLedgerSource is a LedgerSource over plain lists of facts, used by
the engine and router tests. The SQL source is tested against SQLite in
app/modules/ledger/tests.py.
"""

import asyncio
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest

from app.core.config import ReportingConfig
from app.modules.ledger.facts import (
    ExpenseCategory,
    ExpenseFact,
    ExpenseStatus,
    InventoryFact,
    InvoiceFact,
    InvoiceStatus,
    PaymentCategory,
    PaymentFact,
    PaymentType,
    ProductCostFact,
)
from app.modules.ledger.source import LedgerSource


def _in_range(value: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


class InMemoryLedgerSource(LedgerSource):
    """
    Ledger fake. `delay` slows every query down; `error` is raised by every
    query instead of returning data.
    """

    def __init__(self, delay: float = 0, error: Optional[Exception] = None):
        self.delay = delay
        self.error = error
        self.calls = 0
        self.invoices = defaultdict(list)
        self.lines = defaultdict(list)
        self.expenses = defaultdict(list)
        self.payments = defaultdict(list)
        self.inventory = defaultdict(list)

    # ----- seeding helpers -----

    def add_invoice(self, tenant_id, total, status=InvoiceStatus.PAID, issue_date=date(2026, 10, 5),
                    due_date=None, paid_amount=None, lines=(), customer_id=None, number=None):
        total = Decimal(total)
        if paid_amount is None:
            paid_amount = total if status == InvoiceStatus.PAID else Decimal("0")
        invoice = InvoiceFact(
            id=uuid4(),
            total=total,
            paid_amount=Decimal(paid_amount),
            status=status,
            date=issue_date,
            due_date=due_date,
            customer_id=customer_id,
            number=number
        )
        self.invoices[tenant_id].append(invoice)
        for cost_price, quantity in lines:
            self.lines[tenant_id].append((invoice, ProductCostFact(
                product_id=uuid4() if cost_price is not None else None,
                cost_price=None if cost_price is None else Decimal(cost_price),
                quantity_sold=Decimal(quantity)
            )))
        return invoice

    def add_expense(self, tenant_id, amount, category=ExpenseCategory.RENT,
                    expense_date=date(2026, 10, 10), status=ExpenseStatus.APPROVED, description=None):
        expense = ExpenseFact(
            amount=Decimal(amount),
            category=ExpenseCategory.parse(category),
            date=expense_date,
            status=status,
            description=description
        )
        self.expenses[tenant_id].append(expense)
        return expense

    def add_payment(self, tenant_id, amount, type=PaymentType.INFLOW,
                    category=PaymentCategory.CUSTOMERS, payment_date=date(2026, 10, 6)):
        payment = PaymentFact(
            amount=Decimal(amount),
            date=payment_date,
            type=type,
            category=PaymentCategory.parse(category)
        )
        self.payments[tenant_id].append(payment)
        return payment

    def add_inventory(self, tenant_id, quantity, cost_price):
        item = InventoryFact(product_id=uuid4(), quantity_on_hand=Decimal(quantity), cost_price=Decimal(cost_price))
        self.inventory[tenant_id].append(item)
        return item

    # ----- LedgerSource -----

    async def _query(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

    async def fetch_invoices(self, tenant_id, *, start=None, end=None, statuses=None):
        await self._query()
        statuses = None if statuses is None else set(statuses)
        return [
            invoice for invoice in self.invoices[tenant_id]
            if _in_range(invoice.date, start, end) and (statuses is None or invoice.status in statuses)
        ]

    async def fetch_sold_product_costs(self, tenant_id, start, end):
        await self._query()
        return [
            line for invoice, line in self.lines[tenant_id]
            if invoice.status == InvoiceStatus.PAID and _in_range(invoice.date, start, end)
        ]

    async def fetch_expenses(self, tenant_id, *, start=None, end=None, statuses=None):
        await self._query()
        statuses = None if statuses is None else set(statuses)
        return [
            expense for expense in self.expenses[tenant_id]
            if _in_range(expense.date, start, end) and (statuses is None or expense.status in statuses)
        ]

    async def fetch_payments(self, tenant_id, *, start=None, end=None, payment_type=None):
        await self._query()
        return [
            payment for payment in self.payments[tenant_id]
            if _in_range(payment.date, start, end) and (payment_type is None or payment.type == payment_type)
        ]

    async def fetch_inventory(self, tenant_id, as_of):
        await self._query()
        return list(self.inventory[tenant_id])


# ===== FIXTURES =====

@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def ledger() -> InMemoryLedgerSource:
    return InMemoryLedgerSource()


@pytest.fixture
def reporting_config() -> ReportingConfig:
    return ReportingConfig()
