"""
LedgerSource: read-only query interface used by the reports engine.

Every query is scoped by tenant. Dates are inclusive. Implementations
must raise LedgerSourceError for data-access failures and return empty
lists (never errors) when nothing matches.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError

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
from app.modules.ledger.models import Expense, Invoice, InvoiceLineItem, Payment, Product
from app.modules.reports.exceptions import LedgerSourceError

logger = logging.getLogger(__name__)


class LedgerSource(ABC):
    """Read-only access to the transactional facts of a tenant."""

    @abstractmethod
    async def fetch_invoices(
        self,
        tenant_id: UUID,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        statuses: Optional[Iterable[InvoiceStatus]] = None
    ) -> List[InvoiceFact]:
        """Invoices with issue date in [start, end]; open bounds when None."""

    @abstractmethod
    async def fetch_sold_product_costs(
        self,
        tenant_id: UUID,
        start: date,
        end: date
    ) -> List[ProductCostFact]:
        """One fact per line item of the paid invoices dated in [start, end]."""

    @abstractmethod
    async def fetch_expenses(
        self,
        tenant_id: UUID,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        statuses: Optional[Iterable[ExpenseStatus]] = None
    ) -> List[ExpenseFact]:
        ...

    @abstractmethod
    async def fetch_payments(
        self,
        tenant_id: UUID,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        payment_type: Optional[PaymentType] = None
    ) -> List[PaymentFact]:
        ...

    @abstractmethod
    async def fetch_inventory(self, tenant_id: UUID, as_of: date) -> List[InventoryFact]:
        """Active products that existed on `as_of`."""


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class SqlLedgerSource(LedgerSource):
    """
    LedgerSource backed by the product's SQL tables.

    Opens one session per query, so aggregators running concurrently never
    share a session.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def _fetch_rows(self, statement, what: str):
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                return result.all()
        except (SQLAlchemyError, OSError) as exc:
            logger.error(f"Ledger query for {what} failed: {exc}")
            raise LedgerSourceError(f"Failed to load {what}: {exc}") from exc

    async def fetch_invoices(self, tenant_id, *, start=None, end=None, statuses=None):
        stmt = select(
            Invoice.id,
            Invoice.total_amount,
            Invoice.paid_amount,
            Invoice.status,
            Invoice.issue_date,
            Invoice.due_date,
            Invoice.customer_id,
            Invoice.number
        ).where(Invoice.tenant_id == tenant_id)

        if statuses is not None:
            stmt = stmt.where(Invoice.status.in_(list(statuses)))
        if start is not None:
            stmt = stmt.where(Invoice.issue_date >= start)
        if end is not None:
            stmt = stmt.where(Invoice.issue_date <= end)

        rows = await self._fetch_rows(stmt.order_by(Invoice.issue_date), "invoices")
        return [
            InvoiceFact(
                id=row.id,
                total=_to_decimal(row.total_amount),
                paid_amount=_to_decimal(row.paid_amount),
                status=row.status,
                date=row.issue_date,
                due_date=row.due_date,
                customer_id=row.customer_id,
                number=row.number
            )
            for row in rows
        ]

    async def fetch_sold_product_costs(self, tenant_id, start, end):
        stmt = select(
            InvoiceLineItem.product_id,
            Product.cost_price,
            InvoiceLineItem.quantity
        ).select_from(
            InvoiceLineItem
        ).join(
            Invoice, InvoiceLineItem.invoice_id == Invoice.id
        ).outerjoin(
            Product, and_(
                Product.id == InvoiceLineItem.product_id,
                Product.tenant_id == tenant_id
            )
        ).where(
            Invoice.tenant_id == tenant_id,
            Invoice.status == InvoiceStatus.PAID,
            Invoice.issue_date >= start,
            Invoice.issue_date <= end
        )

        rows = await self._fetch_rows(stmt, "product costs")
        return [
            ProductCostFact(
                product_id=row.product_id,
                cost_price=None if row.cost_price is None else _to_decimal(row.cost_price),
                quantity_sold=_to_decimal(row.quantity)
            )
            for row in rows
        ]

    async def fetch_expenses(self, tenant_id, *, start=None, end=None, statuses=None):
        stmt = select(
            Expense.amount,
            Expense.category,
            Expense.expense_date,
            Expense.status,
            Expense.description
        ).where(Expense.tenant_id == tenant_id)

        if statuses is not None:
            stmt = stmt.where(Expense.status.in_(list(statuses)))
        if start is not None:
            stmt = stmt.where(Expense.expense_date >= start)
        if end is not None:
            stmt = stmt.where(Expense.expense_date <= end)

        rows = await self._fetch_rows(stmt.order_by(Expense.expense_date), "expenses")
        return [
            ExpenseFact(
                amount=_to_decimal(row.amount),
                category=ExpenseCategory.parse(row.category),
                date=row.expense_date,
                status=row.status,
                description=row.description
            )
            for row in rows
        ]

    async def fetch_payments(self, tenant_id, *, start=None, end=None, payment_type=None):
        stmt = select(
            Payment.amount,
            Payment.payment_date,
            Payment.type,
            Payment.category
        ).where(Payment.tenant_id == tenant_id)

        if payment_type is not None:
            stmt = stmt.where(Payment.type == payment_type)
        if start is not None:
            stmt = stmt.where(Payment.payment_date >= start)
        if end is not None:
            stmt = stmt.where(Payment.payment_date <= end)

        rows = await self._fetch_rows(stmt.order_by(Payment.payment_date), "payments")
        return [
            PaymentFact(
                amount=_to_decimal(row.amount),
                date=row.payment_date,
                type=row.type,
                category=PaymentCategory.parse(row.category)
            )
            for row in rows
        ]

    async def fetch_inventory(self, tenant_id, as_of):
        # Products created at any time on `as_of` are included
        cutoff = datetime.combine(as_of + timedelta(days=1), time.min, tzinfo=timezone.utc)
        stmt = select(
            Product.id,
            Product.quantity_on_hand,
            Product.cost_price
        ).where(
            Product.tenant_id == tenant_id,
            Product.is_active.is_(True),
            Product.created_at < cutoff
        )

        rows = await self._fetch_rows(stmt, "inventory")
        return [
            InventoryFact(
                product_id=row.id,
                quantity_on_hand=_to_decimal(row.quantity_on_hand),
                cost_price=_to_decimal(row.cost_price)
            )
            for row in rows
        ]
