"""
Tests for the ledger module

SqlLedgerSource is exercised against an in-memory SQLite database through
aiosqlite. Covers tenant scoping, date bounds, category parsing, sold
product costs and wrapping of database errors.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database.database import Base
from app.modules.ledger.facts import (
    ExpenseCategory,
    ExpenseStatus,
    InvoiceStatus,
    PaymentCategory,
    PaymentType,
)
from app.modules.ledger.models import Expense, Invoice, InvoiceLineItem, Payment, Product
from app.modules.ledger.source import SqlLedgerSource
from app.modules.reports.exceptions import LedgerSourceError


# ===== FIXTURES =====

@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def source(session_factory):
    return SqlLedgerSource(session_factory)


@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def other_tenant_id():
    return uuid4()


async def add_all(session_factory, *objects):
    async with session_factory() as session:
        session.add_all(objects)
        await session.commit()


def make_invoice(tenant_id, total, status=InvoiceStatus.PAID, issue_date=date(2026, 10, 5), **kwargs):
    return Invoice(
        id=uuid4(),
        tenant_id=tenant_id,
        status=status,
        issue_date=issue_date,
        subtotal=Decimal(total),
        total_amount=Decimal(total),
        paid_amount=Decimal(total) if status == InvoiceStatus.PAID else Decimal("0"),
        **kwargs
    )


def make_product(tenant_id, cost_price, quantity_on_hand="0", **kwargs):
    return Product(
        id=uuid4(),
        tenant_id=tenant_id,
        name="Widget",
        sku=f"SKU-{uuid4().hex[:8]}",
        cost_price=Decimal(cost_price),
        quantity_on_hand=Decimal(quantity_on_hand),
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        **kwargs
    )


# ===== TESTS DE FACTURAS =====

class TestInvoices:
    """Tests for invoice queries"""

    async def test_scoped_by_tenant(self, source, session_factory, tenant_id, other_tenant_id):
        await add_all(
            session_factory,
            make_invoice(tenant_id, "100.00"),
            make_invoice(other_tenant_id, "999.00")
        )

        invoices = await source.fetch_invoices(tenant_id)

        assert len(invoices) == 1
        assert invoices[0].total == Decimal("100.00")
        assert invoices[0].status == InvoiceStatus.PAID

    async def test_date_bounds_are_inclusive(self, source, session_factory, tenant_id):
        await add_all(
            session_factory,
            make_invoice(tenant_id, "1.00", issue_date=date(2026, 10, 1)),
            make_invoice(tenant_id, "2.00", issue_date=date(2026, 10, 31)),
            make_invoice(tenant_id, "4.00", issue_date=date(2026, 11, 1))
        )

        invoices = await source.fetch_invoices(tenant_id, start=date(2026, 10, 1), end=date(2026, 10, 31))

        assert sorted(invoice.total for invoice in invoices) == [Decimal("1.00"), Decimal("2.00")]

    async def test_status_filter(self, source, session_factory, tenant_id):
        await add_all(
            session_factory,
            make_invoice(tenant_id, "100.00"),
            make_invoice(tenant_id, "50.00", status=InvoiceStatus.SENT, due_date=date(2026, 11, 5),
                         number="INV-0002")
        )

        invoices = await source.fetch_invoices(tenant_id, statuses=[InvoiceStatus.SENT])

        assert [invoice.total for invoice in invoices] == [Decimal("50.00")]
        assert invoices[0].due_date == date(2026, 11, 5)
        assert invoices[0].number == "INV-0002"

    async def test_no_matches_returns_empty_list(self, source, tenant_id):
        assert await source.fetch_invoices(tenant_id) == []


# ===== TESTS DE COSTOS =====

class TestSoldProductCosts:
    """Tests for cost of goods sold lines"""

    async def test_lines_of_paid_invoices(self, source, session_factory, tenant_id):
        product = make_product(tenant_id, "10.00")
        paid = make_invoice(tenant_id, "90.00")
        sent = make_invoice(tenant_id, "30.00", status=InvoiceStatus.SENT)
        await add_all(
            session_factory,
            product,
            paid,
            sent,
            InvoiceLineItem(invoice_id=paid.id, product_id=product.id, quantity=Decimal("3"),
                            unit_price=Decimal("30.00"), line_total=Decimal("90.00")),
            InvoiceLineItem(invoice_id=sent.id, product_id=product.id, quantity=Decimal("1"),
                            unit_price=Decimal("30.00"), line_total=Decimal("30.00"))
        )

        lines = await source.fetch_sold_product_costs(tenant_id, date(2026, 10, 1), date(2026, 10, 31))

        assert len(lines) == 1
        assert lines[0].cost_price == Decimal("10.00")
        assert lines[0].quantity_sold == Decimal("3")

    async def test_missing_product_has_no_cost(self, source, session_factory, tenant_id):
        invoice = make_invoice(tenant_id, "40.00")
        await add_all(
            session_factory,
            invoice,
            InvoiceLineItem(invoice_id=invoice.id, product_id=None, quantity=Decimal("2"),
                            unit_price=Decimal("20.00"), line_total=Decimal("40.00"))
        )

        lines = await source.fetch_sold_product_costs(tenant_id, date(2026, 10, 1), date(2026, 10, 31))

        assert len(lines) == 1
        assert lines[0].cost_price is None


# ===== TESTS DE GASTOS Y PAGOS =====

class TestExpensesAndPayments:
    """Tests for expense and payment queries"""

    async def test_expense_categories_are_parsed(self, source, session_factory, tenant_id):
        await add_all(
            session_factory,
            Expense(tenant_id=tenant_id, category="rent", amount=Decimal("50.00"),
                    expense_date=date(2026, 10, 10), status=ExpenseStatus.APPROVED, description="October rent"),
            Expense(tenant_id=tenant_id, category="Team offsite", amount=Decimal("20.00"),
                    expense_date=date(2026, 10, 11)),
            Expense(tenant_id=tenant_id, category=None, amount=Decimal("5.00"),
                    expense_date=date(2026, 10, 12))
        )

        expenses = await source.fetch_expenses(tenant_id)

        assert [expense.category for expense in expenses] == [
            ExpenseCategory.RENT, ExpenseCategory.OTHER, ExpenseCategory.OTHER
        ]
        assert expenses[1].status == ExpenseStatus.PENDING
        assert expenses[0].description == "October rent"

    async def test_expense_status_filter(self, source, session_factory, tenant_id):
        await add_all(
            session_factory,
            Expense(tenant_id=tenant_id, category="Rent", amount=Decimal("50.00"),
                    expense_date=date(2026, 10, 10), status=ExpenseStatus.APPROVED),
            Expense(tenant_id=tenant_id, category="Rent", amount=Decimal("70.00"),
                    expense_date=date(2026, 10, 10), status=ExpenseStatus.REJECTED)
        )

        expenses = await source.fetch_expenses(tenant_id, statuses=[ExpenseStatus.APPROVED])

        assert [expense.amount for expense in expenses] == [Decimal("50.00")]

    async def test_payments_by_type_and_category(self, source, session_factory, tenant_id):
        await add_all(
            session_factory,
            Payment(tenant_id=tenant_id, amount=Decimal("2000.00"), type=PaymentType.INFLOW,
                    category="Loans", payment_date=date(2026, 10, 9)),
            Payment(tenant_id=tenant_id, amount=Decimal("100.00"), type=PaymentType.OUTFLOW,
                    category="suppliers", payment_date=date(2026, 10, 7))
        )

        outflows = await source.fetch_payments(tenant_id, payment_type=PaymentType.OUTFLOW)
        everything = await source.fetch_payments(tenant_id, end=date(2026, 10, 31))

        assert [payment.category for payment in outflows] == [PaymentCategory.SUPPLIERS]
        assert [payment.category for payment in everything] == [PaymentCategory.SUPPLIERS, PaymentCategory.LOANS]


# ===== TESTS DE INVENTARIO =====

class TestInventory:
    """Tests for inventory valuation inputs"""

    async def test_only_active_products(self, source, session_factory, tenant_id, other_tenant_id):
        await add_all(
            session_factory,
            make_product(tenant_id, "100.00", quantity_on_hand="3"),
            make_product(tenant_id, "5.00", quantity_on_hand="10", is_active=False),
            make_product(other_tenant_id, "1.00", quantity_on_hand="1")
        )

        inventory = await source.fetch_inventory(tenant_id, date(2026, 10, 31))

        assert len(inventory) == 1
        assert inventory[0].quantity_on_hand * inventory[0].cost_price == Decimal("300.00")


# ===== TESTS DE ERRORES =====

class TestErrors:
    """Tests for data-access failures"""

    async def test_database_error_is_wrapped(self, tenant_id):
        class BrokenSession:
            async def __aenter__(self):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

            async def __aexit__(self, *args):
                return False

        source = SqlLedgerSource(BrokenSession)

        with pytest.raises(LedgerSourceError) as exc_info:
            await source.fetch_payments(tenant_id)

        assert isinstance(exc_info.value.__cause__, OperationalError)
