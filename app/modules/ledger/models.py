"""
SQLAlchemy read models for the ledger

These tables are owned and written by the invoicing, POS, expenses and
products modules. The reports engine only reads them through
SqlLedgerSource; nothing here is created or updated by the engine.

Categories are stored as free-form strings (legacy data) and parsed into
closed enumerations at the LedgerSource boundary.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, Enum, Date, Text, Uuid
from sqlalchemy.orm import relationship
from datetime import date
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin
from app.modules.ledger.facts import InvoiceStatus, ExpenseStatus, PaymentType


class Invoice(Base, TenantMixin, TimestampMixin):
    __tablename__ = "invoices"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    number = Column(String(50), nullable=True)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.DRAFT)

    # Dates
    issue_date = Column(Date, nullable=False, default=date.today)
    due_date = Column(Date, nullable=True)

    currency = Column(String(3), nullable=False, default="USD")

    # Totals (calculated by the invoicing module)
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    taxes_total = Column(Numeric(15, 2), nullable=False, default=0)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(15, 2), nullable=False, default=0)

    line_items = relationship("InvoiceLineItem", back_populates="invoice")


class InvoiceLineItem(Base, TimestampMixin):
    __tablename__ = "invoice_line_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id"), nullable=False, index=True)
    # Null once the product has been removed from the catalog
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=True)

    quantity = Column(Numeric(10, 3), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    line_total = Column(Numeric(15, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="line_items")
    product = relationship("Product")


class Product(Base, TenantMixin, TimestampMixin):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False)
    sku = Column(String(50), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    price_sale = Column(Numeric(15, 2), nullable=False, default=0)
    cost_price = Column(Numeric(15, 2), nullable=False, default=0)
    quantity_on_hand = Column(Numeric(12, 3), nullable=False, default=0)


class Payment(Base, TenantMixin, TimestampMixin):
    """Cash movement: customer receipts, supplier payments, loans, capital."""
    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id"), nullable=True)

    amount = Column(Numeric(15, 2), nullable=False)
    type = Column(Enum(PaymentType), nullable=False)
    category = Column(String(100), nullable=True)
    payment_date = Column(Date, nullable=False, default=date.today)
    reference = Column(String(100), nullable=True)


class Expense(Base, TenantMixin, TimestampMixin):
    __tablename__ = "expenses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    expense_date = Column(Date, nullable=False, default=date.today)
    status = Column(Enum(ExpenseStatus), nullable=False, default=ExpenseStatus.PENDING)
