"""
Ledger facts

Read-only projections of the transactional records the reports engine
consumes. LedgerSource implementations build these; aggregators only
read them.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID
import enum


class InvoiceStatus(enum.Enum):
    DRAFT = "draft"          # Borrador
    SENT = "sent"            # Enviada, pendiente de pago
    PAID = "paid"            # Pagada completamente
    OVERDUE = "overdue"      # Vencida sin pago
    CANCELLED = "cancelled"  # Anulada


# Invoices that still represent money owed by the customer
RECEIVABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.OVERDUE)


class ExpenseStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentType(enum.Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class _ClosedCategory(enum.Enum):
    """Enum with a lenient parser that never creates new buckets."""

    @classmethod
    def parse(cls, value: Optional[str]):
        if isinstance(value, cls):
            return value
        if value:
            normalized = value.strip().lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return cls.OTHER


class ExpenseCategory(_ClosedCategory):
    RENT = "Rent"
    UTILITIES = "Utilities"
    SALARIES = "Salaries"
    SUPPLIES = "Supplies"
    MARKETING = "Marketing"
    TRAVEL = "Travel"
    INSURANCE = "Insurance"
    PROFESSIONAL_SERVICES = "Professional Services"
    EQUIPMENT = "Equipment"
    SOFTWARE = "Software"
    MAINTENANCE = "Maintenance"
    OFFICE_EXPENSES = "Office Expenses"
    TELECOMMUNICATIONS = "Telecommunications"
    PREPAID = "Prepaid"
    ACCRUED = "Accrued"
    CAPITAL_EQUIPMENT = "Capital Equipment"
    OTHER = "Other"


class PaymentCategory(_ClosedCategory):
    CUSTOMERS = "Customers"
    SALES = "Sales"
    SUPPLIERS = "Suppliers"
    INVENTORY = "Inventory"
    OPERATING = "Operating"
    CAPITAL = "Capital"
    LOANS = "Loans"
    LOAN_PAYMENTS = "Loan Payments"
    OTHER = "Other"


@dataclass(frozen=True)
class InvoiceFact:
    id: UUID
    total: Decimal
    paid_amount: Decimal
    status: InvoiceStatus
    date: date
    due_date: Optional[date] = None
    customer_id: Optional[UUID] = None
    number: Optional[str] = None


@dataclass(frozen=True)
class PaymentFact:
    amount: Decimal
    date: date
    type: PaymentType
    category: PaymentCategory = PaymentCategory.OTHER


@dataclass(frozen=True)
class ExpenseFact:
    amount: Decimal
    category: ExpenseCategory
    date: date
    status: ExpenseStatus
    description: Optional[str] = None


@dataclass(frozen=True)
class ProductCostFact:
    """One line of a sold invoice. cost_price is None when the product is gone."""
    product_id: Optional[UUID]
    cost_price: Optional[Decimal]
    quantity_sold: Decimal


@dataclass(frozen=True)
class InventoryFact:
    product_id: UUID
    quantity_on_hand: Decimal
    cost_price: Decimal
