"""
Dashboard insights

Short lists shown next to the dashboard figures: best customers, latest
expenses and the receivables that need follow-up. Built from facts the
dashboard has already fetched; no queries of their own.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List

from app.modules.ledger.facts import ExpenseFact, InvoiceFact
from ..money import to_money
from ..schemas import CustomerRevenue, OutstandingInvoice, OverdueInvoice, RecentExpense

INSIGHT_LIMIT = 10
RECENT_EXPENSE_DAYS = 30


def top_customers(paid_invoices: Iterable[InvoiceFact], limit: int = INSIGHT_LIMIT) -> List[CustomerRevenue]:
    """Customers ranked by paid revenue. Invoices without a customer are skipped."""
    totals = defaultdict(lambda: Decimal("0"))
    counts = defaultdict(int)
    for invoice in paid_invoices:
        if invoice.customer_id is None:
            continue
        totals[invoice.customer_id] += invoice.total
        counts[invoice.customer_id] += 1

    ranked = sorted(totals, key=lambda customer_id: (-totals[customer_id], -counts[customer_id]))
    return [
        CustomerRevenue(
            customer_id=customer_id,
            total_revenue=to_money(totals[customer_id]),
            invoice_count=counts[customer_id],
            average_invoice=to_money(totals[customer_id] / counts[customer_id])
        )
        for customer_id in ranked[:limit]
    ]


def recent_expenses(
    expenses: Iterable[ExpenseFact],
    today: date,
    days: int = RECENT_EXPENSE_DAYS,
    limit: int = INSIGHT_LIMIT
) -> List[RecentExpense]:
    """Newest first, dated within the last `days` days up to today."""
    cutoff = today - timedelta(days=days)
    recent = [expense for expense in expenses if cutoff <= expense.date <= today]
    recent.sort(key=lambda expense: expense.date, reverse=True)
    return [
        RecentExpense(
            category=expense.category.value,
            description=expense.description,
            amount=to_money(expense.amount),
            expense_date=expense.date
        )
        for expense in recent[:limit]
    ]


def _by_due_date(invoices: Iterable[InvoiceFact]) -> List[InvoiceFact]:
    # Invoices without a due date go last
    return sorted(invoices, key=lambda invoice: (invoice.due_date is None, invoice.due_date or invoice.date))


def outstanding_invoices(
    receivables: Iterable[InvoiceFact],
    today: date,
    limit: int = INSIGHT_LIMIT
) -> List[OutstandingInvoice]:
    return [
        OutstandingInvoice(
            id=invoice.id,
            number=invoice.number,
            customer_id=invoice.customer_id,
            amount=to_money(invoice.total),
            due_date=invoice.due_date,
            days_outstanding=None if invoice.due_date is None else (today - invoice.due_date).days
        )
        for invoice in _by_due_date(receivables)[:limit]
    ]


def overdue_invoices(
    receivables: Iterable[InvoiceFact],
    today: date,
    limit: int = INSIGHT_LIMIT
) -> List[OverdueInvoice]:
    overdue = [invoice for invoice in receivables if is_overdue(invoice, today)]
    return [
        OverdueInvoice(
            id=invoice.id,
            number=invoice.number,
            customer_id=invoice.customer_id,
            amount=to_money(invoice.total),
            due_date=invoice.due_date,
            days_overdue=(today - invoice.due_date).days
        )
        for invoice in _by_due_date(overdue)[:limit]
    ]


def is_overdue(invoice: InvoiceFact, today: date) -> bool:
    return invoice.due_date is not None and invoice.due_date < today
