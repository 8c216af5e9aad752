"""
Ledger module

Read side of the transactional tables (invoices, line items, products,
payments, expenses) as consumed by the financial reports engine:

- models.py -> SQLAlchemy read models over tables owned by other modules
- facts.py  -> immutable fact projections and closed category enums
- source.py -> LedgerSource interface and its SQLAlchemy implementation
"""
