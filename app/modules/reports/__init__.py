"""
Reports Module

Financial statements computed on demand from the tenant's ledger:
Profit & Loss, Balance Sheet, Cash Flow and Trial Balance, with
period-over-period comparisons and monthly trends.

This module creates no tables. It reads invoices, payments, expenses and
products through a LedgerSource and returns immutable report objects.

Architecture Pattern: Service Layer
- routers/ -> FastAPI endpoints and HTTP error mapping
- services/ -> aggregators, statement builders and the service facade
- schemas/ -> Pydantic report models
- utils/ -> CSV export
"""

__version__ = "1.0.0"
