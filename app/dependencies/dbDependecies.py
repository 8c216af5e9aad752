from fastapi import Depends
from typing import Annotated
from app.database.database import AsyncSessionLocal
from app.modules.ledger.source import LedgerSource, SqlLedgerSource


def get_ledger_source() -> LedgerSource:
    """Ledger source backed by the async session factory; one session per query"""
    return SqlLedgerSource(AsyncSessionLocal)


# Read access to the tenant ledger for report endpoints
ledger_dependency = Annotated[LedgerSource, Depends(get_ledger_source)]
