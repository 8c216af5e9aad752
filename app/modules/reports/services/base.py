"""
Base service class for Reports module

Provides the pieces every report builder shares: the ledger source, the
tenant reporting configuration and concurrent execution of independent
aggregator calls.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional

from app.core.config import ReportingConfig
from app.modules.ledger.source import LedgerSource

logger = logging.getLogger(__name__)


async def gather_all(*aws: Awaitable[Any]) -> list:
    """
    Run independent awaitables concurrently and return their results in order.

    If one fails, the others are cancelled before the error propagates, so
    no partially built report survives a failure.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Let cancelled tasks unwind their sessions before propagating
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BaseReportService:
    """Base service class for all report builders"""

    def __init__(self, ledger: LedgerSource, config: Optional[ReportingConfig] = None):
        self.ledger = ledger
        self.config = config or ReportingConfig()

    @property
    def currency(self) -> str:
        return self.config.currency
