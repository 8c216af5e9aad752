"""
Trial Balance builder

Flattens the balance-sheet sections into debit/credit rows. Assets sit on
the debit side, liabilities and equity on the credit side; a negative
balance moves to the opposite column.
"""

import logging
from datetime import date
from typing import List
from uuid import UUID

from ..money import ZERO, is_balanced, sum_money, to_money
from ..schemas import CategoryBreakdown, TrialBalanceReport, TrialBalanceRow, TrialBalanceTotals
from .aggregators import (
    CurrentAssetAggregator,
    CurrentLiabilityAggregator,
    EquityAggregator,
    FixedAssetAggregator,
    LongTermLiabilityAggregator,
)
from .base import BaseReportService, gather_all

logger = logging.getLogger(__name__)

DEBIT = "debit"
CREDIT = "credit"


def account_label(section: str, entry: str) -> str:
    return f"{section} - {entry.replace('_', ' ').title()}"


def section_rows(section: str, account_type: str, normal_side: str, breakdown: CategoryBreakdown) -> List[TrialBalanceRow]:
    rows = []
    for entry, amount in breakdown.entries.items():
        if amount == ZERO:
            continue
        side = normal_side
        if amount < ZERO:
            side = CREDIT if normal_side == DEBIT else DEBIT
        balance = abs(amount)
        rows.append(TrialBalanceRow(
            account_name=account_label(section, entry),
            account_type=account_type,
            debit=balance if side == DEBIT else ZERO,
            credit=balance if side == CREDIT else ZERO
        ))
    return rows


class TrialBalanceBuilder(BaseReportService):

    async def build(self, tenant_id: UUID, as_of: date) -> TrialBalanceReport:
        current_assets, fixed_assets, current_liabilities, long_term_liabilities, equity = await gather_all(
            CurrentAssetAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            FixedAssetAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            CurrentLiabilityAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            LongTermLiabilityAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            EquityAggregator(self.ledger, self.config).aggregate(tenant_id, as_of)
        )

        accounts = (
            section_rows("Current Assets", "Asset", DEBIT, current_assets)
            + section_rows("Fixed Assets", "Asset", DEBIT, fixed_assets)
            + section_rows("Current Liabilities", "Liability", CREDIT, current_liabilities)
            + section_rows("Long-term Liabilities", "Liability", CREDIT, long_term_liabilities)
            + section_rows("Equity", "Equity", CREDIT, equity)
        )

        debits = sum_money(row.debit for row in accounts)
        credits = sum_money(row.credit for row in accounts)
        balanced = is_balanced(debits, credits)

        if not balanced:
            logger.warning(
                f"Trial balance for tenant {tenant_id} as of {as_of} is unbalanced: "
                f"debits={debits} credits={credits}"
            )

        return TrialBalanceReport(
            as_of_date=as_of,
            currency=self.currency,
            accounts=accounts,
            totals=TrialBalanceTotals(
                debits=debits,
                credits=credits,
                difference=to_money(debits - credits),
                balanced=balanced
            )
        )
