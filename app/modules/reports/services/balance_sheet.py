"""
Balance Sheet builder

Assets = Liabilities + Equity is checked, not enforced: with a partial
ledger model the sheet is often unbalanced, and that is reported through
`totals.balanced`, never raised.
"""

import logging
from datetime import date
from typing import Dict
from uuid import UUID

from ..money import is_balanced, to_money
from ..periods import ComparisonMode
from ..schemas import AssetsSection, BalanceSheetReport, BalanceSheetTotals, LiabilitiesSection
from .aggregators import (
    CurrentAssetAggregator,
    CurrentLiabilityAggregator,
    EquityAggregator,
    FixedAssetAggregator,
    LongTermLiabilityAggregator,
)
from .base import BaseReportService, gather_all
from .comparison import ComparisonEngine

logger = logging.getLogger(__name__)


class BalanceSheetBuilder(BaseReportService):

    async def build(
        self,
        tenant_id: UUID,
        as_of: date,
        comparison: ComparisonMode = ComparisonMode.NONE
    ) -> BalanceSheetReport:
        current_assets, fixed_assets, current_liabilities, long_term_liabilities, equity = await gather_all(
            CurrentAssetAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            FixedAssetAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            CurrentLiabilityAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            LongTermLiabilityAggregator(self.ledger, self.config).aggregate(tenant_id, as_of),
            EquityAggregator(self.ledger, self.config).aggregate(tenant_id, as_of)
        )

        total_assets = to_money(current_assets.total + fixed_assets.total)
        total_liabilities = to_money(current_liabilities.total + long_term_liabilities.total)
        total_equity = equity.total
        liabilities_and_equity = to_money(total_liabilities + total_equity)
        balanced = is_balanced(total_assets, liabilities_and_equity)

        if not balanced:
            logger.warning(
                f"Balance sheet for tenant {tenant_id} as of {as_of} is unbalanced: "
                f"assets={total_assets} liabilities+equity={liabilities_and_equity}"
            )

        report = BalanceSheetReport(
            as_of_date=as_of,
            currency=self.currency,
            assets=AssetsSection(current=current_assets, fixed=fixed_assets, total=total_assets),
            liabilities=LiabilitiesSection(
                current=current_liabilities,
                long_term=long_term_liabilities,
                total=total_liabilities
            ),
            equity=equity,
            totals=BalanceSheetTotals(
                assets=total_assets,
                liabilities=total_liabilities,
                equity=total_equity,
                liabilities_and_equity=liabilities_and_equity,
                difference=to_money(total_assets - liabilities_and_equity),
                balanced=balanced
            )
        )

        if comparison != ComparisonMode.NONE:
            block = await ComparisonEngine(self, tenant_id).with_comparison(report, comparison)
            report = report.model_copy(update={"comparison": block})

        return report

    @staticmethod
    def figures(report: BalanceSheetReport) -> Dict:
        return {
            "total_assets": report.totals.assets,
            "total_liabilities": report.totals.liabilities,
            "total_equity": report.totals.equity
        }
