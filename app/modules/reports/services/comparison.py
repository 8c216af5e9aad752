"""
Comparison Engine

Re-runs the builder that produced a report over a derived comparison
period (or as-of date) and computes the variance of its headline figures.
The comparison always goes through the same builder as the base report.
"""

import logging
from typing import Dict
from uuid import UUID

from ..exceptions import UnknownComparisonModeError
from ..money import growth_rate, to_money
from ..periods import ComparisonMode, Period, comparison_date, comparison_period
from ..schemas import (
    BalanceSheetReport,
    ComparisonBlock,
    PeriodInfo,
    ProfitLossReport,
    Variance,
)

logger = logging.getLogger(__name__)


def compute_variance(current: Dict, previous: Dict) -> Dict[str, Variance]:
    return {
        name: Variance(
            amount=to_money(current[name] - previous[name]),
            percentage=growth_rate(current[name], previous[name])
        )
        for name in current
    }


class ComparisonEngine:
    """
    with_comparison(base_report, mode) -> ComparisonBlock

    `builder` must expose `build(tenant_id, basis)` and `figures(report)`.
    """

    def __init__(self, builder, tenant_id: UUID):
        self.builder = builder
        self.tenant_id = tenant_id

    async def with_comparison(self, base_report, mode: ComparisonMode) -> ComparisonBlock:
        if mode == ComparisonMode.NONE:
            raise UnknownComparisonModeError("A comparison mode is required")

        if isinstance(base_report, ProfitLossReport):
            base_period = Period(base_report.period.start_date, base_report.period.end_date)
            compared_period = comparison_period(base_period, mode)
            logger.debug(f"Comparing P&L {base_period.name} against {compared_period.name} ({mode.value})")
            compared = await self.builder.build(self.tenant_id, compared_period)
            location = {"period": PeriodInfo.from_period(compared_period)}
        elif isinstance(base_report, BalanceSheetReport):
            compared_date = comparison_date(base_report.as_of_date, mode)
            logger.debug(f"Comparing balance sheet {base_report.as_of_date} against {compared_date} ({mode.value})")
            compared = await self.builder.build(self.tenant_id, compared_date)
            location = {"as_of_date": compared_date}
        else:
            raise UnknownComparisonModeError(
                f"Comparison is not available for {type(base_report).__name__}"
            )

        current_figures = self.builder.figures(base_report)
        compared_figures = self.builder.figures(compared)

        return ComparisonBlock(
            mode=mode.value,
            figures=compared_figures,
            variance=compute_variance(current_figures, compared_figures),
            **location
        )
