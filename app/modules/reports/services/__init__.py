"""
Services package for Reports module

Exports the report builders and the FinancialReportService facade.
"""

from .profit_loss import ProfitLossBuilder
from .balance_sheet import BalanceSheetBuilder
from .cash_flow import CashFlowBuilder, CashFlowMethod
from .trial_balance import TrialBalanceBuilder
from .comparison import ComparisonEngine
from .trends import TREND_METRICS, TrendMetrics, TrendSeriesBuilder
from .financial import FinancialReportService

__all__ = [
    "ProfitLossBuilder",
    "BalanceSheetBuilder",
    "CashFlowBuilder",
    "CashFlowMethod",
    "TrialBalanceBuilder",
    "ComparisonEngine",
    "TREND_METRICS",
    "TrendMetrics",
    "TrendSeriesBuilder",
    "FinancialReportService"
]
