"""
Financial Reports Router

FastAPI router for the financial statement endpoints.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Path, Query, status

from app.dependencies.companyDependencies import TenantId, TenantReportingConfig
from app.dependencies.dbDependecies import ledger_dependency
from ..exceptions import (
    InvalidPeriodError,
    LedgerSourceError,
    ReportTimeoutError,
    UnknownCashFlowMethodError,
    UnknownComparisonModeError,
    UnknownTrendMetricError,
)
from ..schemas import (
    BalanceSheetReport,
    CashFlowReport,
    DashboardSummary,
    ProfitLossReport,
    TrendResponse,
    TrialBalanceReport,
)
from ..services.financial import FinancialReportService
from ..utils import (
    CSV_HEADERS,
    create_csv_response,
    prepare_balance_sheet_csv,
    prepare_cash_flow_csv,
    prepare_profit_loss_csv,
    prepare_trial_balance_csv,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports/financial", tags=["Reports"])

INVALID_INPUT_ERRORS = (
    InvalidPeriodError,
    UnknownComparisonModeError,
    UnknownCashFlowMethodError,
    UnknownTrendMetricError
)


def report_http_error(exc: Exception, report_name: str) -> HTTPException:
    """Map an engine failure to the HTTP error returned to the client."""
    if isinstance(exc, INVALID_INPUT_ERRORS):
        return HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))
    if isinstance(exc, LedgerSourceError):
        logger.error(f"Ledger unavailable while generating {report_name}: {exc}")
        return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Ledger data is temporarily unavailable")
    if isinstance(exc, ReportTimeoutError):
        return HTTPException(status.HTTP_504_GATEWAY_TIMEOUT, str(exc))
    logger.exception(f"Unexpected error generating {report_name}")
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Error generating {report_name}")


@router.get("/profit-loss", response_model=ProfitLossReport)
async def get_profit_loss(
    tenant_id: TenantId,
    config: TenantReportingConfig,
    ledger: ledger_dependency,
    start_date: date = Query(..., description="Start date for the report period"),
    end_date: date = Query(..., description="End date for the report period"),
    comparison: str = Query("none", description="none, previous_period or previous_year"),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv")
):
    """Generate the Profit & Loss statement."""
    try:
        service = FinancialReportService(ledger, tenant_id, config)
        report = await service.get_profit_loss(start_date, end_date, comparison)
    except Exception as e:
        raise report_http_error(e, "profit & loss") from e

    if export == "csv":
        filename = f"profit_loss_{start_date}_{end_date}.csv"
        return create_csv_response(prepare_profit_loss_csv(report), filename, CSV_HEADERS["profit_loss"])

    return report


@router.get("/balance-sheet", response_model=BalanceSheetReport)
async def get_balance_sheet(
    tenant_id: TenantId,
    config: TenantReportingConfig,
    ledger: ledger_dependency,
    as_of_date: Optional[date] = Query(None, description="As of date (default: today)"),
    comparison: str = Query("none", description="none, previous_month or previous_year"),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv")
):
    """Generate the Balance Sheet."""
    as_of_date = as_of_date or date.today()
    try:
        service = FinancialReportService(ledger, tenant_id, config)
        report = await service.get_balance_sheet(as_of_date, comparison)
    except Exception as e:
        raise report_http_error(e, "balance sheet") from e

    if export == "csv":
        filename = f"balance_sheet_{as_of_date}.csv"
        return create_csv_response(prepare_balance_sheet_csv(report), filename, CSV_HEADERS["balance_sheet"])

    return report


@router.get("/cash-flow", response_model=CashFlowReport)
async def get_cash_flow(
    tenant_id: TenantId,
    config: TenantReportingConfig,
    ledger: ledger_dependency,
    start_date: date = Query(..., description="Start date for the report period"),
    end_date: date = Query(..., description="End date for the report period"),
    method: str = Query("indirect", description="direct or indirect"),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv")
):
    """Generate the Cash Flow statement."""
    try:
        service = FinancialReportService(ledger, tenant_id, config)
        report = await service.get_cash_flow(start_date, end_date, method)
    except Exception as e:
        raise report_http_error(e, "cash flow") from e

    if export == "csv":
        filename = f"cash_flow_{start_date}_{end_date}.csv"
        return create_csv_response(prepare_cash_flow_csv(report), filename, CSV_HEADERS["cash_flow"])

    return report


@router.get("/trial-balance", response_model=TrialBalanceReport)
async def get_trial_balance(
    tenant_id: TenantId,
    config: TenantReportingConfig,
    ledger: ledger_dependency,
    as_of_date: Optional[date] = Query(None, description="As of date (default: today)"),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv")
):
    """Generate the Trial Balance."""
    as_of_date = as_of_date or date.today()
    try:
        service = FinancialReportService(ledger, tenant_id, config)
        report = await service.get_trial_balance(as_of_date)
    except Exception as e:
        raise report_http_error(e, "trial balance") from e

    if export == "csv":
        filename = f"trial_balance_{as_of_date}.csv"
        return create_csv_response(prepare_trial_balance_csv(report), filename, CSV_HEADERS["trial_balance"])

    return report


@router.get("/trends/{metric}", response_model=TrendResponse)
async def get_trend(
    tenant_id: TenantId,
    config: TenantReportingConfig,
    ledger: ledger_dependency,
    metric: str = Path(..., description="revenue, expenses, profit or cash_flow"),
    months: int = Query(12, description="Number of monthly points ending with the current month")
):
    """Monthly series of a metric."""
    try:
        service = FinancialReportService(ledger, tenant_id, config)
        return await service.get_trend(metric, months)
    except Exception as e:
        raise report_http_error(e, f"{metric} trend") from e


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(
    tenant_id: TenantId,
    config: TenantReportingConfig,
    ledger: ledger_dependency,
    as_of_date: Optional[date] = Query(None, description="Reference date (default: today)")
):
    """Headline financial KPIs."""
    try:
        service = FinancialReportService(ledger, tenant_id, config)
        return await service.get_dashboard_summary(as_of_date)
    except Exception as e:
        raise report_http_error(e, "dashboard summary") from e
