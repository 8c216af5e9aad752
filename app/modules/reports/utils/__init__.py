"""
Utilities for Reports module

Provides CSV export of the financial statements. Each statement is
flattened into section / line / amount rows.
"""

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List

from fastapi import Response

from ..schemas import (
    BalanceSheetReport,
    CashFlowReport,
    CategoryBreakdown,
    ProfitLossReport,
    TrialBalanceReport,
)


def create_csv_response(
    data: List[Dict[str, Any]],
    filename: str,
    headers: Dict[str, str] = None
) -> Response:
    """
    Create a CSV response from a list of dictionaries.

    Args:
        data: List of dictionaries with report rows
        filename: Name for the CSV file
        headers: Optional mapping of field names to CSV headers

    Returns:
        FastAPI Response with CSV content
    """
    if not data:
        csv_content = ""
        if headers:
            csv_content = ",".join(headers.values()) + "\n"
    else:
        output = io.StringIO()

        fieldnames = list(headers.keys()) if headers else list(data[0].keys())
        csv_headers = list(headers.values()) if headers else fieldnames

        writer = csv.DictWriter(output, fieldnames=fieldnames)
        writer.writerow(dict(zip(fieldnames, csv_headers)))

        for row in data:
            writer.writerow({
                key: format_csv_value(value)
                for key, value in row.items()
                if key in fieldnames
            })

        csv_content = output.getvalue()
        output.close()

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Content-Type": "text/csv; charset=utf-8"
        }
    )


def format_csv_value(value: Any) -> str:
    """Format a value for CSV export."""
    if value is None:
        return ""
    elif isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, (date, datetime)):
        return value.isoformat()
    elif isinstance(value, bool):
        return "Yes" if value else "No"
    else:
        return str(value)


def _breakdown_rows(section: str, breakdown: CategoryBreakdown) -> List[Dict[str, Any]]:
    rows = [{"section": section, "line": line, "amount": amount} for line, amount in breakdown.entries.items()]
    rows.append({"section": section, "line": "total", "amount": breakdown.total})
    return rows


def prepare_profit_loss_csv(report: ProfitLossReport) -> List[Dict[str, Any]]:
    """Prepare Profit & Loss data for CSV export"""
    rows = []
    rows += _breakdown_rows("Revenue", report.revenue)
    rows += _breakdown_rows("Cost of Goods Sold", report.cogs)
    rows.append({"section": "Gross Profit", "line": "total", "amount": report.gross_profit.amount})
    rows += _breakdown_rows("Operating Expenses", report.operating_expenses)
    rows.append({"section": "Operating Income", "line": "total", "amount": report.operating_income.amount})
    rows += _breakdown_rows("Other Income", report.other_income)
    rows += _breakdown_rows("Other Expenses", report.other_expenses)
    rows.append({"section": "Net Income", "line": "total", "amount": report.net_income.amount})
    return rows


def prepare_balance_sheet_csv(report: BalanceSheetReport) -> List[Dict[str, Any]]:
    """Prepare Balance Sheet data for CSV export"""
    rows = []
    rows += _breakdown_rows("Current Assets", report.assets.current)
    rows += _breakdown_rows("Fixed Assets", report.assets.fixed)
    rows.append({"section": "Assets", "line": "total", "amount": report.totals.assets})
    rows += _breakdown_rows("Current Liabilities", report.liabilities.current)
    rows += _breakdown_rows("Long-term Liabilities", report.liabilities.long_term)
    rows.append({"section": "Liabilities", "line": "total", "amount": report.totals.liabilities})
    rows += _breakdown_rows("Equity", report.equity)
    rows.append({
        "section": "Liabilities and Equity",
        "line": "total",
        "amount": report.totals.liabilities_and_equity
    })
    return rows


def prepare_cash_flow_csv(report: CashFlowReport) -> List[Dict[str, Any]]:
    """Prepare Cash Flow data for CSV export"""
    rows = [{"section": "Beginning Cash", "line": "total", "amount": report.beginning_cash}]
    rows += _breakdown_rows("Operating Activities", report.operating)
    rows += _breakdown_rows("Investing Activities", report.investing)
    rows += _breakdown_rows("Financing Activities", report.financing)
    rows.append({"section": "Net Cash Flow", "line": "total", "amount": report.net_cash_flow})
    rows.append({"section": "Ending Cash", "line": "total", "amount": report.ending_cash})
    return rows


def prepare_trial_balance_csv(report: TrialBalanceReport) -> List[Dict[str, Any]]:
    """Prepare Trial Balance data for CSV export"""
    rows = [
        {
            "account_name": row.account_name,
            "account_type": row.account_type,
            "debit": row.debit,
            "credit": row.credit
        }
        for row in report.accounts
    ]
    rows.append({
        "account_name": "Total",
        "account_type": "",
        "debit": report.totals.debits,
        "credit": report.totals.credits
    })
    return rows


# CSV Headers mapping
STATEMENT_HEADERS = {
    "section": "Section",
    "line": "Line",
    "amount": "Amount"
}

CSV_HEADERS = {
    "profit_loss": STATEMENT_HEADERS,
    "balance_sheet": STATEMENT_HEADERS,
    "cash_flow": STATEMENT_HEADERS,
    "trial_balance": {
        "account_name": "Account",
        "account_type": "Type",
        "debit": "Debit",
        "credit": "Credit"
    }
}
