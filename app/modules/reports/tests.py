"""
Tests for the financial reports module

Covers:
- Decimal money helpers and period arithmetic
- Aggregators with empty and populated ledgers
- Profit & Loss, Balance Sheet, Cash Flow and Trial Balance builders
- Comparisons, trends and the dashboard summary
- Deadline and ledger failure handling
- HTTP endpoints, status mapping and CSV export

Every scenario is scoped to one tenant; a second tenant's data must never
leak into the figures.
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core.config import ReportingConfig
from app.dependencies.companyDependencies import get_reporting_config
from app.dependencies.dbDependecies import get_ledger_source
from app.main import app
from app.modules.ledger.facts import (
    ExpenseCategory,
    ExpenseStatus,
    InvoiceStatus,
    PaymentCategory,
    PaymentType,
)
from app.modules.reports.exceptions import (
    AggregationError,
    InvalidPeriodError,
    LedgerSourceError,
    ReportTimeoutError,
    UnknownCashFlowMethodError,
    UnknownComparisonModeError,
    UnknownTrendMetricError,
)
from app.modules.reports.money import growth_rate, is_balanced, margin_percent, to_money
from app.modules.reports.periods import (
    ComparisonMode,
    Period,
    add_months,
    comparison_date,
    comparison_period,
    monthly_windows,
    parse_date,
)
from app.modules.reports.schemas import CategoryBreakdown
from app.modules.reports.services import (
    BalanceSheetBuilder,
    CashFlowBuilder,
    CashFlowMethod,
    FinancialReportService,
    TrendSeriesBuilder,
)
from app.modules.reports.services.aggregators import (
    COGSAggregator,
    CurrentAssetAggregator,
    CurrentLiabilityAggregator,
    EquityAggregator,
    FixedAssetAggregator,
    LongTermLiabilityAggregator,
    NetIncomeAggregator,
    OperatingExpenseAggregator,
    OtherExpenseAggregator,
    OtherIncomeAggregator,
    RevenueAggregator,
    TotalExpenseAggregator,
)
from conftest import InMemoryLedgerSource

OCTOBER = Period(date(2026, 10, 1), date(2026, 10, 31))
AS_OF = date(2026, 10, 31)


# ===== FIXTURES =====

@pytest.fixture
def service(ledger, tenant_id, reporting_config):
    return FinancialReportService(ledger, tenant_id, reporting_config)


@pytest.fixture
def profitable_october(ledger, tenant_id, other_tenant_id):
    """Paid invoice of 100 and a Rent expense of 50, plus noise in another tenant"""
    ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 5))
    ledger.add_expense(tenant_id, "50.00", category="Rent", expense_date=date(2026, 10, 10))
    ledger.add_invoice(other_tenant_id, "9999.00", issue_date=date(2026, 10, 5))
    ledger.add_expense(other_tenant_id, "1234.00", expense_date=date(2026, 10, 10))
    return ledger


@pytest.fixture
def unbalanced_position(ledger, tenant_id):
    """Receivable 200, inventory 300, cash 100 and payables 150"""
    ledger.add_invoice(tenant_id, "200.00", status=InvoiceStatus.SENT, issue_date=date(2026, 10, 1))
    ledger.add_inventory(tenant_id, quantity="3", cost_price="100.00")
    ledger.add_payment(tenant_id, "100.00", payment_date=date(2026, 10, 2))
    ledger.add_expense(tenant_id, "150.00", status=ExpenseStatus.PENDING, expense_date=date(2026, 10, 3))
    return ledger


@pytest.fixture
def cash_movements(ledger, tenant_id):
    ledger.add_payment(tenant_id, "1000.00", payment_date=date(2026, 9, 15))
    ledger.add_payment(tenant_id, "300.00", category="Customers", payment_date=date(2026, 10, 6))
    ledger.add_payment(tenant_id, "100.00", type=PaymentType.OUTFLOW, category="Suppliers",
                       payment_date=date(2026, 10, 7))
    ledger.add_payment(tenant_id, "50.00", type=PaymentType.OUTFLOW, category="Operating",
                       payment_date=date(2026, 10, 8))
    ledger.add_payment(tenant_id, "2000.00", category="Loans", payment_date=date(2026, 10, 9))
    ledger.add_payment(tenant_id, "500.00", type=PaymentType.OUTFLOW, category="Loan Payments",
                       payment_date=date(2026, 10, 12))
    ledger.add_payment(tenant_id, "400.00", type=PaymentType.OUTFLOW, category="Capital",
                       payment_date=date(2026, 10, 13))
    ledger.add_expense(tenant_id, "700.00", category="Capital Equipment", expense_date=date(2026, 10, 14))
    return ledger


# ===== TESTS DE DINERO =====

class TestMoney:
    """Tests for Decimal money helpers"""

    def test_to_money_rounds_half_up_to_cents(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(3) == Decimal("3.00")

    def test_to_money_rejects_floats(self):
        with pytest.raises(TypeError):
            to_money(1.5)

    def test_growth_rate_from_zero(self):
        assert growth_rate(Decimal("0"), Decimal("0")) == Decimal("0.00")
        assert growth_rate(Decimal("5"), Decimal("0")) == Decimal("100.00")
        assert growth_rate(Decimal("-5"), Decimal("0")) == Decimal("0.00")

    def test_growth_rate_uses_absolute_previous(self):
        assert growth_rate(Decimal("50"), Decimal("100")) == Decimal("-50.00")
        assert growth_rate(Decimal("150"), Decimal("-100")) == Decimal("250.00")

    def test_margin_with_zero_revenue_is_zero(self):
        assert margin_percent(Decimal("-40"), Decimal("0")) == Decimal("0.00")

    def test_is_balanced_within_one_cent(self):
        assert is_balanced(Decimal("100.00"), Decimal("100.00"))
        assert not is_balanced(Decimal("100.00"), Decimal("100.01"))

    def test_breakdown_total_mismatch_raises(self):
        with pytest.raises(AggregationError):
            CategoryBreakdown(entries={"sales": Decimal("1.00")}, total=Decimal("2.00"))

    def test_breakdown_from_entries_sums(self):
        breakdown = CategoryBreakdown.from_entries({"a": Decimal("1.10"), "b": Decimal("2.20")}, count=2)
        assert breakdown.total == Decimal("3.30")
        assert breakdown.count == 2


# ===== TESTS DE PERIODOS =====

class TestPeriods:
    """Tests for period parsing and comparison derivation"""

    def test_start_after_end_is_invalid(self):
        with pytest.raises(InvalidPeriodError):
            Period.parse("2026-10-31", "2026-10-01")

    def test_malformed_date_is_invalid(self):
        with pytest.raises(InvalidPeriodError):
            parse_date("31/10/2026")

    @pytest.mark.parametrize("value", ["2026-10-05garbage", "2026-10-05 trailing"])
    def test_trailing_text_is_invalid(self, value):
        with pytest.raises(InvalidPeriodError):
            parse_date(value)

    def test_datetime_is_reduced_to_its_date(self):
        parsed = parse_date(datetime(2026, 10, 5, 14, 30))
        assert parsed == date(2026, 10, 5)
        assert type(parsed) is date

    def test_previous_period_has_same_length(self):
        previous = comparison_period(OCTOBER, ComparisonMode.PREVIOUS_PERIOD)
        assert previous == Period(date(2026, 8, 31), date(2026, 9, 30))
        assert previous.days == OCTOBER.days

    def test_previous_year_clamps_leap_day(self):
        leap_day = Period(date(2024, 2, 29), date(2024, 2, 29))
        assert comparison_period(leap_day, ComparisonMode.PREVIOUS_YEAR) == Period(date(2023, 2, 28), date(2023, 2, 28))

    def test_previous_month_clamps_day(self):
        assert comparison_date(date(2026, 3, 31), ComparisonMode.PREVIOUS_MONTH) == date(2026, 2, 28)
        assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)

    def test_unsupported_mode_for_period(self):
        with pytest.raises(UnknownComparisonModeError):
            comparison_period(OCTOBER, ComparisonMode.PREVIOUS_MONTH)

    def test_monthly_windows_oldest_first(self):
        windows = monthly_windows(12, date(2026, 10, 18))
        assert len(windows) == 12
        assert windows[0] == Period(date(2025, 11, 1), date(2025, 11, 30))
        assert windows[-1] == OCTOBER
        assert windows[-1].label == "Oct 2026"


# ===== TESTS DE AGREGADORES =====

class TestAggregators:
    """Tests for aggregators"""

    @pytest.mark.parametrize("aggregator_class", [
        RevenueAggregator,
        COGSAggregator,
        OperatingExpenseAggregator,
        OtherIncomeAggregator,
        OtherExpenseAggregator,
        TotalExpenseAggregator,
        NetIncomeAggregator,
    ])
    async def test_empty_period_yields_zeros(self, ledger, tenant_id, aggregator_class):
        breakdown = await aggregator_class(ledger).aggregate(tenant_id, OCTOBER)

        assert breakdown.entries
        assert all(amount == 0 for amount in breakdown.entries.values())
        assert breakdown.total == Decimal("0.00")
        assert breakdown.count == 0

    @pytest.mark.parametrize("aggregator_class", [
        CurrentAssetAggregator,
        FixedAssetAggregator,
        CurrentLiabilityAggregator,
        LongTermLiabilityAggregator,
        EquityAggregator,
    ])
    async def test_empty_ledger_position_yields_zeros(self, ledger, tenant_id, aggregator_class):
        # Owners' equity is a configured constant; zero it so only ledger-derived figures remain
        config = ReportingConfig(owners_equity=Decimal("0"))

        breakdown = await aggregator_class(ledger, config).aggregate(tenant_id, AS_OF)

        assert breakdown.entries
        assert all(amount == 0 for amount in breakdown.entries.values())
        assert breakdown.total == Decimal("0.00")

    async def test_datetime_bounds_are_accepted(self, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 5))
        service = FinancialReportService(ledger, tenant_id)

        report = await service.get_profit_loss(datetime(2026, 10, 1, 8, 0), datetime(2026, 10, 31, 23, 59))

        assert report.period.start_date == date(2026, 10, 1)
        assert report.revenue.total == Decimal("100.00")

    async def test_revenue_counts_only_paid_invoices_in_period(self, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 5))
        ledger.add_invoice(tenant_id, "70.00", status=InvoiceStatus.SENT, issue_date=date(2026, 10, 6))
        ledger.add_invoice(tenant_id, "30.00", issue_date=date(2026, 11, 1))

        revenue = await RevenueAggregator(ledger).aggregate(tenant_id, OCTOBER)

        assert revenue.entries["sales"] == Decimal("100.00")
        assert revenue.count == 1

    async def test_cogs_treats_missing_product_cost_as_zero(self, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", lines=[("10.00", "3"), (None, "2")])

        cogs = await COGSAggregator(ledger).aggregate(tenant_id, OCTOBER)

        assert cogs.entries["materials"] == Decimal("30.00")
        assert cogs.count == 2

    async def test_operating_expenses_use_closed_categories(self, ledger, tenant_id):
        ledger.add_expense(tenant_id, "50.00", category="rent")
        ledger.add_expense(tenant_id, "20.00", category="Something new")

        expenses = await OperatingExpenseAggregator(ledger).aggregate(tenant_id, OCTOBER)

        assert expenses.entries["Rent"] == Decimal("50.00")
        assert expenses.entries["Other"] == Decimal("20.00")
        assert set(expenses.entries) == {category.value for category in ExpenseCategory}

    async def test_unapproved_expenses_can_be_excluded(self, ledger, tenant_id):
        ledger.add_expense(tenant_id, "50.00", status=ExpenseStatus.APPROVED)
        ledger.add_expense(tenant_id, "80.00", status=ExpenseStatus.PENDING)
        config = ReportingConfig(include_unapproved_expenses=False)

        expenses = await OperatingExpenseAggregator(ledger, config).aggregate(tenant_id, OCTOBER)

        assert expenses.total == Decimal("50.00")

    async def test_retained_earnings_cover_closed_years(self, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "500.00", issue_date=date(2025, 6, 1))
        ledger.add_expense(tenant_id, "200.00", expense_date=date(2025, 7, 1))
        ledger.add_invoice(tenant_id, "900.00", issue_date=date(2026, 2, 1))

        equity = await EquityAggregator(ledger).aggregate(tenant_id, date(2026, 3, 31))

        assert equity.entries["retained_earnings"] == Decimal("300.00")
        assert equity.total == Decimal("10300.00")

    async def test_source_failure_propagates(self, tenant_id):
        ledger = InMemoryLedgerSource(error=LedgerSourceError("database down"))
        with pytest.raises(LedgerSourceError):
            await RevenueAggregator(ledger).aggregate(tenant_id, OCTOBER)


# ===== TESTS DE ESTADO DE RESULTADOS =====

class TestProfitLoss:
    """Tests for the Profit & Loss statement"""

    async def test_paid_invoice_and_rent(self, service, profitable_october):
        report = await service.get_profit_loss("2026-10-01", "2026-10-31")

        assert report.revenue.total == Decimal("100.00")
        assert report.operating_expenses.entries["Rent"] == Decimal("50.00")
        assert report.gross_profit.amount == Decimal("100.00")
        assert report.net_income.amount == Decimal("50.00")
        assert report.net_income.margin == Decimal("50.00")
        assert report.summary.total_expenses == Decimal("50.00")
        assert report.comparison is None

    async def test_single_paid_invoice_no_expenses(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 5))

        report = await service.get_profit_loss("2026-10-01", "2026-10-31")

        assert report.revenue.total == Decimal("100.00")
        assert report.cogs.total == Decimal("0.00")
        assert report.gross_profit.amount == Decimal("100.00")
        assert report.net_income.amount == Decimal("100.00")
        assert report.net_income.margin == Decimal("100.00")

    async def test_rent_expense_without_revenue(self, service, ledger, tenant_id):
        ledger.add_expense(tenant_id, "50.00", category="Rent", expense_date=date(2026, 10, 10))

        report = await service.get_profit_loss("2026-10-01", "2026-10-31")

        assert report.operating_expenses.entries["Rent"] == Decimal("50.00")
        assert report.net_income.amount == Decimal("-50.00")
        assert report.net_income.margin == Decimal("0.00")

    async def test_invoice_dated_in_period_counts_even_if_paid_later(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 30))
        ledger.add_payment(tenant_id, "100.00", payment_date=date(2026, 11, 15))

        report = await service.get_profit_loss("2026-10-01", "2026-10-31")

        assert report.revenue.total == Decimal("100.00")

    async def test_net_income_identity(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "1000.00", lines=[("120.00", "2")])
        ledger.add_expense(tenant_id, "333.33", category="Salaries")

        report = await service.get_profit_loss(date(2026, 10, 1), date(2026, 10, 31))

        expected = (
            report.revenue.total - report.cogs.total - report.operating_expenses.total
            + report.other_income.total - report.other_expenses.total
        )
        assert report.net_income.amount == expected == Decimal("426.67")

    async def test_empty_period_has_zero_margins(self, service):
        report = await service.get_profit_loss("2026-10-01", "2026-10-31")
        assert report.net_income.amount == Decimal("0.00")
        assert report.summary.profit_margin == Decimal("0.00")

    async def test_invalid_period(self, service):
        with pytest.raises(InvalidPeriodError):
            await service.get_profit_loss("2026-10-31", "2026-10-01")

    async def test_previous_period_comparison(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 5))
        ledger.add_invoice(tenant_id, "50.00", issue_date=date(2026, 9, 15))

        report = await service.get_profit_loss("2026-10-01", "2026-10-31", comparison="previous_period")

        assert report.comparison.mode == "previous_period"
        assert report.comparison.period.start_date == date(2026, 8, 31)
        assert report.comparison.figures["revenue"] == Decimal("50.00")
        assert report.comparison.variance["revenue"].amount == Decimal("50.00")
        assert report.comparison.variance["revenue"].percentage == Decimal("100.00")

    async def test_previous_year_comparison(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "80.00", issue_date=date(2025, 10, 20))

        report = await service.get_profit_loss("2026-10-01", "2026-10-31", comparison="previous_year")

        assert report.comparison.period.start_date == date(2025, 10, 1)
        assert report.comparison.variance["revenue"].amount == Decimal("-80.00")
        assert report.comparison.variance["revenue"].percentage == Decimal("-100.00")

    async def test_as_of_mode_rejected_for_period_report(self, service):
        with pytest.raises(UnknownComparisonModeError):
            await service.get_profit_loss("2026-10-01", "2026-10-31", comparison="previous_month")

    async def test_unknown_comparison_mode(self, service):
        with pytest.raises(UnknownComparisonModeError):
            await service.get_profit_loss("2026-10-01", "2026-10-31", comparison="last_decade")


# ===== TESTS DE BALANCE GENERAL =====

class TestBalanceSheet:
    """Tests for the Balance Sheet"""

    async def test_unbalanced_position_is_reported_not_raised(self, service, unbalanced_position):
        report = await service.get_balance_sheet(AS_OF)

        assert report.assets.current.entries["cash"] == Decimal("100.00")
        assert report.assets.current.entries["accounts_receivable"] == Decimal("200.00")
        assert report.assets.current.entries["inventory"] == Decimal("300.00")
        assert report.totals.assets == Decimal("600.00")
        assert report.liabilities.current.entries["accounts_payable"] == Decimal("150.00")
        assert report.totals.liabilities_and_equity == Decimal("10150.00")
        assert report.totals.difference == Decimal("-9550.00")
        assert report.totals.balanced is False

    async def test_balanced_flag(self, ledger, tenant_id):
        ledger.add_payment(tenant_id, "150.00", payment_date=date(2026, 10, 2))
        ledger.add_expense(tenant_id, "150.00", status=ExpenseStatus.PENDING, expense_date=date(2026, 10, 3))
        config = ReportingConfig(owners_equity=Decimal("0"))

        report = await BalanceSheetBuilder(ledger, config).build(tenant_id, AS_OF)

        assert report.totals.assets == report.totals.liabilities_and_equity
        assert report.totals.balanced is True

    @pytest.mark.parametrize("cash, payables, owners_equity", [
        ("0", "0", "0"),
        ("150.00", "150.00", "0"),
        ("10150.00", "150.00", "10000.00"),
        ("10150.01", "150.00", "10000.00"),
        ("99.99", "0", "100.00"),
    ])
    async def test_balanced_flag_matches_identity(self, ledger, tenant_id, cash, payables, owners_equity):
        if Decimal(cash):
            ledger.add_payment(tenant_id, cash, payment_date=date(2026, 10, 2))
        if Decimal(payables):
            ledger.add_expense(tenant_id, payables, status=ExpenseStatus.PENDING, expense_date=date(2026, 10, 3))
        config = ReportingConfig(owners_equity=Decimal(owners_equity))

        report = await BalanceSheetBuilder(ledger, config).build(tenant_id, AS_OF)

        identity_holds = abs(report.totals.assets - report.totals.liabilities_and_equity) < Decimal("0.01")
        assert report.totals.balanced is identity_holds

    async def test_empty_ledger_is_zeroed_not_an_error(self, service):
        report = await service.get_balance_sheet(AS_OF)

        assert report.totals.assets == Decimal("0.00")
        assert all(amount == 0 for amount in report.assets.current.entries.values())
        assert report.equity.entries["owners_equity"] == Decimal("10000.00")

    async def test_previous_month_comparison(self, service, ledger, tenant_id):
        ledger.add_payment(tenant_id, "100.00", payment_date=date(2026, 9, 10))
        ledger.add_payment(tenant_id, "50.00", payment_date=date(2026, 10, 10))

        report = await service.get_balance_sheet(AS_OF, comparison="previous_month")

        assert report.comparison.as_of_date == date(2026, 9, 30)
        assert report.comparison.figures["total_assets"] == Decimal("100.00")
        assert report.comparison.variance["total_assets"].amount == Decimal("50.00")
        assert report.comparison.variance["total_assets"].percentage == Decimal("50.00")

    async def test_period_mode_rejected_for_as_of_report(self, service):
        with pytest.raises(UnknownComparisonModeError):
            await service.get_balance_sheet(AS_OF, comparison="previous_period")


# ===== TESTS DE FLUJO DE CAJA =====

class TestCashFlow:
    """Tests for the Cash Flow statement"""

    async def test_direct_method(self, service, cash_movements):
        report = await service.get_cash_flow("2026-10-01", "2026-10-31", method="direct")

        assert report.operating.entries["cash_from_customers"] == Decimal("300.00")
        assert report.operating.entries["cash_to_suppliers"] == Decimal("-100.00")
        assert report.operating.entries["cash_for_operating"] == Decimal("-50.00")
        assert report.investing.entries["capital_expenditures"] == Decimal("-700.00")
        assert report.financing.entries["loan_proceeds"] == Decimal("2000.00")
        assert report.financing.entries["loan_payments"] == Decimal("-500.00")
        assert report.financing.entries["distributions"] == Decimal("-400.00")
        assert report.beginning_cash == Decimal("1000.00")
        assert report.net_cash_flow == Decimal("550.00")
        assert report.ending_cash == Decimal("1550.00")
        assert report.summary.cash_generated == Decimal("550.00")

    async def test_indirect_method(self, service, cash_movements):
        report = await service.get_cash_flow("2026-10-01", "2026-10-31")

        assert report.method == "indirect"
        assert report.operating.entries["net_income"] == Decimal("-700.00")
        assert report.net_cash_flow == Decimal("-300.00")
        assert report.summary.cash_used == Decimal("300.00")
        assert report.summary.cash_generated == Decimal("0.00")

    @pytest.mark.parametrize("method", ["direct", "indirect"])
    async def test_ending_cash_is_beginning_plus_net(self, service, cash_movements, method):
        report = await service.get_cash_flow("2026-10-01", "2026-10-31", method=method)

        assert report.ending_cash == report.beginning_cash + report.net_cash_flow
        assert report.net_cash_flow == report.operating.total + report.investing.total + report.financing.total

    async def test_ending_cash_differs_from_balance_sheet_cash(self, service, cash_movements):
        report = await service.get_cash_flow("2026-10-01", "2026-10-31", method="direct")
        position = await service.get_balance_sheet("2026-10-31")

        # Capex counts the 700.00 expense, the balance sheet only sees payments
        assert report.ending_cash == Decimal("1550.00")
        assert position.assets.current.entries["cash"] == Decimal("2250.00")

    async def test_working_capital_change_from_receivables(self, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "400.00", status=InvoiceStatus.SENT, issue_date=date(2026, 10, 3))

        operating = await CashFlowBuilder(ledger).operating_activities(tenant_id, OCTOBER, CashFlowMethod.INDIRECT)

        assert operating.entries["working_capital_changes"] == Decimal("-400.00")

    async def test_unknown_method(self, service):
        with pytest.raises(UnknownCashFlowMethodError):
            await service.get_cash_flow("2026-10-01", "2026-10-31", method="magic")


# ===== TESTS DE BALANCE DE COMPROBACION =====

class TestTrialBalance:
    """Tests for the Trial Balance"""

    async def test_rows_and_totals(self, service, unbalanced_position):
        report = await service.get_trial_balance(AS_OF)
        rows = {row.account_name: row for row in report.accounts}

        assert rows["Current Assets - Cash"].debit == Decimal("100.00")
        assert rows["Current Assets - Accounts Receivable"].debit == Decimal("200.00")
        assert rows["Current Liabilities - Accounts Payable"].credit == Decimal("150.00")
        assert rows["Equity - Owners Equity"].account_type == "Equity"
        assert "Fixed Assets - Equipment" not in rows
        assert report.totals.debits == Decimal("600.00")
        assert report.totals.credits == Decimal("10150.00")
        assert report.totals.balanced is False

    async def test_balanced_flag_matches_totals(self, ledger, tenant_id):
        ledger.add_payment(tenant_id, "150.00", payment_date=date(2026, 10, 2))
        ledger.add_expense(tenant_id, "150.00", status=ExpenseStatus.PENDING, expense_date=date(2026, 10, 3))
        service = FinancialReportService(ledger, tenant_id, ReportingConfig(owners_equity=Decimal("0")))

        report = await service.get_trial_balance(AS_OF)

        assert report.totals.debits == report.totals.credits == Decimal("150.00")
        assert report.totals.balanced is True
        assert sum(row.debit for row in report.accounts) == report.totals.debits

    async def test_negative_balance_flips_column(self, service, ledger, tenant_id):
        ledger.add_payment(tenant_id, "50.00", type=PaymentType.OUTFLOW, category=PaymentCategory.OPERATING,
                           payment_date=date(2026, 10, 2))

        report = await service.get_trial_balance(AS_OF)
        cash = next(row for row in report.accounts if row.account_name == "Current Assets - Cash")

        assert cash.debit == Decimal("0.00")
        assert cash.credit == Decimal("50.00")


# ===== TESTS DE TENDENCIAS =====

class TestTrends:
    """Tests for monthly trend series"""

    async def test_revenue_trend(self, service, profitable_october):
        trend = await service.get_trend("revenue", months=6, today=date(2026, 10, 18))

        labels = [point.period_label for point in trend.points]
        assert labels == ["May 2026", "Jun 2026", "Jul 2026", "Aug 2026", "Sep 2026", "Oct 2026"]
        assert len(set(labels)) == 6
        assert trend.points[-1].metrics["amount"] == Decimal("100.00")
        assert trend.points[-1].metrics["count"] == Decimal("1")
        assert trend.points[0].metrics["amount"] == Decimal("0.00")

    async def test_profit_trend(self, service, profitable_october):
        trend = await service.get_trend("profit", months=1, today=date(2026, 10, 18))

        metrics = trend.points[0].metrics
        assert metrics["profit"] == Decimal("50.00")
        assert metrics["margin"] == Decimal("50.00")

    @pytest.mark.parametrize("months", [0, 37])
    async def test_window_out_of_range(self, service, months):
        with pytest.raises(InvalidPeriodError):
            await service.get_trend("revenue", months=months, today=date(2026, 10, 18))

    async def test_unknown_metric(self, service):
        with pytest.raises(UnknownTrendMetricError):
            await service.get_trend("happiness")

    async def test_points_respect_concurrency_limit(self, ledger, tenant_id):
        running = 0
        peak = 0

        async def metric(tenant, period):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return {"amount": Decimal("0")}

        builder = TrendSeriesBuilder(ledger, ReportingConfig(trend_max_concurrency=2))
        points = await builder.build_series(tenant_id, metric, 6, date(2026, 10, 18))

        assert len(points) == 6
        assert peak <= 2


# ===== TESTS DE DASHBOARD =====

class TestDashboard:
    """Tests for the dashboard summary"""

    async def test_headline_figures(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "100.00", issue_date=date(2026, 10, 5))
        ledger.add_invoice(tenant_id, "50.00", issue_date=date(2026, 9, 15))
        ledger.add_invoice(tenant_id, "25.00", issue_date=date(2026, 2, 1))
        ledger.add_invoice(tenant_id, "200.00", status=InvoiceStatus.SENT, issue_date=date(2026, 10, 1),
                           due_date=date(2026, 10, 30))
        ledger.add_invoice(tenant_id, "80.00", status=InvoiceStatus.OVERDUE, issue_date=date(2026, 9, 1),
                           due_date=date(2026, 10, 1))
        ledger.add_payment(tenant_id, "100.00", payment_date=date(2026, 10, 6))

        summary = await service.get_dashboard_summary(today=date(2026, 10, 18))

        assert summary.current_month_revenue == Decimal("100.00")
        assert summary.last_month_revenue == Decimal("50.00")
        assert summary.revenue_growth == Decimal("100.00")
        assert summary.current_year_revenue == Decimal("175.00")
        assert summary.outstanding_amount == Decimal("280.00")
        assert summary.overdue_amount == Decimal("80.00")
        assert summary.cash_position == Decimal("100.00")

    async def test_top_customers_by_paid_revenue(self, service, ledger, tenant_id):
        big, small = uuid4(), uuid4()
        ledger.add_invoice(tenant_id, "300.00", customer_id=big, issue_date=date(2026, 9, 3))
        ledger.add_invoice(tenant_id, "100.00", customer_id=big, issue_date=date(2026, 10, 2))
        ledger.add_invoice(tenant_id, "150.00", customer_id=small, issue_date=date(2026, 10, 4))
        ledger.add_invoice(tenant_id, "999.00", status=InvoiceStatus.SENT, customer_id=small)
        ledger.add_invoice(tenant_id, "50.00")

        summary = await service.get_dashboard_summary(today=date(2026, 10, 18))
        customers = summary.insights.top_customers

        assert [customer.customer_id for customer in customers] == [big, small]
        assert customers[0].total_revenue == Decimal("400.00")
        assert customers[0].invoice_count == 2
        assert customers[0].average_invoice == Decimal("200.00")
        assert customers[1].total_revenue == Decimal("150.00")

    async def test_recent_expenses_are_newest_first_within_thirty_days(self, service, ledger, tenant_id):
        today = date(2026, 10, 18)
        ledger.add_expense(tenant_id, "40.00", expense_date=date(2026, 9, 1), description="Old rent")
        for day in range(1, 13):
            ledger.add_expense(tenant_id, "10.00", category="Utilities", expense_date=date(2026, 10, day),
                               description=f"Bill {day}")

        summary = await service.get_dashboard_summary(today=today)
        expenses = summary.insights.recent_expenses

        assert len(expenses) == 10
        assert expenses[0].expense_date == date(2026, 10, 12)
        assert expenses[0].description == "Bill 12"
        assert expenses[0].category == "Utilities"
        assert expenses[-1].expense_date == date(2026, 10, 3)
        assert all(expense.expense_date >= today - timedelta(days=30) for expense in expenses)

    async def test_outstanding_invoices_ordered_by_due_date(self, service, ledger, tenant_id):
        for offset in range(12):
            ledger.add_invoice(tenant_id, "10.00", status=InvoiceStatus.SENT, issue_date=date(2026, 10, 1),
                               due_date=date(2026, 11, 12) - timedelta(days=offset), number=f"INV-{offset:03d}")
        ledger.add_invoice(tenant_id, "10.00", status=InvoiceStatus.SENT, number="INV-NODUE")

        summary = await service.get_dashboard_summary(today=date(2026, 10, 18))
        outstanding = summary.insights.outstanding_invoices

        assert len(outstanding) == 10
        assert [invoice.due_date for invoice in outstanding] == sorted(invoice.due_date for invoice in outstanding)
        assert outstanding[0].number == "INV-011"
        assert outstanding[0].due_date == date(2026, 11, 1)
        assert outstanding[0].days_outstanding == -14
        assert "INV-NODUE" not in [invoice.number for invoice in outstanding]

    async def test_overdue_invoices_report_days_overdue(self, service, ledger, tenant_id):
        ledger.add_invoice(tenant_id, "80.00", status=InvoiceStatus.OVERDUE, issue_date=date(2026, 9, 1),
                           due_date=date(2026, 10, 1), number="INV-A")
        ledger.add_invoice(tenant_id, "60.00", status=InvoiceStatus.SENT, issue_date=date(2026, 9, 1),
                           due_date=date(2026, 9, 18), number="INV-B")
        ledger.add_invoice(tenant_id, "200.00", status=InvoiceStatus.SENT, issue_date=date(2026, 10, 1),
                           due_date=date(2026, 10, 30), number="INV-C")

        summary = await service.get_dashboard_summary(today=date(2026, 10, 18))
        overdue = summary.insights.overdue_invoices

        assert [invoice.number for invoice in overdue] == ["INV-B", "INV-A"]
        assert overdue[0].days_overdue == 30
        assert overdue[1].days_overdue == 17
        assert overdue[1].amount == Decimal("80.00")
        assert summary.overdue_amount == Decimal("140.00")


# ===== TESTS DE FALLAS =====

class TestFailures:
    """Tests for deadlines and ledger failures"""

    async def test_deadline_raises_timeout(self, tenant_id):
        ledger = InMemoryLedgerSource(delay=1)
        service = FinancialReportService(ledger, tenant_id, ReportingConfig(report_timeout_seconds=0.05))

        with pytest.raises(ReportTimeoutError):
            await service.get_balance_sheet(AS_OF)

    async def test_ledger_error_propagates(self, tenant_id):
        ledger = InMemoryLedgerSource(error=LedgerSourceError("database down"))
        service = FinancialReportService(ledger, tenant_id)

        with pytest.raises(LedgerSourceError):
            await service.get_profit_loss("2026-10-01", "2026-10-31")


# ===== TESTS DE API =====

@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_ledger_source] = lambda: ledger
    app.dependency_overrides[get_reporting_config] = lambda: ReportingConfig()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers(tenant_id):
    return {"X-Company-ID": str(tenant_id)}


BASE_URL = "/api/v1/reports/financial"


class TestFinancialRouter:
    """Tests for the financial reports endpoints"""

    def test_profit_loss(self, client, headers, profitable_october):
        response = client.get(
            f"{BASE_URL}/profit-loss",
            params={"start_date": "2026-10-01", "end_date": "2026-10-31"},
            headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["net_profit"] == "50.00"
        assert data["period"]["start_date"] == "2026-10-01"

    def test_missing_tenant_header(self, client):
        response = client.get(
            f"{BASE_URL}/profit-loss",
            params={"start_date": "2026-10-01", "end_date": "2026-10-31"}
        )
        assert response.status_code == 400

    def test_invalid_period_is_422(self, client, headers):
        response = client.get(
            f"{BASE_URL}/profit-loss",
            params={"start_date": "2026-10-31", "end_date": "2026-10-01"},
            headers=headers
        )
        assert response.status_code == 422

    def test_unknown_comparison_is_422(self, client, headers):
        response = client.get(
            f"{BASE_URL}/balance-sheet",
            params={"as_of_date": "2026-10-31", "comparison": "previous_period"},
            headers=headers
        )
        assert response.status_code == 422

    def test_unknown_trend_metric_is_422(self, client, headers):
        response = client.get(f"{BASE_URL}/trends/happiness", headers=headers)
        assert response.status_code == 422

    def test_ledger_failure_is_503(self, client, headers, ledger):
        ledger.error = LedgerSourceError("database down")
        response = client.get(f"{BASE_URL}/trial-balance", params={"as_of_date": "2026-10-31"}, headers=headers)
        assert response.status_code == 503

    def test_unexpected_failure_is_500(self, client, headers, ledger):
        ledger.error = RuntimeError("boom")
        response = client.get(f"{BASE_URL}/balance-sheet", params={"as_of_date": "2026-10-31"}, headers=headers)
        assert response.status_code == 500

    def test_timeout_is_504(self, ledger, headers):
        ledger.delay = 0.5
        app.dependency_overrides[get_ledger_source] = lambda: ledger
        app.dependency_overrides[get_reporting_config] = lambda: ReportingConfig(report_timeout_seconds=0.05)
        try:
            response = TestClient(app).get(
                f"{BASE_URL}/cash-flow",
                params={"start_date": "2026-10-01", "end_date": "2026-10-31"},
                headers=headers
            )
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 504

    def test_balance_sheet_flags_unbalanced(self, client, headers, unbalanced_position):
        response = client.get(f"{BASE_URL}/balance-sheet", params={"as_of_date": "2026-10-31"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["totals"]["balanced"] is False

    def test_profit_loss_csv_export(self, client, headers, profitable_october):
        response = client.get(
            f"{BASE_URL}/profit-loss",
            params={"start_date": "2026-10-01", "end_date": "2026-10-31", "export": "csv"},
            headers=headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0] == "Section,Line,Amount"
        assert "Net Income,total,50.00" in lines

    def test_trial_balance_csv_export(self, client, headers, unbalanced_position):
        response = client.get(
            f"{BASE_URL}/trial-balance",
            params={"as_of_date": "2026-10-31", "export": "csv"},
            headers=headers
        )

        lines = response.text.splitlines()
        assert lines[0] == "Account,Type,Debit,Credit"
        assert "Current Assets - Cash,Asset,100.00,0.00" in lines
        assert lines[-1] == "Total,,600.00,10150.00"

    def test_dashboard(self, client, headers, profitable_october):
        response = client.get(f"{BASE_URL}/dashboard", params={"as_of_date": "2026-10-18"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["current_month_revenue"] == "100.00"
        assert set(response.json()["insights"]) == {
            "top_customers", "recent_expenses", "outstanding_invoices", "overdue_invoices"
        }
