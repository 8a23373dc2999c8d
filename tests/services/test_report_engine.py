"""
Tests for the ReportEngine.

Builds a small set of books (owner investment, a loan, sales,
cost of sales, rent, interest) and checks every report against
hand-computed figures.
"""

from datetime import date
from decimal import Decimal

import pytest

from smb_ledger.exceptions import NotFoundError, ValidationError
from smb_ledger.models.enums import (
    AccountSubtype,
    AccountType,
    JournalKind,
    NormalBalance,
)
from smb_ledger.schemas.account import AccountCreate
from smb_ledger.schemas.journal import JournalEntryDraft, JournalLineIn
from smb_ledger.services.account_registry import AccountRegistry
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.ledger_poster import LedgerPoster
from smb_ledger.services.report_engine import ReportEngine


def make_account(db_session, code, name, account_type, subtype=None, **kwargs):
    return AccountRegistry(db_session).create_account(AccountCreate(
        code=code, name=name, account_type=account_type, subtype=subtype,
        **kwargs,
    ))


def post(db_session, entry_date, description, *lines):
    """Post an entry; each line is (account, debit, credit)."""
    entry = JournalService(db_session).create_draft(JournalEntryDraft(
        entry_date=entry_date,
        description=description,
        lines=[
            JournalLineIn(
                account_id=account.id,
                debit_amount=Decimal(debit),
                credit_amount=Decimal(credit),
            )
            for account, debit, credit in lines
        ],
    ))
    db_session.commit()
    return LedgerPoster(db_session).post(entry.id)


@pytest.fixture
def books(db_session):
    a = {
        "cash": make_account(db_session, "1000", "Cash", AccountType.ASSET,
                             AccountSubtype.CURRENT_ASSET),
        "van": make_account(db_session, "1500", "Delivery Van", AccountType.ASSET,
                            AccountSubtype.FIXED_ASSET),
        "payable": make_account(db_session, "2000", "Accounts Payable",
                                AccountType.LIABILITY,
                                AccountSubtype.CURRENT_LIABILITY),
        "loan": make_account(db_session, "2500", "Bank Loan", AccountType.LIABILITY,
                             AccountSubtype.LONG_TERM_LIABILITY),
        "capital": make_account(db_session, "3000", "Owner Capital",
                                AccountType.EQUITY, AccountSubtype.CAPITAL),
        "sales": make_account(db_session, "4000", "Sales", AccountType.REVENUE,
                              AccountSubtype.SALES_REVENUE),
        "cogs": make_account(db_session, "5000", "Cost of Sales",
                             AccountType.EXPENSE, AccountSubtype.COST_OF_GOODS_SOLD),
        "rent": make_account(db_session, "6100", "Rent", AccountType.EXPENSE,
                             AccountSubtype.OPERATING_EXPENSE),
        "interest": make_account(db_session, "7000", "Interest", AccountType.EXPENSE,
                                 AccountSubtype.OTHER_EXPENSE),
    }
    db_session.commit()

    post(db_session, date(2024, 1, 2), "Owner investment",
         (a["cash"], "10000", "0"), (a["capital"], "0", "10000"))
    post(db_session, date(2024, 1, 5), "Van bought on loan",
         (a["van"], "8000", "0"), (a["loan"], "0", "8000"))
    post(db_session, date(2024, 2, 10), "Sales",
         (a["cash"], "3000", "0"), (a["sales"], "0", "3000"))
    post(db_session, date(2024, 2, 10), "Stock sold",
         (a["cogs"], "1200", "0"), (a["payable"], "0", "1200"))
    post(db_session, date(2024, 2, 28), "Rent",
         (a["rent"], "500", "0"), (a["cash"], "0", "500"))
    post(db_session, date(2024, 3, 31), "Loan interest",
         (a["interest"], "80", "0"), (a["cash"], "0", "80"))
    return a


class TestEmptyLedger:

    def test_reports_on_empty_ledger(self, db_session):
        engine = ReportEngine(db_session)

        trial = engine.trial_balance(date(2024, 12, 31))
        sheet = engine.balance_sheet(date(2024, 12, 31))
        income = engine.income_statement(date(2024, 1, 1), date(2024, 12, 31))

        assert trial.has_data is False
        assert trial.totals.is_balanced is True
        assert sheet.has_data is False
        assert sheet.totals.variance == Decimal("0")
        assert income.has_data is False
        assert income.net_income == Decimal("0")


class TestTrialBalance:

    def test_debits_equal_credits(self, db_session, books):
        trial = ReportEngine(db_session).trial_balance(date(2024, 12, 31))

        assert trial.has_data is True
        assert trial.totals.is_balanced is True
        assert trial.totals.total_debits == Decimal("22200")
        assert trial.totals.total_credits == Decimal("22200")
        cash = next(l for l in trial.accounts if l.account_code == "1000")
        assert cash.debit_balance == Decimal("12420")
        assert cash.credit_balance == Decimal("0")

    def test_as_of_date_excludes_later_postings(self, db_session, books):
        trial = ReportEngine(db_session).trial_balance(date(2024, 1, 31))

        codes = [l.account_code for l in trial.accounts]
        assert codes == ["1000", "1500", "2500", "3000"]
        assert trial.totals.total_debits == Decimal("18000")

    def test_negative_balance_moves_to_other_column(self, db_session, books):
        # Overdraw cash
        post(db_session, date(2024, 4, 1), "Loan repayment",
             (books["loan"], "13000", "0"), (books["cash"], "0", "13000"))

        trial = ReportEngine(db_session).trial_balance(date(2024, 12, 31))
        cash = next(l for l in trial.accounts if l.account_code == "1000")
        loan = next(l for l in trial.accounts if l.account_code == "2500")

        assert cash.debit_balance == Decimal("0")
        assert cash.credit_balance == Decimal("580")
        assert loan.debit_balance == Decimal("5000")
        assert trial.totals.is_balanced is True


class TestBalanceSheet:

    def test_sections_and_totals(self, db_session, books):
        sheet = ReportEngine(db_session).balance_sheet(date(2024, 12, 31))

        assert sheet.assets.current_assets.total == Decimal("12420")
        assert sheet.assets.fixed_assets.total == Decimal("8000")
        assert sheet.liabilities.current_liabilities.total == Decimal("1200")
        assert sheet.liabilities.long_term_liabilities.total == Decimal("8000")
        # 3000 sales - 1200 cogs - 500 rent - 80 interest
        assert sheet.equity.current_earnings == Decimal("1220")
        assert sheet.equity.total == Decimal("11220")
        assert sheet.totals.total_assets == Decimal("20420")
        assert sheet.totals.total_liabilities_and_equity == Decimal("20420")
        assert sheet.totals.variance == Decimal("0")
        assert sheet.totals.is_balanced is True
        assert sheet.reconciliation_adjustments == Decimal("0")

    def test_contra_asset_reduces_section(self, db_session, books):
        depreciation = make_account(
            db_session, "1590", "Accumulated Depreciation", AccountType.ASSET,
            AccountSubtype.FIXED_ASSET, normal_balance=NormalBalance.CREDIT,
        )
        expense = make_account(
            db_session, "6200", "Depreciation", AccountType.EXPENSE,
            AccountSubtype.OPERATING_EXPENSE,
        )
        db_session.commit()
        post(db_session, date(2024, 6, 30), "Depreciation",
             (expense, "1000", "0"), (depreciation, "0", "1000"))

        sheet = ReportEngine(db_session).balance_sheet(date(2024, 12, 31))

        assert sheet.assets.fixed_assets.total == Decimal("7000")
        assert sheet.totals.is_balanced is True


class TestIncomeStatement:

    def test_profit_layers(self, db_session, books):
        income = ReportEngine(db_session).income_statement(
            date(2024, 1, 1), date(2024, 12, 31)
        )

        assert income.revenue.total == Decimal("3000")
        assert income.cost_of_goods_sold.total == Decimal("1200")
        assert income.gross_profit == Decimal("1800")
        assert income.operating_expenses.total == Decimal("500")
        assert income.operating_income == Decimal("1300")
        assert income.other_expenses.total == Decimal("80")
        assert income.net_income == Decimal("1220")

    def test_period_bounds(self, db_session, books):
        income = ReportEngine(db_session).income_statement(
            date(2024, 3, 1), date(2024, 3, 31)
        )

        assert income.revenue.total == Decimal("0")
        assert income.net_income == Decimal("-80")

    def test_inverted_period_rejected(self, db_session):
        with pytest.raises(ValidationError):
            ReportEngine(db_session).income_statement(
                date(2024, 12, 31), date(2024, 1, 1)
            )


class TestAccountViews:

    def test_account_balance(self, db_session, books):
        engine = ReportEngine(db_session)
        cash = books["cash"]

        assert engine.account_balance(cash.id) == Decimal("12420")
        assert engine.account_balance(cash.id, date(2024, 1, 31)) == Decimal("10000")

    def test_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            ReportEngine(db_session).account_balance(404)

    def test_account_ledger_opening_and_closing(self, db_session, books):
        ledger = ReportEngine(db_session).account_ledger(
            books["cash"].id, date(2024, 2, 1), date(2024, 2, 29)
        )

        assert ledger.opening_balance == Decimal("10000")
        assert [e.debit_amount for e in ledger.entries] == [
            Decimal("3000"), Decimal("0"),
        ]
        assert ledger.closing_balance == Decimal("12500")
        assert ledger.entries[-1].running_balance == Decimal("12500")
        assert ledger.entries[0].journal_number.startswith("JE-2024-")

    def test_account_ledger_at_calendar_limits(self, db_session, books):
        ledger = ReportEngine(db_session).account_ledger(
            books["cash"].id, date.min, date.max
        )

        assert ledger.opening_balance == Decimal("0")
        assert ledger.closing_balance == Decimal("12420")
        assert all(e.journal_kind == JournalKind.STANDARD for e in ledger.entries)
