"""
Report value objects.

Reports are immutable snapshots. Every report says whether any
ledger data was found (has_data), so an empty report is never
mistaken for a failed one.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from smb_ledger.models.enums import (
    AccountType,
    AccountSubtype,
    JournalKind,
    NormalBalance,
)

ZERO = Decimal("0")


class _Frozen(BaseModel):
    model_config = {"frozen": True}


# --- Trial balance ---

class TrialBalanceLine(_Frozen):
    account_id: int
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: NormalBalance
    debit_balance: Decimal
    credit_balance: Decimal
    # Part of the balance that came from opening balance entries
    opening_balance: Decimal = ZERO


class TrialBalanceTotals(_Frozen):
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool


class TrialBalance(_Frozen):
    as_of_date: date
    accounts: list[TrialBalanceLine]
    totals: TrialBalanceTotals
    reconciliation_adjustments: Decimal = ZERO
    has_data: bool


# --- Statements ---

class StatementLine(_Frozen):
    account_id: int
    account_code: str
    account_name: str
    subtype: AccountSubtype | None
    amount: Decimal


class StatementSection(_Frozen):
    accounts: list[StatementLine] = []
    total: Decimal = ZERO


class BalanceSheetAssets(_Frozen):
    current_assets: StatementSection
    fixed_assets: StatementSection
    total: Decimal


class BalanceSheetLiabilities(_Frozen):
    current_liabilities: StatementSection
    long_term_liabilities: StatementSection
    total: Decimal


class BalanceSheetEquity(_Frozen):
    accounts: list[StatementLine]
    current_earnings: Decimal
    total: Decimal


class BalanceSheetTotals(_Frozen):
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    variance: Decimal
    is_balanced: bool


class BalanceSheet(_Frozen):
    as_of_date: date
    assets: BalanceSheetAssets
    liabilities: BalanceSheetLiabilities
    equity: BalanceSheetEquity
    totals: BalanceSheetTotals
    reconciliation_adjustments: Decimal = ZERO
    has_data: bool


class IncomeStatement(_Frozen):
    start_date: date
    end_date: date
    revenue: StatementSection
    cost_of_goods_sold: StatementSection
    operating_expenses: StatementSection
    other_expenses: StatementSection
    gross_profit: Decimal
    operating_income: Decimal
    net_income: Decimal
    has_data: bool


# --- General ledger view ---

class AccountLedgerLine(_Frozen):
    ledger_entry_id: int
    journal_entry_id: int
    journal_number: str
    journal_kind: JournalKind
    transaction_date: date
    description: str | None
    debit_amount: Decimal
    credit_amount: Decimal
    running_balance: Decimal


class AccountLedger(_Frozen):
    account_id: int
    account_code: str
    account_name: str
    start_date: date | None
    end_date: date | None
    opening_balance: Decimal
    closing_balance: Decimal
    entries: list[AccountLedgerLine]
    has_data: bool
