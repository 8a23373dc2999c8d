"""
Shared enumerations for database models.

Python enums mapped to database enums mean only valid values
can be stored. An invalid account_type or status is caught at
the database level, not just in Python validation.
"""

import enum


class AccountType(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class NormalBalance(str, enum.Enum):
    """The side on which an account's balance increases."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class AccountSubtype(str, enum.Enum):
    CURRENT_ASSET = "CURRENT_ASSET"
    FIXED_ASSET = "FIXED_ASSET"
    INTANGIBLE_ASSET = "INTANGIBLE_ASSET"
    OTHER_ASSET = "OTHER_ASSET"

    CURRENT_LIABILITY = "CURRENT_LIABILITY"
    LONG_TERM_LIABILITY = "LONG_TERM_LIABILITY"
    OTHER_LIABILITY = "OTHER_LIABILITY"

    CAPITAL = "CAPITAL"
    OWNERS_EQUITY = "OWNERS_EQUITY"
    RETAINED_EARNINGS = "RETAINED_EARNINGS"
    DISTRIBUTIONS = "DISTRIBUTIONS"
    OTHER_EQUITY = "OTHER_EQUITY"

    SALES_REVENUE = "SALES_REVENUE"
    SERVICE_REVENUE = "SERVICE_REVENUE"
    OTHER_REVENUE = "OTHER_REVENUE"

    OPERATING_EXPENSE = "OPERATING_EXPENSE"
    COST_OF_GOODS_SOLD = "COST_OF_GOODS_SOLD"
    OTHER_EXPENSE = "OTHER_EXPENSE"


class JournalStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"  # Terminal: corrections are new entries


class JournalKind(str, enum.Enum):
    """Where a journal entry came from."""
    STANDARD = "STANDARD"
    REVERSAL = "REVERSAL"
    RECONCILIATION = "RECONCILIATION"
    OPENING_BALANCE = "OPENING_BALANCE"  # Balances carried in at go-live


class OpenItemKind(str, enum.Enum):
    RECEIVABLE = "RECEIVABLE"  # Customer invoice
    PAYABLE = "PAYABLE"  # Vendor bill


# Conventional normal balance for each account type
CONVENTIONAL_NORMAL_BALANCE: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}

SUBTYPES_BY_TYPE: dict[AccountType, frozenset[AccountSubtype]] = {
    AccountType.ASSET: frozenset({
        AccountSubtype.CURRENT_ASSET,
        AccountSubtype.FIXED_ASSET,
        AccountSubtype.INTANGIBLE_ASSET,
        AccountSubtype.OTHER_ASSET,
    }),
    AccountType.LIABILITY: frozenset({
        AccountSubtype.CURRENT_LIABILITY,
        AccountSubtype.LONG_TERM_LIABILITY,
        AccountSubtype.OTHER_LIABILITY,
    }),
    AccountType.EQUITY: frozenset({
        AccountSubtype.CAPITAL,
        AccountSubtype.OWNERS_EQUITY,
        AccountSubtype.RETAINED_EARNINGS,
        AccountSubtype.DISTRIBUTIONS,
        AccountSubtype.OTHER_EQUITY,
    }),
    AccountType.REVENUE: frozenset({
        AccountSubtype.SALES_REVENUE,
        AccountSubtype.SERVICE_REVENUE,
        AccountSubtype.OTHER_REVENUE,
    }),
    AccountType.EXPENSE: frozenset({
        AccountSubtype.OPERATING_EXPENSE,
        AccountSubtype.COST_OF_GOODS_SOLD,
        AccountSubtype.OTHER_EXPENSE,
    }),
}
