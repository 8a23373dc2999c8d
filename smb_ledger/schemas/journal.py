"""
Pydantic schemas for journal entries and posting.

Request shapes are strict (unknown fields and negative amounts
are rejected here), but the accounting rules themselves, such
as "exactly one side per line" or "debits equal credits", are
left to the JournalEntryValidator so that all of them can be
reported together.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from smb_ledger.models.enums import JournalStatus, JournalKind


# --- Request Schemas ---

class JournalLineIn(BaseModel):
    """A single debit or credit line of a draft."""
    account_id: int
    description: str | None = Field(default=None, max_length=255)
    debit_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    credit_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)

    model_config = {"extra": "forbid", "frozen": True}


class JournalEntryDraft(BaseModel):
    """A draft journal entry, as created or replaced by its author."""
    entry_date: date | None = None
    reference: str | None = Field(default=None, max_length=100)
    description: str = Field(default="", max_length=255)
    lines: list[JournalLineIn] = Field(default_factory=list)

    model_config = {"extra": "forbid", "frozen": True}


class JournalEntryUpdate(JournalEntryDraft):
    """
    Replacement for a draft.

    expected_version must match the version the caller loaded,
    otherwise the update is rejected instead of overwriting
    someone else's edit.
    """
    expected_version: int = Field(ge=1)


class ReverseRequest(BaseModel):
    entry_date: date | None = None


class OpeningBalanceLine(BaseModel):
    """
    One account's balance at go-live.

    Positive amounts are debits, negative amounts credits. Zero
    amounts are skipped.
    """
    account_id: int
    amount: Decimal = Field(decimal_places=4)
    description: str | None = Field(default=None, max_length=255)

    model_config = {"extra": "forbid", "frozen": True}


class OpeningBalanceRequest(BaseModel):
    entry_date: date | None = None
    reference: str | None = Field(default=None, max_length=100)
    description: str = Field(default="Opening balances", max_length=255)
    balances: list[OpeningBalanceLine] = Field(default_factory=list)

    model_config = {"extra": "forbid", "frozen": True}


# --- Response Schemas ---

class JournalLineResponse(BaseModel):
    id: int
    line_number: int
    account_id: int
    description: str | None
    debit_amount: Decimal
    credit_amount: Decimal

    model_config = {"from_attributes": True}


class JournalEntryResponse(BaseModel):
    id: int
    journal_number: str
    entry_date: date
    reference: str | None
    description: str
    status: JournalStatus
    kind: JournalKind
    version: int
    reverses_entry_id: int | None
    total_debit: Decimal
    total_credit: Decimal
    lines: list[JournalLineResponse]
    created_at: datetime
    posted_at: datetime | None

    model_config = {"from_attributes": True}


class JournalEntryPage(BaseModel):
    """One page of a filtered journal listing."""
    entries: list[JournalEntryResponse]
    total: int
    limit: int
    offset: int


class LedgerEntryResponse(BaseModel):
    id: int
    account_id: int
    journal_entry_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    running_balance: Decimal
    transaction_date: date
    description: str | None

    model_config = {"from_attributes": True}


class PostedEntry(BaseModel):
    """Result of posting a journal entry."""
    journal_entry_id: int
    journal_number: str
    status: JournalStatus
    kind: JournalKind
    total_debit: Decimal
    total_credit: Decimal
    ledger_entries: list[LedgerEntryResponse]

    model_config = {"frozen": True}
