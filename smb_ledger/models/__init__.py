"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from smb_ledger.models.base import Base
from smb_ledger.models.enums import (
    AccountType,
    AccountSubtype,
    NormalBalance,
    JournalStatus,
    JournalKind,
    OpenItemKind,
)
from smb_ledger.models.audit_log import AuditLog
from smb_ledger.models.account import Account
from smb_ledger.models.journal_entry import JournalEntry, JournalLine
from smb_ledger.models.journal_sequence import JournalSequence
from smb_ledger.models.ledger_entry import LedgerEntry
from smb_ledger.models.open_item import OpenItem

__all__ = [
    "Base",
    "AccountType",
    "AccountSubtype",
    "NormalBalance",
    "JournalStatus",
    "JournalKind",
    "OpenItemKind",
    "AuditLog",
    "Account",
    "JournalEntry",
    "JournalLine",
    "JournalSequence",
    "LedgerEntry",
    "OpenItem",
]
