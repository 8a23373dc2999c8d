"""Ledger engine services."""

from smb_ledger.services.account_registry import AccountRegistry
from smb_ledger.services.journal_validator import JournalEntryValidator
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.ledger_poster import LedgerPoster
from smb_ledger.services.report_engine import ReportEngine
from smb_ledger.services.aging_engine import AgingEngine
from smb_ledger.services.reconciliation_service import ReconciliationService

__all__ = [
    "AccountRegistry",
    "JournalEntryValidator",
    "JournalService",
    "LedgerPoster",
    "ReportEngine",
    "AgingEngine",
    "ReconciliationService",
]
