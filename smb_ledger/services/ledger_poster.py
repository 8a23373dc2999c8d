"""
Ledger poster: the only writer of ledger rows.

Posting turns a validated DRAFT journal entry into immutable
LedgerEntry rows and flips the entry to POSTED. It enforces:
1. The entry exists and is still a draft
2. The entry passes validation at the moment of posting
3. Running balances are computed from each account's latest row
4. All rows and the status flip commit together, or not at all

Postings that touch the same account are serialized, so two
concurrent posts can never compute a running balance from the
same starting point. Posts to unrelated accounts do not wait on
each other.
"""

import json
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from smb_ledger.exceptions import (
    ConcurrencyError,
    LedgerError,
    NotFoundError,
    StateError,
    StorageError,
    ValidationError,
)
from smb_ledger.models.account import Account
from smb_ledger.models.audit_log import AuditLog
from smb_ledger.models.enums import JournalKind, JournalStatus, NormalBalance
from smb_ledger.models.journal_entry import JournalEntry
from smb_ledger.models.ledger_entry import LedgerEntry
from smb_ledger.schemas.journal import (
    JournalEntryDraft,
    JournalLineIn,
    LedgerEntryResponse,
    PostedEntry,
)
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.journal_validator import JournalEntryValidator

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class AccountLocks:
    """
    Process-wide registry of per-account locks.

    Locks are always taken in ascending account id order, so two
    posts sharing several accounts cannot deadlock. On PostgreSQL
    the poster additionally takes row locks (SELECT ... FOR
    UPDATE) to serialize across processes.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, account_id: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(account_id, threading.Lock())

    @contextmanager
    def hold(self, account_ids):
        acquired = []
        try:
            for account_id in sorted(set(account_ids)):
                lock = self._lock_for(account_id)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


account_locks = AccountLocks()


def signed_movement(
    normal_balance: NormalBalance, debit: Decimal, credit: Decimal
) -> Decimal:
    """How much a movement increases an account with this normal balance."""
    if normal_balance == NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


class LedgerPoster:
    """
    All ledger writes pass through this service.

    Unlike the draft services, post() owns its transaction: it
    commits on success and rolls back on failure, so the caller
    can never observe a half-posted entry.
    """

    def __init__(self, db: Session, locks: AccountLocks | None = None):
        self.db = db
        self.validator = JournalEntryValidator(db)
        self.locks = locks or account_locks

    def post(self, entry_id: int) -> PostedEntry:
        """
        Post a draft journal entry to the ledger.

        Raises NotFoundError, StateError (already posted),
        ValidationError (aggregated), ConcurrencyError (the draft
        changed underneath us) or StorageError. In every failure
        case nothing has been written.
        """
        entry = self.db.get(JournalEntry, entry_id)
        if not entry:
            raise NotFoundError(f"Journal entry {entry_id} not found")
        self._require_unposted(entry)

        errors = self.validator.validate(entry)
        if errors:
            raise ValidationError(errors)

        account_ids = {line.account_id for line in entry.lines}
        with self.locks.hold(account_ids):
            # Another poster may have won the race while we waited
            self.db.refresh(entry)
            self._require_unposted(entry)

            try:
                rows = self._write(entry, account_ids)
                self.db.commit()
            except StaleDataError as exc:
                self.db.rollback()
                raise ConcurrencyError(
                    f"Journal entry {entry_id} changed while posting; "
                    f"reload and retry"
                ) from exc
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception(
                    "Posting failed, transaction rolled back",
                    extra={"journal_entry_id": entry_id},
                )
                raise StorageError(
                    f"Journal entry {entry_id} could not be posted: {exc}"
                ) from exc

        logger.info(
            "Journal entry posted",
            extra={"journal_number": entry.journal_number,
                   "rows": len(rows)},
        )
        return PostedEntry(
            journal_entry_id=entry.id,
            journal_number=entry.journal_number,
            status=entry.status,
            kind=entry.kind,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            ledger_entries=[LedgerEntryResponse.model_validate(r) for r in rows],
        )

    @staticmethod
    def _require_unposted(entry: JournalEntry) -> None:
        if entry.status == JournalStatus.POSTED:
            raise StateError(
                f"Journal entry {entry.journal_number} is already posted"
            )

    def _latest_balance(self, account_id: int) -> Decimal:
        balance = self.db.execute(
            select(LedgerEntry.running_balance)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        return ZERO if balance is None else Decimal(balance)

    def _write(self, entry: JournalEntry, account_ids: set[int]) -> list[LedgerEntry]:
        """Stage ledger rows, the status flip and the audit record; flush."""
        accounts = {
            a.id: a for a in self.db.execute(
                select(Account)
                .where(Account.id.in_(account_ids))
                .order_by(Account.id)
                .with_for_update()
            ).scalars().all()
        }
        balances = {
            account_id: self._latest_balance(account_id)
            for account_id in account_ids
        }

        rows = []
        for line in entry.lines:
            account = accounts[line.account_id]
            balances[account.id] += signed_movement(
                account.normal_balance, line.debit_amount, line.credit_amount
            )
            row = LedgerEntry(
                account_id=account.id,
                journal_entry_id=entry.id,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                running_balance=balances[account.id],
                transaction_date=entry.entry_date,
                description=line.description or entry.description,
            )
            self.db.add(row)
            rows.append(row)

        entry.status = JournalStatus.POSTED
        entry.posted_at = datetime.utcnow()

        self.db.add(AuditLog(
            event_type="JOURNAL_POSTED",
            details=json.dumps({
                "journal_entry_id": entry.id,
                "journal_number": entry.journal_number,
                "kind": entry.kind.value,
                "total_debit": str(entry.total_debit),
                "total_credit": str(entry.total_credit),
            }),
        ))

        self.db.flush()
        return rows

    def reverse(self, entry_id: int, entry_date: date | None = None) -> PostedEntry:
        """
        Reverse a posted entry by posting its mirror image.

        The original is not modified. A new entry with debits and
        credits swapped is created, points back to the original,
        and is posted in the same transaction. An entry can be
        reversed only once.
        """
        original = self.db.get(JournalEntry, entry_id)
        if not original:
            raise NotFoundError(f"Journal entry {entry_id} not found")
        if original.status != JournalStatus.POSTED:
            raise StateError(
                f"Only posted entries can be reversed; "
                f"{original.journal_number} is {original.status.value}"
            )

        already = self.db.execute(
            select(exists().where(JournalEntry.reverses_entry_id == original.id))
        ).scalar()
        if already:
            raise StateError(
                f"Journal entry {original.journal_number} is already reversed"
            )

        # Undoing a reconciliation adjustment is itself one
        kind = (
            JournalKind.RECONCILIATION
            if original.kind == JournalKind.RECONCILIATION
            else JournalKind.REVERSAL
        )
        draft = JournalEntryDraft(
            entry_date=entry_date or date.today(),
            reference=original.journal_number,
            description=f"Reversal of {original.journal_number}",
            lines=[
                JournalLineIn(
                    account_id=line.account_id,
                    description=(
                        f"Reversal: {line.description or original.description}"
                    )[:255],
                    debit_amount=line.credit_amount,
                    credit_amount=line.debit_amount,
                )
                for line in original.lines
            ],
        )

        try:
            reversal = JournalService(self.db).create_draft(
                draft, kind=kind, reverses_entry_id=original.id
            )
            posted = self.post(reversal.id)
        except LedgerError:
            self.db.rollback()
            raise

        logger.info(
            "Journal entry reversed",
            extra={"journal_number": original.journal_number,
                   "reversal": posted.journal_number},
        )
        return posted
