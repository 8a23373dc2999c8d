"""
Journal service: create, edit and discard draft entries.

Drafts are validated on every save, so a stored draft always
satisfies the double-entry rules at the time it was saved. The
LedgerPoster validates again before posting, because accounts
can be deactivated in between.

Like the other services, this one flushes but does not commit;
the caller owns the transaction boundary for draft edits.
"""

import logging
from datetime import date, datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from smb_ledger.config import get_settings
from smb_ledger.exceptions import (
    ConcurrencyError,
    NotFoundError,
    StateError,
    ValidationError,
)
from smb_ledger.models.enums import JournalKind, JournalStatus
from smb_ledger.models.journal_entry import JournalEntry, JournalLine
from smb_ledger.models.journal_sequence import JournalSequence
from smb_ledger.schemas.journal import JournalEntryDraft, JournalEntryUpdate
from smb_ledger.services.journal_validator import JournalEntryValidator

logger = logging.getLogger(__name__)


class JournalService:

    def __init__(self, db: Session):
        self.db = db
        self.validator = JournalEntryValidator(db)
        self.settings = get_settings()

    def _next_journal_number(self, year: int) -> str:
        """
        Draw the next number in the {prefix}-{year}-{seq:05d} series.

        The counter row is bumped with an in-place UPDATE, which
        takes its row lock until the caller's transaction ends. A
        concurrent draft waits on that lock and then reads the
        incremented value. The first draft of a year creates the
        row inside a savepoint, continuing after any number already
        stored in the series; losing that race falls back to the
        UPDATE.
        """
        name = f"{self.settings.JOURNAL_NUMBER_PREFIX}-{year}"

        value = self._bump_sequence(name)
        if value is None:
            first = self._highest_issued(name) + 1
            savepoint = self.db.begin_nested()
            try:
                self.db.add(JournalSequence(name=name, current_value=first))
                self.db.flush()
                savepoint.commit()
                value = first
            except IntegrityError:
                savepoint.rollback()
                value = self._bump_sequence(name)

        if value is None:
            raise ConcurrencyError(
                f"Could not allocate a journal number in series {name}; retry"
            )
        return f"{name}-{value:05d}"

    def _highest_issued(self, name: str) -> int:
        stem = f"{name}-"
        numbers = self.db.execute(
            select(JournalEntry.journal_number)
            .where(JournalEntry.journal_number.like(f"{stem}%"))
        ).scalars().all()
        suffixes = [n[len(stem):] for n in numbers]
        return max((int(s) for s in suffixes if s.isdigit()), default=0)

    def _bump_sequence(self, name: str) -> int | None:
        result = self.db.execute(
            update(JournalSequence)
            .where(JournalSequence.name == name)
            .values(current_value=JournalSequence.current_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.db.execute(
            select(JournalSequence.current_value)
            .where(JournalSequence.name == name)
        ).scalar_one()

    @staticmethod
    def _build_lines(draft) -> list[JournalLine]:
        return [
            JournalLine(
                line_number=index,
                account_id=line.account_id,
                description=line.description,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
            )
            for index, line in enumerate(draft.lines, 1)
        ]

    def create_draft(
        self,
        draft: JournalEntryDraft,
        kind: JournalKind = JournalKind.STANDARD,
        reverses_entry_id: int | None = None,
    ) -> JournalEntry:
        """
        Validate and store a new DRAFT entry.

        The journal number is assigned here, on the first
        successful save, and never changes afterwards.
        """
        entry = JournalEntry(
            entry_date=draft.entry_date,
            reference=draft.reference,
            description=draft.description,
            status=JournalStatus.DRAFT,
            kind=kind,
            reverses_entry_id=reverses_entry_id,
        )
        entry.lines = self._build_lines(draft)

        # Still transient here, so a rejected draft leaves no trace
        errors = self.validator.validate(entry)
        if errors:
            raise ValidationError(errors)

        number = self._next_journal_number(draft.entry_date.year)
        entry.journal_number = number
        self.db.add(entry)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(
                "Journal number collision", extra={"journal_number": number}
            )
            raise ConcurrencyError(
                f"Journal number {number} was taken "
                f"concurrently; retry"
            ) from exc

        logger.info(
            "Draft journal entry created",
            extra={"journal_number": entry.journal_number,
                   "kind": entry.kind.value},
        )
        return entry

    def update_draft(
        self, entry_id: int, request: JournalEntryUpdate
    ) -> JournalEntry:
        """
        Replace a draft's header and lines.

        The caller passes the version it loaded. If the stored
        version moved on, someone else saved in between and this
        update is refused rather than overwriting their work.
        """
        entry = self.get_entry(entry_id)
        self._require_draft(entry, "edited")

        if entry.version != request.expected_version:
            raise ConcurrencyError(
                f"Journal entry {entry.journal_number} was modified "
                f"(version {entry.version}, expected "
                f"{request.expected_version}); reload and retry"
            )

        # Validate the replacement before touching the stored entry
        errors = self.validator.validate(request)
        if errors:
            raise ValidationError(errors)

        entry.entry_date = request.entry_date
        entry.reference = request.reference
        entry.description = request.description
        entry.lines = self._build_lines(request)
        # Forces an UPDATE of the header row, which bumps the version
        entry.updated_at = datetime.utcnow()

        try:
            self.db.flush()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrencyError(
                f"Journal entry {entry_id} was modified concurrently; "
                f"reload and retry"
            ) from exc
        return entry

    def delete_draft(self, entry_id: int) -> None:
        """Discard a draft. Posted entries can only be reversed."""
        entry = self.get_entry(entry_id)
        self._require_draft(entry, "deleted")
        self.db.delete(entry)
        self.db.flush()
        logger.info(
            "Draft journal entry deleted",
            extra={"journal_number": entry.journal_number},
        )

    @staticmethod
    def _require_draft(entry: JournalEntry, action: str) -> None:
        if entry.status == JournalStatus.POSTED:
            raise StateError(
                f"Journal entry {entry.journal_number} is posted and "
                f"cannot be {action}; post a correcting entry instead"
            )

    def get_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.get(JournalEntry, entry_id)
        if not entry:
            raise NotFoundError(f"Journal entry {entry_id} not found")
        return entry

    @staticmethod
    def _filtered(
        query,
        status: JournalStatus | None,
        kind: JournalKind | None,
        start_date: date | None,
        end_date: date | None,
        reference: str | None,
    ):
        if status is not None:
            query = query.where(JournalEntry.status == status)
        if kind is not None:
            query = query.where(JournalEntry.kind == kind)
        if start_date is not None:
            query = query.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            query = query.where(JournalEntry.entry_date <= end_date)
        if reference:
            query = query.where(JournalEntry.reference.ilike(f"%{reference}%"))
        return query

    def list_entries(
        self,
        status: JournalStatus | None = None,
        kind: JournalKind | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        reference: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JournalEntry]:
        """
        Entries newest first, optionally filtered.

        The date range is inclusive on both ends and reference
        matches case-insensitively anywhere in the stored value.
        Without a limit every matching entry is returned.
        """
        query = self._filtered(
            select(JournalEntry), status, kind, start_date, end_date, reference
        ).order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return list(self.db.execute(query).scalars().all())

    def count_entries(
        self,
        status: JournalStatus | None = None,
        kind: JournalKind | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        reference: str | None = None,
    ) -> int:
        query = self._filtered(
            select(func.count(JournalEntry.id)),
            status, kind, start_date, end_date, reference,
        )
        return self.db.execute(query).scalar_one()
