"""
Journal entry API endpoints.

Drafts are created, edited and deleted freely. Posting and
reversal go through the LedgerPoster, which owns its own
transaction.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smb_ledger.api.errors import http_error
from smb_ledger.exceptions import LedgerError
from smb_ledger.models.base import get_db
from smb_ledger.models.enums import JournalKind, JournalStatus
from smb_ledger.schemas.journal import (
    JournalEntryDraft,
    JournalEntryUpdate,
    JournalEntryPage,
    JournalEntryResponse,
    OpeningBalanceRequest,
    PostedEntry,
    ReverseRequest,
)
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.ledger_poster import LedgerPoster
from smb_ledger.services.opening_balance_service import OpeningBalanceService

router = APIRouter(prefix="/journal-entries", tags=["Journal"])


@router.post("", response_model=JournalEntryResponse, status_code=201)
def create_journal_entry(
    request: JournalEntryDraft,
    db: Session = Depends(get_db),
):
    """
    Save a new draft.

    Every rule violation is returned at once as a list of
    field-scoped errors.
    """
    service = JournalService(db)
    try:
        entry = service.create_draft(request)
        db.commit()
        return entry
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=JournalEntryPage)
def list_journal_entries(
    status: JournalStatus | None = None,
    kind: JournalKind | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    reference: str | None = None,
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """
    List entries newest first.

    Dates are inclusive, reference is a case-insensitive
    substring match. `total` counts every match, not just this
    page.
    """
    service = JournalService(db)
    filters = dict(status=status, kind=kind, start_date=start_date,
                   end_date=end_date, reference=reference)
    return JournalEntryPage(
        entries=[
            JournalEntryResponse.model_validate(entry)
            for entry in service.list_entries(
                limit=limit, offset=offset, **filters
            )
        ],
        total=service.count_entries(**filters),
        limit=limit,
        offset=offset,
    )


@router.post("/opening-balances", response_model=PostedEntry, status_code=201)
def record_opening_balances(
    request: OpeningBalanceRequest,
    db: Session = Depends(get_db),
):
    """
    Post go-live balances as one OPENING_BALANCE entry.

    Positive amounts are debits, negative amounts credits. Any
    difference is offset against the owner's equity account.
    """
    service = OpeningBalanceService(db)
    try:
        return service.record(request)
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("/{entry_id}", response_model=JournalEntryResponse)
def get_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    service = JournalService(db)
    try:
        return service.get_entry(entry_id)
    except LedgerError as e:
        raise http_error(e)


@router.put("/{entry_id}", response_model=JournalEntryResponse)
def update_journal_entry(
    entry_id: int,
    request: JournalEntryUpdate,
    db: Session = Depends(get_db),
):
    """
    Replace a draft's header and lines.

    Send back the `version` you loaded as `expected_version`;
    a stale version is refused with 409.
    """
    service = JournalService(db)
    try:
        entry = service.update_draft(entry_id, request)
        db.commit()
        return entry
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.delete("/{entry_id}", status_code=204)
def delete_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    service = JournalService(db)
    try:
        service.delete_draft(entry_id)
        db.commit()
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{entry_id}/post", response_model=PostedEntry)
def post_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    """Post a draft to the ledger. All or nothing."""
    poster = LedgerPoster(db)
    try:
        return poster.post(entry_id)
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{entry_id}/reverse", response_model=PostedEntry, status_code=201)
def reverse_journal_entry(
    entry_id: int,
    request: ReverseRequest | None = None,
    db: Session = Depends(get_db),
):
    """
    Reverse a posted entry by posting its mirror image.

    The original stays untouched. Each entry can be reversed
    once.
    """
    poster = LedgerPoster(db)
    entry_date = request.entry_date if request else None
    try:
        return poster.reverse(entry_id, entry_date)
    except LedgerError as e:
        db.rollback()
        raise http_error(e)
