"""
Tests for the LedgerPoster.

Tests cover:
- Posting writes one ledger row per line with running balances
- Balances are signed by each account's normal balance
- Re-posting and posting invalid drafts are refused
- A storage failure leaves no partial state behind
- Concurrent posts to a shared account serialize cleanly
- Reversals
"""

import threading
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from smb_ledger.exceptions import (
    NotFoundError,
    StateError,
    StorageError,
    ValidationError,
)
from smb_ledger.models.audit_log import AuditLog
from smb_ledger.models.enums import (
    AccountType,
    JournalKind,
    JournalStatus,
    NormalBalance,
)
from smb_ledger.models.ledger_entry import LedgerEntry
from smb_ledger.schemas.account import AccountCreate
from smb_ledger.schemas.journal import JournalEntryDraft, JournalLineIn
from smb_ledger.services.account_registry import AccountRegistry
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.ledger_poster import LedgerPoster, signed_movement


@pytest.fixture
def accounts(db_session):
    registry = AccountRegistry(db_session)
    cash = registry.create_account(AccountCreate(
        code="1000", name="Cash", account_type=AccountType.ASSET,
    ))
    sales = registry.create_account(AccountCreate(
        code="4000", name="Sales", account_type=AccountType.REVENUE,
    ))
    db_session.commit()
    return cash, sales


def save_sale(db_session, cash, sales, amount, entry_date=date(2024, 4, 1)):
    entry = JournalService(db_session).create_draft(JournalEntryDraft(
        entry_date=entry_date,
        description=f"Cash sale {amount}",
        lines=[
            JournalLineIn(account_id=cash.id, debit_amount=Decimal(amount)),
            JournalLineIn(account_id=sales.id, credit_amount=Decimal(amount)),
        ],
    ))
    db_session.commit()
    return entry


def ledger_count(db_session):
    return db_session.execute(
        select(func.count()).select_from(LedgerEntry)
    ).scalar()


class TestSignedMovement:

    def test_debit_normal(self):
        assert signed_movement(
            NormalBalance.DEBIT, Decimal("10"), Decimal("3")
        ) == Decimal("7")

    def test_credit_normal(self):
        assert signed_movement(
            NormalBalance.CREDIT, Decimal("10"), Decimal("3")
        ) == Decimal("-7")


class TestPost:

    def test_post_writes_ledger_rows(self, db_session, accounts):
        cash, sales = accounts
        entry = save_sale(db_session, cash, sales, "500")

        posted = LedgerPoster(db_session).post(entry.id)

        assert posted.status == JournalStatus.POSTED
        assert posted.total_debit == posted.total_credit == Decimal("500")
        assert len(posted.ledger_entries) == 2
        by_account = {r.account_id: r for r in posted.ledger_entries}
        # Both grow on their own normal side
        assert by_account[cash.id].running_balance == Decimal("500")
        assert by_account[sales.id].running_balance == Decimal("500")
        assert by_account[cash.id].transaction_date == date(2024, 4, 1)

    def test_running_balance_chains(self, db_session, accounts):
        cash, sales = accounts
        poster = LedgerPoster(db_session)
        poster.post(save_sale(db_session, cash, sales, "100").id)
        second = poster.post(save_sale(db_session, cash, sales, "40.50").id)

        cash_row = next(r for r in second.ledger_entries if r.account_id == cash.id)
        assert cash_row.running_balance == Decimal("140.50")

    def test_posting_is_audited(self, db_session, accounts):
        entry = save_sale(db_session, *accounts, "10")
        LedgerPoster(db_session).post(entry.id)

        events = db_session.execute(select(AuditLog.event_type)).scalars().all()
        assert events == ["JOURNAL_POSTED"]

    def test_post_twice_rejected(self, db_session, accounts):
        entry = save_sale(db_session, *accounts, "10")
        poster = LedgerPoster(db_session)
        poster.post(entry.id)

        with pytest.raises(StateError, match="already posted"):
            poster.post(entry.id)
        assert ledger_count(db_session) == 2

    def test_missing_entry(self, db_session):
        with pytest.raises(NotFoundError):
            LedgerPoster(db_session).post(12345)

    def test_account_deactivated_after_draft_saved(self, db_session, accounts):
        cash, sales = accounts
        entry = save_sale(db_session, cash, sales, "10")
        AccountRegistry(db_session).deactivate(sales.id)
        db_session.commit()

        with pytest.raises(ValidationError, match="not active"):
            LedgerPoster(db_session).post(entry.id)
        assert ledger_count(db_session) == 0

    def test_storage_failure_leaves_nothing(self, db_session, accounts, monkeypatch):
        entry = save_sale(db_session, *accounts, "75")

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(StorageError):
            LedgerPoster(db_session).post(entry.id)

        monkeypatch.undo()
        assert ledger_count(db_session) == 0
        db_session.refresh(entry)
        assert entry.status == JournalStatus.DRAFT
        assert entry.posted_at is None


class TestConcurrentPosting:

    def test_posts_to_shared_account_serialize(
        self, db_session, session_factory, accounts
    ):
        cash, sales = accounts
        entry_ids = [
            save_sale(db_session, cash, sales, "10").id for _ in range(8)
        ]
        failures = []

        def post(entry_id):
            session = session_factory()
            try:
                LedgerPoster(session).post(entry_id)
            except Exception as exc:
                failures.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=post, args=(i,)) for i in entry_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert failures == []
        balances = db_session.execute(
            select(LedgerEntry.running_balance)
            .where(LedgerEntry.account_id == cash.id)
            .order_by(LedgerEntry.id)
        ).scalars().all()
        # No two posts started from the same balance
        assert balances == [Decimal(10 * n) for n in range(1, 9)]


class TestReverse:

    def test_reverse_posts_mirror_entry(self, db_session, accounts):
        cash, sales = accounts
        entry = save_sale(db_session, cash, sales, "300")
        poster = LedgerPoster(db_session)
        poster.post(entry.id)

        reversal = poster.reverse(entry.id, entry_date=date(2024, 4, 5))

        assert reversal.kind == JournalKind.REVERSAL
        by_account = {r.account_id: r for r in reversal.ledger_entries}
        assert by_account[cash.id].credit_amount == Decimal("300")
        assert by_account[cash.id].running_balance == Decimal("0")
        assert by_account[sales.id].debit_amount == Decimal("300")
        assert by_account[sales.id].running_balance == Decimal("0")

        reversal_entry = JournalService(db_session).get_entry(
            reversal.journal_entry_id
        )
        assert reversal_entry.reverses_entry_id == entry.id
        assert reversal_entry.reference == entry.journal_number

    def test_original_untouched(self, db_session, accounts):
        entry = save_sale(db_session, *accounts, "300")
        poster = LedgerPoster(db_session)
        poster.post(entry.id)
        poster.reverse(entry.id)

        db_session.refresh(entry)
        assert entry.status == JournalStatus.POSTED
        assert entry.total_debit == Decimal("300")

    def test_reverse_only_once(self, db_session, accounts):
        entry = save_sale(db_session, *accounts, "300")
        poster = LedgerPoster(db_session)
        poster.post(entry.id)
        poster.reverse(entry.id)

        with pytest.raises(StateError, match="already reversed"):
            poster.reverse(entry.id)

    def test_draft_cannot_be_reversed(self, db_session, accounts):
        entry = save_sale(db_session, *accounts, "300")

        with pytest.raises(StateError, match="Only posted"):
            LedgerPoster(db_session).reverse(entry.id)
