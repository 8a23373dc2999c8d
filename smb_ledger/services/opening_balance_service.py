"""
Opening balance service.

Books the balances a business brings with it when it starts
keeping its ledger here. The balances go in as one posted
OPENING_BALANCE entry. Whatever the listed balances leave
unbalanced is offset against the owner's equity account, so the
entry always balances.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from smb_ledger.config import get_settings
from smb_ledger.exceptions import FieldError, LedgerError, ValidationError
from smb_ledger.models.account import Account
from smb_ledger.models.enums import AccountSubtype, AccountType, JournalKind
from smb_ledger.schemas.account import AccountCreate
from smb_ledger.schemas.journal import (
    JournalEntryDraft,
    JournalLineIn,
    OpeningBalanceRequest,
    PostedEntry,
)
from smb_ledger.services.account_registry import AccountRegistry
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.ledger_poster import LedgerPoster

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class OpeningBalanceService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.registry = AccountRegistry(db)
        self.journals = JournalService(db)
        self.poster = LedgerPoster(db)

    def _get_or_create_equity_account(self) -> Account:
        equity = self.registry.get_by_code(self.settings.OPENING_BALANCE_EQUITY_CODE)
        if not equity:
            equity = self.registry.create_account(AccountCreate(
                code=self.settings.OPENING_BALANCE_EQUITY_CODE,
                name=self.settings.OPENING_BALANCE_EQUITY_NAME,
                account_type=AccountType.EQUITY,
                subtype=AccountSubtype.CAPITAL,
                description="Owner capital investment",
            ))
        return equity

    def record(self, request: OpeningBalanceRequest) -> PostedEntry:
        """
        Post the opening balances as a single entry.

        The equity account is created on first use. Like the
        entry itself, it is rolled back if posting fails.
        """
        lines = [
            JournalLineIn(
                account_id=balance.account_id,
                description=balance.description or "Opening balance",
                debit_amount=balance.amount if balance.amount > 0 else ZERO,
                credit_amount=-balance.amount if balance.amount < 0 else ZERO,
            )
            for balance in request.balances
            if balance.amount != 0
        ]
        if not lines:
            raise ValidationError([FieldError(
                "balances", "at least one non-zero opening balance is required"
            )])

        difference = sum((line.debit_amount - line.credit_amount for line in lines), ZERO)
        entry_date = request.entry_date or date.today()

        try:
            if difference != 0:
                equity = self._get_or_create_equity_account()
                lines.append(JournalLineIn(
                    account_id=equity.id,
                    description="Opening balance - owner equity",
                    debit_amount=-difference if difference < 0 else ZERO,
                    credit_amount=difference if difference > 0 else ZERO,
                ))

            entry = self.journals.create_draft(
                JournalEntryDraft(
                    entry_date=entry_date,
                    reference=request.reference,
                    description=request.description,
                    lines=lines,
                ),
                kind=JournalKind.OPENING_BALANCE,
            )
            posted = self.poster.post(entry.id)
        except LedgerError:
            self.db.rollback()
            raise

        logger.info(
            "Opening balances posted",
            extra={"journal_number": posted.journal_number,
                   "accounts": len(lines),
                   "equity_offset": str(difference)},
        )
        return posted
