"""
Reconciliation service.

Postings made through the engine always balance, so a balance
sheet variance means something outside the engine (an import, a
manual database fix, a migration) wrote to the ledger. This
service measures that variance and, on request, parks it in a
suspense equity account so the books balance again while the
real cause is investigated.
"""

import json
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from smb_ledger.config import get_settings
from smb_ledger.exceptions import LedgerError
from smb_ledger.models.audit_log import AuditLog
from smb_ledger.models.enums import (
    AccountSubtype,
    AccountType,
    JournalKind,
    NormalBalance,
)
from smb_ledger.models.account import Account
from smb_ledger.schemas.account import AccountCreate
from smb_ledger.schemas.journal import JournalEntryDraft, JournalLineIn
from smb_ledger.schemas.reconciliation import AutoBalanceResult, VarianceReport
from smb_ledger.services.account_registry import AccountRegistry
from smb_ledger.services.journal_service import JournalService
from smb_ledger.services.ledger_poster import LedgerPoster
from smb_ledger.services.report_engine import ReportEngine

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.registry = AccountRegistry(db)
        self.reports = ReportEngine(db)
        self.journals = JournalService(db)
        self.poster = LedgerPoster(db)

    def compute_variance(self, as_of_date: date | None = None) -> VarianceReport:
        """Assets minus (liabilities + equity); today by default."""
        as_of_date = as_of_date or date.today()
        totals = self.reports.balance_sheet(as_of_date).totals
        return VarianceReport(
            as_of_date=as_of_date,
            total_assets=totals.total_assets,
            total_liabilities_and_equity=totals.total_liabilities_and_equity,
            variance=totals.variance,
            is_balanced=totals.is_balanced,
        )

    def _get_or_create_suspense_account(self) -> Account:
        """
        Get the suspense equity account, creating it if needed.

        Variances are parked here until someone finds and books
        the real correction.
        """
        suspense = self.registry.get_by_code(self.settings.SUSPENSE_ACCOUNT_CODE)
        if not suspense:
            suspense = self.registry.create_account(AccountCreate(
                code=self.settings.SUSPENSE_ACCOUNT_CODE,
                name=self.settings.SUSPENSE_ACCOUNT_NAME,
                account_type=AccountType.EQUITY,
                subtype=AccountSubtype.OTHER_EQUITY,
                description="Holds unexplained balance sheet variances",
            ))
        return suspense

    def auto_balance(self, as_of_date: date | None = None) -> AutoBalanceResult:
        """
        Bring the balance sheet back into balance.

        When assets exceed liabilities plus equity the suspense
        account is credited; otherwise it is debited. Below the
        tolerance nothing is posted. The adjustment, the suspense
        account (if new) and the audit record commit together.
        """
        as_of_date = as_of_date or date.today()
        before = self.compute_variance(as_of_date)

        if before.is_balanced:
            logger.info(
                "Books already balanced; nothing to adjust",
                extra={"as_of_date": as_of_date.isoformat(),
                       "variance": str(before.variance)},
            )
            return AutoBalanceResult(
                as_of_date=as_of_date,
                variance_before=before.variance,
                variance_after=before.variance,
                adjusted_side=None,
                amount=ZERO,
                entry=None,
            )

        amount = abs(before.variance)
        side = NormalBalance.CREDIT if before.variance > 0 else NormalBalance.DEBIT

        try:
            suspense = self._get_or_create_suspense_account()
            draft = JournalEntryDraft(
                entry_date=as_of_date,
                reference="AUTO-BALANCE",
                description=f"Balance sheet auto-balance as of {as_of_date}",
                lines=[JournalLineIn(
                    account_id=suspense.id,
                    description="Unexplained balance sheet variance",
                    debit_amount=amount if side == NormalBalance.DEBIT else ZERO,
                    credit_amount=amount if side == NormalBalance.CREDIT else ZERO,
                )],
            )
            entry = self.journals.create_draft(draft, kind=JournalKind.RECONCILIATION)

            # Staged before posting so it commits with the adjustment
            self.db.add(AuditLog(
                event_type="AUTO_BALANCE",
                details=json.dumps({
                    "as_of_date": as_of_date.isoformat(),
                    "journal_number": entry.journal_number,
                    "variance": str(before.variance),
                    "side": side.value,
                    "amount": str(amount),
                    "suspense_account": suspense.code,
                }),
            ))
            posted = self.poster.post(entry.id)
        except LedgerError:
            self.db.rollback()
            raise

        after = self.compute_variance(as_of_date)
        logger.warning(
            "Balance sheet variance booked to suspense",
            extra={"journal_number": posted.journal_number,
                   "side": side.value, "amount": str(amount)},
        )
        return AutoBalanceResult(
            as_of_date=as_of_date,
            variance_before=before.variance,
            variance_after=after.variance,
            adjusted_side=side,
            amount=amount,
            entry=posted,
        )
