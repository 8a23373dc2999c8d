"""
Journal entry validator.

Checks a draft against the double-entry rules and reports every
violation at once. It reads accounts but never writes anything,
so it is safe to call on unsaved drafts, saved drafts and
entries about to be posted alike.

A draft is any object with entry_date, description and lines
(each line having account_id, debit_amount, credit_amount);
both JournalEntryDraft and the JournalEntry model qualify.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from smb_ledger.config import get_settings
from smb_ledger.exceptions import FieldError
from smb_ledger.models.account import Account
from smb_ledger.models.enums import JournalKind

ZERO = Decimal("0")


class JournalEntryValidator:

    def __init__(self, db: Session):
        self.db = db
        self.epsilon = get_settings().BALANCE_EPSILON

    def validate(self, draft) -> list[FieldError]:
        """Return all field-scoped errors; an empty list means valid."""
        errors: list[FieldError] = []
        kind = getattr(draft, "kind", None) or JournalKind.STANDARD
        lines = list(draft.lines or [])

        if draft.entry_date is None:
            errors.append(FieldError("entry_date", "entry date is required"))
        if not (draft.description or "").strip():
            errors.append(FieldError("description", "description is required"))

        # Reconciliation entries book a single suspense line
        min_lines = 1 if kind == JournalKind.RECONCILIATION else 2
        if len(lines) < min_lines:
            errors.append(FieldError(
                "lines", f"at least {min_lines} lines are required"
            ))

        accounts = self._load_accounts({line.account_id for line in lines})

        total_debit = ZERO
        total_credit = ZERO
        for index, line in enumerate(lines):
            prefix = f"lines[{index}]"
            debit = _amount(line.debit_amount)
            credit = _amount(line.credit_amount)

            account = accounts.get(line.account_id)
            if account is None:
                errors.append(FieldError(
                    f"{prefix}.account_id",
                    f"account {line.account_id} does not exist",
                ))
            elif not account.is_active:
                errors.append(FieldError(
                    f"{prefix}.account_id",
                    f"account {account.code} is not active",
                ))

            if debit < 0:
                errors.append(FieldError(
                    f"{prefix}.debit_amount", "amount cannot be negative"
                ))
            if credit < 0:
                errors.append(FieldError(
                    f"{prefix}.credit_amount", "amount cannot be negative"
                ))
            if debit > 0 and credit > 0:
                errors.append(FieldError(
                    prefix, "a line cannot carry both a debit and a credit"
                ))
            elif debit <= 0 and credit <= 0:
                errors.append(FieldError(
                    prefix, "a line needs a positive debit or credit amount"
                ))

            total_debit += debit
            total_credit += credit

        if kind != JournalKind.RECONCILIATION and lines:
            if abs(total_debit - total_credit) >= self.epsilon:
                errors.append(FieldError(
                    "lines",
                    f"entry does not balance: debits={total_debit}, "
                    f"credits={total_credit}",
                ))

        return errors

    def _load_accounts(self, account_ids: set[int]) -> dict[int, Account]:
        if not account_ids:
            return {}
        accounts = self.db.execute(
            select(Account).where(Account.id.in_(account_ids))
        ).scalars().all()
        return {a.id: a for a in accounts}


def _amount(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value))
