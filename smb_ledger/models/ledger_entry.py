"""
Ledger entry model.

Each row records one account's movement from a posted journal
entry, plus the account's running balance after the movement.
Rows are created only by the LedgerPoster and are never
modified or deleted.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smb_ledger.models.base import Base


class LedgerEntry(Base):
    """
    An immutable debit or credit movement in the ledger.

    running_balance is signed by the account's normal balance:
    a DEBIT-normal account grows with debits, a CREDIT-normal
    account grows with credits.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    journal_entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    running_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    transaction_date: Mapped[date] = mapped_column(
        Date, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship()
    journal_entry: Mapped["JournalEntry"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry account={self.account_id} "
            f"Dr {self.debit_amount} Cr {self.credit_amount} "
            f"bal {self.running_balance}>"
        )
