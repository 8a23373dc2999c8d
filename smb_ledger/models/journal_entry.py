"""
Journal entry and journal line models.

A journal entry is a proposed (DRAFT) or posted (POSTED) set
of debit and credit lines describing one business transaction.
Drafts can be edited; posted entries are frozen, and the only
way to correct them is a new entry.

Concurrent edits to the same draft are caught by the version
column: SQLAlchemy adds "AND version = :old" to every UPDATE
and raises StaleDataError when no row matches.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Integer, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smb_ledger.models.base import Base
from smb_ledger.models.enums import JournalStatus, JournalKind


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    journal_number: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False, index=True
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[JournalStatus] = mapped_column(
        SAEnum(
            JournalStatus,
            name="journal_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=JournalStatus.DRAFT,
    )
    kind: Mapped[JournalKind] = mapped_column(
        SAEnum(
            JournalKind,
            name="journal_kind_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=JournalKind.STANDARD,
    )
    reverses_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True, unique=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="journal_entry",
        order_by="JournalLine.line_number",
        cascade="all, delete-orphan",
    )
    reverses: Mapped["JournalEntry | None"] = relationship(
        remote_side=[id]
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    def __repr__(self) -> str:
        return f"<JournalEntry {self.journal_number} ({self.status.value})>"


class JournalLine(Base):
    """
    One debit or credit line of a journal entry.

    Exactly one of debit_amount / credit_amount is positive.
    That rule is checked by the JournalEntryValidator, not here.
    """

    __tablename__ = "journal_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    journal_entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )

    journal_entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines"
    )
    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<JournalLine {self.line_number} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )
