"""
Journal number counter.

One row per numbering series ("JE-2024", "JE-2025", ...). The
row is incremented in place while the caller's transaction holds
it, so two concurrent drafts never draw the same number. A
rolled-back draft gives its number back with the rollback.
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from smb_ledger.models.base import Base


class JournalSequence(Base):

    __tablename__ = "journal_sequences"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    current_value: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self):
        return f"<JournalSequence {self.name}: {self.current_value}>"
