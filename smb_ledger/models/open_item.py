"""
Open item model.

An unpaid (or partly paid) customer invoice or vendor bill.
Invoicing and billing live outside the ledger engine; they
write these rows, and the AgingEngine reads them.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from smb_ledger.models.base import Base
from smb_ledger.models.enums import OpenItemKind


class OpenItem(Base):
    __tablename__ = "open_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    kind: Mapped[OpenItemKind] = mapped_column(
        SAEnum(OpenItemKind, name="open_item_kind_enum"),
        nullable=False,
        index=True,
    )
    document_number: Mapped[str] = mapped_column(String(50), nullable=False)
    counterparty_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    counterparty_name: Mapped[str] = mapped_column(
        String(150), nullable=False
    )
    counterparty_contact: Mapped[str | None] = mapped_column(
        String(150), nullable=True
    )
    total: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    waived_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<OpenItem {self.kind.value} {self.document_number} "
            f"{self.total}>"
        )
