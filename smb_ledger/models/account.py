"""
Account model (chart of accounts).

Every account in the books (cash, receivables, sales revenue,
rent expense, etc.) is a row here. Accounts form a tree through
parent_id and carry the normal balance used to sign their
running balance.
"""

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smb_ledger.models.base import Base
from smb_ledger.models.enums import (
    AccountType,
    AccountSubtype,
    NormalBalance,
    CONVENTIONAL_NORMAL_BALANCE,
)


class Account(Base):
    """
    A single account in the chart of accounts.

    Once an account has postings it is never deleted, only
    deactivated via is_active=False.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, name="account_type_enum"),
        nullable=False,
        index=True,
    )
    subtype: Mapped[AccountSubtype | None] = mapped_column(
        SAEnum(AccountSubtype, name="account_subtype_enum"),
        nullable=True,
    )
    normal_balance: Mapped[NormalBalance] = mapped_column(
        SAEnum(NormalBalance, name="normal_balance_enum"),
        nullable=False,
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    parent: Mapped["Account | None"] = relationship(
        remote_side=[id], back_populates="children"
    )
    children: Mapped[list["Account"]] = relationship(back_populates="parent")

    @property
    def normal_balance_warning(self) -> str | None:
        """Describe a normal balance that departs from the type convention."""
        expected = CONVENTIONAL_NORMAL_BALANCE[self.account_type]
        if self.normal_balance == expected:
            return None
        return (
            f"{self.account_type.value} accounts normally carry a "
            f"{expected.value} balance; this account uses "
            f"{self.normal_balance.value}"
        )

    @property
    def warnings(self) -> list[str]:
        warning = self.normal_balance_warning
        return [warning] if warning else []

    def __repr__(self) -> str:
        return f"<Account {self.code} ({self.account_type.value})>"
