"""
Pydantic schemas for chart-of-accounts operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
are often different.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from smb_ledger.models.enums import (
    AccountType,
    AccountSubtype,
    NormalBalance,
    SUBTYPES_BY_TYPE,
)


def _check_subtype(
    account_type: AccountType | None, subtype: AccountSubtype | None
) -> None:
    if account_type is None or subtype is None:
        return
    if subtype not in SUBTYPES_BY_TYPE[account_type]:
        raise ValueError(
            f"subtype {subtype.value} does not belong to "
            f"account type {account_type.value}"
        )


# --- Request Schemas ---

class AccountCreate(BaseModel):
    """
    Request to create an account.

    normal_balance may be omitted; the registry then derives it
    from account_type.
    """
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType
    subtype: AccountSubtype | None = None
    normal_balance: NormalBalance | None = None
    parent_id: int | None = None
    description: str | None = Field(default=None, max_length=255)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def subtype_matches_type(self) -> "AccountCreate":
        _check_subtype(self.account_type, self.subtype)
        return self


class AccountUpdate(BaseModel):
    """Partial update. Only fields that are explicitly sent are applied."""
    code: str | None = Field(default=None, min_length=1, max_length=20)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    account_type: AccountType | None = None
    subtype: AccountSubtype | None = None
    normal_balance: NormalBalance | None = None
    parent_id: int | None = None
    description: str | None = Field(default=None, max_length=255)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def subtype_matches_type(self) -> "AccountUpdate":
        _check_subtype(self.account_type, self.subtype)
        return self


# --- Response Schemas ---

class AccountResponse(BaseModel):
    id: int
    code: str
    name: str
    account_type: AccountType
    subtype: AccountSubtype | None
    normal_balance: NormalBalance
    parent_id: int | None
    description: str | None
    is_active: bool
    created_at: datetime
    warnings: list[str] = []

    model_config = {"from_attributes": True}


class AccountBalanceResponse(BaseModel):
    """Response for an account balance query."""
    account_id: int
    account_code: str
    account_type: AccountType
    normal_balance: NormalBalance
    balance: Decimal
    as_of_date: date | None
