"""
Aging value objects for receivables and payables.
"""

import enum
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from smb_ledger.models.enums import OpenItemKind


class AgingBucketLabel(str, enum.Enum):
    CURRENT = "current"
    DAYS_1_30 = "1-30"
    DAYS_31_60 = "31-60"
    DAYS_61_90 = "61-90"
    OVER_90 = "over90"


class OpenItemIn(BaseModel):
    """An invoice or bill as seen by the aging engine."""
    document_number: str
    counterparty_id: str
    counterparty_name: str
    counterparty_contact: str | None = None
    total: Decimal = Field(ge=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    waived_amount: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: datetime | date

    model_config = {"from_attributes": True, "frozen": True}

    @property
    def balance(self) -> Decimal:
        return self.total - self.paid_amount - self.waived_amount

    @property
    def created_on(self) -> date:
        if isinstance(self.created_at, datetime):
            return self.created_at.date()
        return self.created_at


class AgingBucket(BaseModel):
    """One open item placed in its bucket."""
    document_number: str
    counterparty_id: str
    created_on: date
    balance: Decimal
    days_outstanding: int
    bucket: AgingBucketLabel

    model_config = {"frozen": True}


class BucketTotals(BaseModel):
    current: Decimal
    days_1_30: Decimal
    days_31_60: Decimal
    days_61_90: Decimal
    over_90: Decimal
    total: Decimal

    model_config = {"frozen": True}


class CounterpartyAging(BaseModel):
    counterparty_id: str
    counterparty_name: str
    contact: str | None
    buckets: BucketTotals
    total_due: Decimal
    document_total: Decimal
    paid_amount: Decimal
    oldest_date: date
    oldest_days: int
    items: list[AgingBucket]

    model_config = {"frozen": True}


class AgingReport(BaseModel):
    as_of_date: date
    kind: OpenItemKind | None
    summary: BucketTotals
    counterparties: list[CounterpartyAging]
    has_data: bool

    model_config = {"frozen": True}
