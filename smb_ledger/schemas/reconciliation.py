"""
Pydantic schemas for balance-sheet reconciliation.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from smb_ledger.models.enums import NormalBalance
from smb_ledger.schemas.journal import PostedEntry


class VarianceReport(BaseModel):
    as_of_date: date
    total_assets: Decimal
    total_liabilities_and_equity: Decimal
    variance: Decimal
    is_balanced: bool

    model_config = {"frozen": True}


class AutoBalanceResult(BaseModel):
    """
    Outcome of an auto-balance run.

    adjusted_side is the side booked to the suspense account, or
    None when the books were already within tolerance.
    """
    as_of_date: date
    variance_before: Decimal
    variance_after: Decimal
    adjusted_side: NormalBalance | None
    amount: Decimal
    entry: PostedEntry | None

    model_config = {"frozen": True}
