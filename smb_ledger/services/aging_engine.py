"""
Aging engine for receivables and payables.

Buckets outstanding invoices and bills by how long they have been
open, then rolls them up per counterparty and overall. Invoicing
and billing are not part of the ledger; the engine only reads the
open items those collaborators leave behind.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from smb_ledger.models.enums import OpenItemKind
from smb_ledger.models.open_item import OpenItem
from smb_ledger.schemas.aging import (
    AgingBucket,
    AgingBucketLabel,
    AgingReport,
    BucketTotals,
    CounterpartyAging,
    OpenItemIn,
)

ZERO = Decimal("0")

_BUCKET_FIELDS = {
    AgingBucketLabel.CURRENT: "current",
    AgingBucketLabel.DAYS_1_30: "days_1_30",
    AgingBucketLabel.DAYS_31_60: "days_31_60",
    AgingBucketLabel.DAYS_61_90: "days_61_90",
    AgingBucketLabel.OVER_90: "over_90",
}


def bucket_for(days_outstanding: int) -> AgingBucketLabel:
    if days_outstanding <= 0:
        return AgingBucketLabel.CURRENT
    if days_outstanding <= 30:
        return AgingBucketLabel.DAYS_1_30
    if days_outstanding <= 60:
        return AgingBucketLabel.DAYS_31_60
    if days_outstanding <= 90:
        return AgingBucketLabel.DAYS_61_90
    return AgingBucketLabel.OVER_90


def _totals(buckets: list[AgingBucket]) -> BucketTotals:
    sums = {field: ZERO for field in _BUCKET_FIELDS.values()}
    for bucket in buckets:
        sums[_BUCKET_FIELDS[bucket.bucket]] += bucket.balance
    return BucketTotals(**sums, total=sum(sums.values(), ZERO))


class AgingEngine:

    def __init__(self, db: Session):
        self.db = db

    def age_open_items(
        self,
        as_of_date: date,
        open_items: Iterable[OpenItemIn],
        kind: OpenItemKind | None = None,
    ) -> AgingReport:
        """
        Age a set of open items as of a date.

        Items with nothing left to pay are left out entirely. The
        rest are bucketed, grouped by counterparty (largest amount
        due first) and summed into an overall summary. Touches no
        storage.
        """
        grouped: dict[str, list[tuple[OpenItemIn, AgingBucket]]] = {}
        for item in open_items:
            balance = item.balance
            if balance <= 0:
                continue
            days = (as_of_date - item.created_on).days
            aged = AgingBucket(
                document_number=item.document_number,
                counterparty_id=item.counterparty_id,
                created_on=item.created_on,
                balance=balance,
                days_outstanding=days,
                bucket=bucket_for(days),
            )
            grouped.setdefault(item.counterparty_id, []).append((item, aged))

        counterparties = []
        for counterparty_id, pairs in grouped.items():
            items = [item for item, _ in pairs]
            aged = sorted(
                (bucket for _, bucket in pairs),
                key=lambda b: (b.created_on, b.document_number),
            )
            buckets = _totals(aged)
            oldest = aged[0]
            counterparties.append(CounterpartyAging(
                counterparty_id=counterparty_id,
                counterparty_name=items[0].counterparty_name,
                contact=items[0].counterparty_contact,
                buckets=buckets,
                total_due=buckets.total,
                document_total=sum((i.total for i in items), ZERO),
                paid_amount=sum((i.paid_amount for i in items), ZERO),
                oldest_date=oldest.created_on,
                oldest_days=oldest.days_outstanding,
                items=aged,
            ))

        counterparties.sort(key=lambda c: (-c.total_due, c.counterparty_id))
        all_buckets = [b for c in counterparties for b in c.items]

        return AgingReport(
            as_of_date=as_of_date,
            kind=kind,
            summary=_totals(all_buckets),
            counterparties=counterparties,
            has_data=bool(all_buckets),
        )

    def _open_items(self, kind: OpenItemKind, as_of_date: date) -> list[OpenItemIn]:
        # Anything created during as_of_date counts
        cutoff = datetime.combine(as_of_date, time.max)
        rows = self.db.execute(
            select(OpenItem)
            .where(OpenItem.kind == kind)
            .where(OpenItem.created_at <= cutoff)
            .order_by(OpenItem.created_at, OpenItem.id)
        ).scalars().all()
        return [OpenItemIn.model_validate(row) for row in rows]

    def ar_aging(self, as_of_date: date) -> AgingReport:
        """Accounts receivable aging: what customers owe us."""
        return self.age_open_items(
            as_of_date,
            self._open_items(OpenItemKind.RECEIVABLE, as_of_date),
            kind=OpenItemKind.RECEIVABLE,
        )

    def ap_aging(self, as_of_date: date) -> AgingReport:
        """Accounts payable aging: what we owe vendors."""
        return self.age_open_items(
            as_of_date,
            self._open_items(OpenItemKind.PAYABLE, as_of_date),
            kind=OpenItemKind.PAYABLE,
        )
