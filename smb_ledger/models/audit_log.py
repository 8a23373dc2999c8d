"""
Audit log model.

Records posting, reversal and reconciliation events. Every
change to the ledger must be traceable to one of these rows.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from smb_ledger.models.base import Base


class AuditLog(Base):
    """
    Immutable record of a ledger event.

    Like ledger entries, audit logs are append-only.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
