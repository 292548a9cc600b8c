"""Checkout ledger model."""

import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from avdesk.database import Base
from avdesk.models.mixins import TimestampMixin, utcnow, uuid_column


class CheckoutRecord(TimestampMixin, Base):
    """Units of one equipment item held by a borrower."""

    __tablename__ = "checkout_records"
    __table_args__ = (
        Index("ix_checkout_records_equipment_open", "equipment_id", "return_date"),
    )

    id: Mapped[uuid.UUID] = uuid_column()
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("equipment.id", ondelete="CASCADE")
    )
    borrower_name: Mapped[str] = mapped_column(String(100))
    team_name: Mapped[str] = mapped_column(String(100))
    contact_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location_used: Mapped[str | None] = mapped_column(String(100), nullable=True)
    av_member: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pin_digest: Mapped[str] = mapped_column(String(64))
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    quantity_returned: Mapped[int] = mapped_column(Integer, default=0)
    checkout_condition_counts: Mapped[dict[str, int]] = mapped_column(
        JSON, default=dict
    )
    condition_on_return: Mapped[str | None] = mapped_column(String(20), nullable=True)
    checkout_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    expected_return: Mapped[date | None] = mapped_column(Date, nullable=True)
    return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    return_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    returned_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def remaining(self) -> int:
        """Units still outstanding under this record."""
        return self.quantity - self.quantity_returned
