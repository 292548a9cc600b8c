"""Equipment inventory model."""

import uuid

from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from avdesk.database import Base
from avdesk.models.mixins import TimestampMixin, UpdatedAtMixin, uuid_column


class Equipment(TimestampMixin, UpdatedAtMixin, Base):
    """Inventory item with per-condition on-hand counts."""

    __tablename__ = "equipment"

    id: Mapped[uuid.UUID] = uuid_column()
    name: Mapped[str] = mapped_column(String(255))
    category: Mapped[str] = mapped_column(String(50), default="other")
    total_quantity: Mapped[int] = mapped_column(Integer, default=1)
    quantity_available: Mapped[int] = mapped_column(Integer, default=1)
    quantity_reserved: Mapped[int] = mapped_column(Integer, default=0)
    condition_counts: Mapped[dict[str, int]] = mapped_column(JSON, default=dict)
    condition: Mapped[str] = mapped_column(String(20), default="good")
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    is_retired: Mapped[bool] = mapped_column(Boolean, default=False)
    is_reserved: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
