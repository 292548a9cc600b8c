"""Admin credential model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from avdesk.database import Base
from avdesk.models.mixins import TimestampMixin, uuid_column


class AdminToken(TimestampMixin, Base):
    """Bearer token held by an inventory administrator."""

    __tablename__ = "admin_tokens"
    __table_args__ = (Index("ix_admin_tokens_lookup", "token_lookup"),)

    id: Mapped[uuid.UUID] = uuid_column()
    name: Mapped[str] = mapped_column(String(255), unique=True)
    token_hash: Mapped[str] = mapped_column(String(512))
    token_lookup: Mapped[str] = mapped_column(String(64))
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
