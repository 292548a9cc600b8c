"""Admin-facing schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from avdesk.schemas.common import APIModel


class DashboardResponse(BaseModel):
    """Inventory summary counters."""

    total_items: int
    available_items: int
    checked_out_items: int
    damaged_items: int
    archived_items: int
    active_checkouts: int
    units_out: int


class AuditResponse(APIModel):
    """Audit log event."""

    id: UUID
    admin_token_id: UUID | None
    action: str
    resource_type: str
    resource_id: str
    event_metadata: dict[str, str | int | float | None]
    timestamp: datetime
