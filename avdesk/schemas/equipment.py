"""Equipment schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from avdesk.schemas.common import APIModel, ConditionCountsField

Category = Literal[
    "audio", "video", "lighting", "presentation", "cables_accessories", "other"
]


class EquipmentCreateRequest(BaseModel):
    """Create an inventory item."""

    name: str = Field(min_length=1, max_length=255)
    category: Category = "other"
    total_quantity: int = Field(default=1, ge=0)
    condition_counts: ConditionCountsField = Field(default_factory=lambda: {"good": 1})
    quantity_available: int | None = Field(default=None, ge=0)
    quantity_reserved: int = Field(default=0, ge=0)
    notes: str | None = Field(default=None, max_length=2000)


class EquipmentUpdateRequest(BaseModel):
    """Partial update of an inventory item."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: Category | None = None
    total_quantity: int | None = Field(default=None, ge=0)
    condition_counts: ConditionCountsField | None = None
    quantity_available: int | None = Field(default=None, ge=0)
    quantity_reserved: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=2000)


class PublicEquipmentResponse(APIModel):
    """Catalog entry shown to borrowers."""

    id: UUID
    name: str
    category: str
    total_quantity: int
    quantity_available: int
    quantity_reserved: int
    condition_counts: dict[str, int]
    condition: str
    is_available: bool
    notes: str | None


class EquipmentResponse(PublicEquipmentResponse):
    """Inventory item as seen by admins."""

    is_retired: bool
    is_reserved: bool
    created_at: datetime
    updated_at: datetime
