"""Common schema primitives."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictInt

ConditionCountsField = dict[str, StrictInt]
ShortText = Annotated[str, Field(max_length=100)]
LongText = Annotated[str, Field(max_length=500)]


class APIModel(BaseModel):
    """Base API model with attribute validation enabled."""

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(APIModel):
    """Return a generated token exactly once."""

    id: UUID
    token: str
    name: str


class MessageResponse(APIModel):
    """Simple message response."""

    message: str
    timestamp: datetime | None = None
