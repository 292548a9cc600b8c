"""Checkout and return schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from avdesk.schemas.common import APIModel, ConditionCountsField, LongText, ShortText


class CheckoutRequest(BaseModel):
    """Borrower checkout payload."""

    equipment_id: UUID
    borrower_name: ShortText
    team_name: ShortText
    pin: str = Field(max_length=10)
    condition_counts: ConditionCountsField
    contact_number: ShortText | None = None
    location_used: ShortText | None = None
    av_member: ShortText | None = None
    expected_return: date | None = None
    notes: LongText | None = None
    force_merge: bool = False
    merge_token: str | None = Field(default=None, max_length=512)


class ReturnRequest(BaseModel):
    """Borrower return payload."""

    equipment_id: UUID
    pin: str = Field(max_length=10)
    condition_counts: ConditionCountsField
    return_notes: LongText | None = None
    returned_by: ShortText | None = None


class ForceReturnRequest(BaseModel):
    """Admin return payload; no PIN."""

    condition_counts: ConditionCountsField
    return_notes: LongText | None = None
    returned_by: ShortText | None = None


class PublicCheckoutResponse(APIModel):
    """Open checkout as shown on the public catalog."""

    id: UUID
    equipment_id: UUID
    borrower_name: str
    team_name: str
    quantity: int
    quantity_returned: int
    checkout_condition_counts: dict[str, int]
    checkout_date: datetime
    expected_return: date | None
    return_date: datetime | None


class CheckoutResponse(PublicCheckoutResponse):
    """Full checkout record for admins and for the borrower's own result."""

    contact_number: str | None
    location_used: str | None
    av_member: str | None
    condition_on_return: str | None
    notes: str | None
    return_notes: str | None
    returned_by: str | None


class CheckoutHistoryResponse(CheckoutResponse):
    """Checkout record with its equipment's name and category."""

    equipment_name: str
    equipment_category: str


class CheckoutResult(BaseModel):
    """Outcome of a checkout request.

    Exactly one of ``success`` and ``merge_prompt`` is true. A merge prompt
    carries the existing record and a ``merge_token`` to send back with
    ``force_merge``.
    """

    success: bool
    merge_prompt: bool = False
    merged: bool = False
    checkout: CheckoutResponse | None = None
    existing: PublicCheckoutResponse | None = None
    merge_token: str | None = None


class ReturnResult(BaseModel):
    """Outcome of a return request."""

    success: bool
    fully_returned: bool
    remaining: int
    checkout: CheckoutResponse
