"""SDK response types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from avdesk_client.client import AvDeskClient


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO datetime string, passing ``None`` through."""
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True, slots=True)
class EquipmentInfo:
    """Catalog entry.

    Attributes
    ----------
    id : UUID
        Equipment identifier.
    name : str
        Display name.
    category : str
        Inventory category.
    total_quantity : int
        Units owned.
    quantity_available : int
        Units that can be borrowed now.
    condition_counts : dict[str, int]
        On-hand units per condition.
    condition : str
        Dominant on-hand condition.
    is_available : bool
        Whether at least one unit can be borrowed.
    """

    id: UUID
    name: str
    category: str
    total_quantity: int
    quantity_available: int
    condition_counts: dict[str, int]
    condition: str
    is_available: bool
    notes: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "EquipmentInfo":
        return cls(
            id=UUID(data["id"]),
            name=data["name"],
            category=data["category"],
            total_quantity=data["total_quantity"],
            quantity_available=data["quantity_available"],
            condition_counts=dict(data["condition_counts"]),
            condition=data["condition"],
            is_available=data["is_available"],
            notes=data.get("notes"),
        )


@dataclass(frozen=True, slots=True)
class CheckoutInfo:
    """Checkout record.

    Fields the server withholds from a given view are ``None``.
    """

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
    condition_on_return: str | None = None
    returned_by: str | None = None
    equipment_name: str | None = None

    @property
    def remaining(self) -> int:
        """Units still outstanding."""
        return self.quantity - self.quantity_returned

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "CheckoutInfo":
        expected = data.get("expected_return")
        return cls(
            id=UUID(data["id"]),
            equipment_id=UUID(data["equipment_id"]),
            borrower_name=data["borrower_name"],
            team_name=data["team_name"],
            quantity=data["quantity"],
            quantity_returned=data["quantity_returned"],
            checkout_condition_counts=dict(data["checkout_condition_counts"]),
            checkout_date=parse_datetime(data["checkout_date"]),
            expected_return=date.fromisoformat(expected) if expected else None,
            return_date=parse_datetime(data.get("return_date")),
            condition_on_return=data.get("condition_on_return"),
            returned_by=data.get("returned_by"),
            equipment_name=data.get("equipment_name"),
        )


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    """Written checkout.

    Attributes
    ----------
    checkout : CheckoutInfo
        Created or merged record.
    merged : bool
        Whether the request was folded into an existing record.
    """

    checkout: CheckoutInfo
    merged: bool = False


@dataclass(frozen=True, slots=True)
class ReturnResult:
    """Outcome of a return.

    Attributes
    ----------
    checkout : CheckoutInfo
        Updated record.
    fully_returned : bool
        Whether nothing is outstanding any more.
    remaining : int
        Units still outstanding.
    """

    checkout: CheckoutInfo
    fully_returned: bool
    remaining: int


@dataclass(slots=True)
class MergePrompt:
    """Server asked to confirm merging into an existing checkout.

    Nothing was written. Call :meth:`confirm` to resend the same request
    with the merge confirmed, or drop the prompt to cancel.

    Parameters
    ----------
    client : AvDeskClient
        SDK client that issued the request.
    existing : CheckoutInfo
        Open record the request would be merged into.
    merge_token : str
        Short-lived confirmation token naming ``existing``.
    request : dict[str, Any]
        Original request payload.
    """

    client: "AvDeskClient"
    existing: CheckoutInfo
    merge_token: str
    request: dict[str, Any] = field(default_factory=dict)

    def confirm(self) -> CheckoutResult:
        """Confirm the merge.

        Returns
        -------
        CheckoutResult
            Merged record, or a new record if the existing one closed meanwhile.
        """
        return self.client.confirm_merge(self)
