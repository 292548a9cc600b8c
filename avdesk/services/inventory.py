"""Equipment record store."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.errors import Conflict, NotFound, ValidationFailed
from avdesk.models.checkout import CheckoutRecord
from avdesk.models.equipment import Equipment
from avdesk.models.token import AdminToken
from avdesk.services.audit import log_event
from avdesk.services.conditions import (
    CATEGORIES,
    dominant_condition,
    normalize_counts,
    total,
)
from avdesk.services.ledger import outstanding_quantity

QUANTITY_FIELDS = frozenset(
    {"total_quantity", "quantity_available", "quantity_reserved", "condition_counts"}
)
DESCRIPTIVE_FIELDS = frozenset({"name", "category", "notes"})


async def get_equipment(
    session: AsyncSession, equipment_id: UUID, *, lock: bool = False
) -> Equipment:
    """Return an equipment row or raise 404.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.
    lock : bool, default=False
        Read with ``SELECT ... FOR UPDATE`` and refresh any cached state.
        Used by every read-modify-write of the counts.

    Returns
    -------
    Equipment
        Matching equipment row.
    """
    query = select(Equipment).where(Equipment.id == equipment_id)
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    equipment = result.scalar_one_or_none()
    if equipment is None:
        raise NotFound("Equipment not found")
    return equipment


def refresh_summary(equipment: Equipment) -> None:
    """Recompute the stored dominant condition and availability flag.

    Parameters
    ----------
    equipment : Equipment
        Row whose counts just changed.

    Returns
    -------
    None
        Mutates ``equipment`` in place.
    """
    equipment.condition = dominant_condition(equipment.condition_counts or {})
    equipment.is_available = equipment.quantity_available > 0


def _check_quantities(
    *,
    total_quantity: int,
    quantity_available: int,
    quantity_reserved: int,
    on_hand: int,
    outstanding: int,
) -> None:
    """Raise when a quantity combination breaks the inventory invariants."""
    if min(total_quantity, quantity_available, quantity_reserved) < 0:
        raise ValidationFailed("Quantities must be non-negative")
    if on_hand + outstanding != total_quantity:
        if outstanding:
            raise ValidationFailed(
                f"Condition counts must add up to {total_quantity - outstanding} "
                f"({total_quantity} total minus {outstanding} checked out); "
                f"got {on_hand}"
            )
        raise ValidationFailed(
            f"Condition counts must add up to the total quantity "
            f"({total_quantity}); got {on_hand}"
        )
    if quantity_available + quantity_reserved > total_quantity:
        raise ValidationFailed(
            "Available plus reserved quantity cannot exceed the total quantity"
        )
    if quantity_available > on_hand:
        raise ValidationFailed(
            f"Only {on_hand} units are on hand; cannot mark "
            f"{quantity_available} available"
        )


def _check_category(category: str) -> None:
    if category not in CATEGORIES:
        raise ValidationFailed(
            f"Unknown category '{category}'; expected one of {', '.join(CATEGORIES)}"
        )


async def create_equipment(
    session: AsyncSession,
    *,
    actor: AdminToken,
    name: str,
    category: str,
    total_quantity: int,
    condition_counts: dict[str, int],
    notes: str | None = None,
    quantity_available: int | None = None,
    quantity_reserved: int = 0,
) -> Equipment:
    """Create an equipment item.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    actor : AdminToken
        Authenticated admin performing the change.
    name : str
        Display name.
    category : str
        One of the fixed categories.
    total_quantity : int
        Units owned.
    condition_counts : dict[str, int]
        Condition mix; must add up to ``total_quantity``.
    notes : str | None, default=None
        Free text.
    quantity_available : int | None, default=None
        Loanable units. Defaults to everything not reserved.
    quantity_reserved : int, default=0
        Units held back from the public catalog.

    Returns
    -------
    Equipment
        Persisted equipment row.
    """
    name = name.strip()
    if not name:
        raise ValidationFailed("Name is required")
    _check_category(category)
    counts = normalize_counts(condition_counts)
    if quantity_available is None:
        quantity_available = total_quantity - quantity_reserved
    _check_quantities(
        total_quantity=total_quantity,
        quantity_available=quantity_available,
        quantity_reserved=quantity_reserved,
        on_hand=total(counts),
        outstanding=0,
    )
    equipment = Equipment(
        name=name,
        category=category,
        total_quantity=total_quantity,
        quantity_available=quantity_available,
        quantity_reserved=quantity_reserved,
        condition_counts=counts,
        notes=notes,
    )
    refresh_summary(equipment)
    session.add(equipment)
    await session.flush()
    await log_event(
        session,
        admin_token_id=actor.id,
        action="equipment_created",
        resource_type="equipment",
        resource_id=str(equipment.id),
        metadata={"name": equipment.name, "total_quantity": total_quantity},
    )
    return equipment


async def update_equipment(
    session: AsyncSession,
    equipment_id: UUID,
    *,
    actor: AdminToken,
    patch: dict[str, Any],
) -> Equipment:
    """Apply an admin edit to an equipment item.

    Quantity edits are validated against the units currently checked out:
    the on-hand condition counts plus the outstanding balance must still
    equal the total quantity.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.
    actor : AdminToken
        Authenticated admin performing the change.
    patch : dict[str, Any]
        Fields to change. Unknown keys are rejected.

    Returns
    -------
    Equipment
        Updated equipment row.
    """
    unknown = set(patch) - QUANTITY_FIELDS - DESCRIPTIVE_FIELDS
    if unknown:
        raise ValidationFailed(f"Cannot update fields: {', '.join(sorted(unknown))}")

    equipment = await get_equipment(session, equipment_id, lock=True)

    if "name" in patch:
        name = (patch["name"] or "").strip()
        if not name:
            raise ValidationFailed("Name is required")
        equipment.name = name
    if "category" in patch:
        _check_category(patch["category"])
        equipment.category = patch["category"]
    if "notes" in patch:
        equipment.notes = patch["notes"]

    if QUANTITY_FIELDS & set(patch):
        counts = (
            normalize_counts(patch["condition_counts"])
            if "condition_counts" in patch
            else dict(equipment.condition_counts or {})
        )
        total_quantity = patch.get("total_quantity", equipment.total_quantity)
        quantity_available = patch.get(
            "quantity_available", equipment.quantity_available
        )
        quantity_reserved = patch.get("quantity_reserved", equipment.quantity_reserved)
        _check_quantities(
            total_quantity=total_quantity,
            quantity_available=quantity_available,
            quantity_reserved=quantity_reserved,
            on_hand=total(counts),
            outstanding=await outstanding_quantity(session, equipment.id),
        )
        equipment.total_quantity = total_quantity
        equipment.quantity_available = quantity_available
        equipment.quantity_reserved = quantity_reserved
        equipment.condition_counts = counts

    refresh_summary(equipment)
    await session.flush()
    await log_event(
        session,
        admin_token_id=actor.id,
        action="equipment_updated",
        resource_type="equipment",
        resource_id=str(equipment.id),
        metadata={"fields": ",".join(sorted(patch))},
    )
    return equipment


async def _set_flags(
    session: AsyncSession,
    equipment_id: UUID,
    *,
    actor: AdminToken,
    action: str,
    **flags: bool,
) -> Equipment:
    """Set state flags on an equipment item and audit the change."""
    equipment = await get_equipment(session, equipment_id, lock=True)
    for field, value in flags.items():
        setattr(equipment, field, value)
    await session.flush()
    await log_event(
        session,
        admin_token_id=actor.id,
        action=action,
        resource_type="equipment",
        resource_id=str(equipment.id),
        metadata={},
    )
    return equipment


async def retire_equipment(
    session: AsyncSession, equipment_id: UUID, *, actor: AdminToken
) -> Equipment:
    """Hide an item from active views while keeping its history."""
    return await _set_flags(
        session, equipment_id, actor=actor, action="equipment_retired", is_retired=True
    )


async def restore_equipment(
    session: AsyncSession, equipment_id: UUID, *, actor: AdminToken
) -> Equipment:
    """Bring a retired or reserved item back into the active catalog."""
    return await _set_flags(
        session,
        equipment_id,
        actor=actor,
        action="equipment_restored",
        is_retired=False,
        is_reserved=False,
    )


async def reserve_equipment(
    session: AsyncSession, equipment_id: UUID, *, actor: AdminToken
) -> Equipment:
    """Move an item to the reserved display bucket."""
    return await _set_flags(
        session,
        equipment_id,
        actor=actor,
        action="equipment_reserved",
        is_reserved=True,
    )


async def unreserve_equipment(
    session: AsyncSession, equipment_id: UUID, *, actor: AdminToken
) -> Equipment:
    """Return a reserved item to the active catalog."""
    return await _set_flags(
        session,
        equipment_id,
        actor=actor,
        action="equipment_unreserved",
        is_reserved=False,
    )


async def delete_equipment(
    session: AsyncSession, equipment_id: UUID, *, actor: AdminToken
) -> None:
    """Delete an item and its closed checkout history.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.
    actor : AdminToken
        Authenticated admin performing the change.

    Returns
    -------
    None
        Raises 409 while any checkout of the item is still open.
    """
    equipment = await get_equipment(session, equipment_id, lock=True)
    result = await session.execute(
        select(CheckoutRecord.id)
        .where(
            CheckoutRecord.equipment_id == equipment.id,
            CheckoutRecord.return_date.is_(None),
        )
        .limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise Conflict("Equipment has units checked out and cannot be deleted")

    await session.execute(
        delete(CheckoutRecord).where(CheckoutRecord.equipment_id == equipment.id)
    )
    await session.delete(equipment)
    await session.flush()
    await log_event(
        session,
        admin_token_id=actor.id,
        action="equipment_deleted",
        resource_type="equipment",
        resource_id=str(equipment_id),
        metadata={"name": equipment.name},
    )
