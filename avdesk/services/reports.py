"""Read-only inventory and history queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.models.checkout import CheckoutRecord
from avdesk.models.equipment import Equipment

EquipmentView = Literal["active", "reserved", "archived"]


@dataclass(slots=True)
class CheckoutRow:
    """Checkout record joined with its equipment's descriptive fields."""

    record: CheckoutRecord
    equipment_name: str
    equipment_category: str


@dataclass(slots=True)
class DashboardStats:
    """Inventory summary counters."""

    total_items: int
    available_items: int
    checked_out_items: int
    damaged_items: int
    archived_items: int
    active_checkouts: int
    units_out: int


async def list_equipment(
    session: AsyncSession,
    view: EquipmentView = "active",
    *,
    search: str | None = None,
    category: str | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[Equipment]:
    """List equipment in one display bucket, ordered by name.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    view : EquipmentView, default="active"
        ``active`` excludes retired and reserved items, ``reserved`` lists
        reserved items that are not retired, ``archived`` lists retired items.
    search : str | None, default=None
        Case-insensitive substring matched against the item name.
    category : str | None, default=None
        Restrict to one category.
    limit : int, default=200
        Page size.
    offset : int, default=0
        Page offset.

    Returns
    -------
    list[Equipment]
        Matching rows.
    """
    query = select(Equipment)
    if view == "archived":
        query = query.where(Equipment.is_retired.is_(True))
    else:
        query = query.where(
            Equipment.is_retired.is_(False),
            Equipment.is_reserved.is_(view == "reserved"),
        )
    if category is not None:
        query = query.where(Equipment.category == category)
    needle = (search or "").strip().lower()
    if needle:
        query = query.where(
            func.lower(Equipment.name).contains(needle, autoescape=True)
        )
    result = await session.execute(
        query.order_by(Equipment.name.asc(), Equipment.id.asc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def list_checkouts(
    session: AsyncSession,
    *,
    search: str | None = None,
    active_only: bool = False,
    equipment_id: UUID | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[CheckoutRow]:
    """List checkout history, newest first.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    search : str | None, default=None
        Case-insensitive substring matched against borrower, team, equipment
        name, location, contact number and AV member.
    active_only : bool, default=False
        Only records with units still outstanding.
    equipment_id : UUID | None, default=None
        Restrict to one item.
    limit : int, default=50
        Page size.
    offset : int, default=0
        Page offset.

    Returns
    -------
    list[CheckoutRow]
        Matching records with equipment name and category.
    """
    query = select(CheckoutRecord, Equipment.name, Equipment.category).join(
        Equipment, Equipment.id == CheckoutRecord.equipment_id
    )
    if active_only:
        query = query.where(CheckoutRecord.return_date.is_(None))
    if equipment_id is not None:
        query = query.where(CheckoutRecord.equipment_id == equipment_id)
    needle = (search or "").strip().lower()
    if needle:
        query = query.where(
            or_(
                *(
                    func.lower(column).contains(needle, autoescape=True)
                    for column in (
                        CheckoutRecord.borrower_name,
                        CheckoutRecord.team_name,
                        Equipment.name,
                        CheckoutRecord.location_used,
                        CheckoutRecord.contact_number,
                        CheckoutRecord.av_member,
                    )
                )
            )
        )
    result = await session.execute(
        query.order_by(CheckoutRecord.checkout_date.desc(), CheckoutRecord.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return [
        CheckoutRow(record=record, equipment_name=name, equipment_category=category)
        for record, name, category in result.all()
    ]


async def dashboard_stats(session: AsyncSession) -> DashboardStats:
    """Summarize the inventory for the admin dashboard.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    DashboardStats
        Counts over non-retired items plus archive and checkout totals.
    """
    active = (
        await session.execute(
            select(
                func.count(Equipment.id),
                func.count(Equipment.id).filter(Equipment.is_available.is_(True)),
                func.count(Equipment.id).filter(Equipment.condition == "damaged"),
            ).where(Equipment.is_retired.is_(False))
        )
    ).one()
    archived = (
        await session.execute(
            select(func.count(Equipment.id)).where(Equipment.is_retired.is_(True))
        )
    ).scalar_one()
    checkouts = (
        await session.execute(
            select(
                func.count(CheckoutRecord.id),
                func.coalesce(
                    func.sum(CheckoutRecord.quantity - CheckoutRecord.quantity_returned),
                    0,
                ),
            ).where(CheckoutRecord.return_date.is_(None))
        )
    ).one()
    total_items, available_items, damaged_items = active
    return DashboardStats(
        total_items=total_items,
        available_items=available_items,
        checked_out_items=total_items - available_items,
        damaged_items=damaged_items,
        archived_items=archived,
        active_checkouts=checkouts[0],
        units_out=int(checkouts[1]),
    )
