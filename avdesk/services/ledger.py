"""Checkout ledger."""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.errors import Conflict, NotFound, ValidationFailed
from avdesk.models.checkout import CheckoutRecord
from avdesk.services.conditions import (
    ConditionCounts,
    add_counts,
    dominant_condition,
    total,
)
from avdesk.services.security import key_ring

NOTES_SEPARATOR = "; "


def _join_notes(existing: str | None, extra: str | None) -> str | None:
    if not extra:
        return existing
    if not existing:
        return extra
    return f"{existing}{NOTES_SEPARATOR}{extra}"


async def outstanding_quantity(session: AsyncSession, equipment_id: UUID) -> int:
    """Return the units of an item held under open checkouts.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.

    Returns
    -------
    int
        Sum of ``quantity - quantity_returned`` over open records.
    """
    result = await session.execute(
        select(
            func.coalesce(
                func.sum(CheckoutRecord.quantity - CheckoutRecord.quantity_returned), 0
            )
        ).where(
            CheckoutRecord.equipment_id == equipment_id,
            CheckoutRecord.return_date.is_(None),
        )
    )
    return int(result.scalar_one())


async def find_active(
    session: AsyncSession, equipment_id: UUID
) -> list[CheckoutRecord]:
    """List open checkout records for an item, newest first.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.

    Returns
    -------
    list[CheckoutRecord]
        Records whose ``return_date`` is null.
    """
    result = await session.execute(
        select(CheckoutRecord)
        .where(
            CheckoutRecord.equipment_id == equipment_id,
            CheckoutRecord.return_date.is_(None),
        )
        .order_by(CheckoutRecord.checkout_date.desc(), CheckoutRecord.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def find_open_balance(
    session: AsyncSession, equipment_id: UUID
) -> CheckoutRecord | None:
    """Return the newest open record that still has units outstanding."""
    for record in await find_active(session, equipment_id):
        if record.remaining > 0:
            return record
    return None


async def find_match(
    session: AsyncSession, equipment_id: UUID, borrower_name: str, pin: str
) -> CheckoutRecord | None:
    """Find an open record eligible to absorb a repeat checkout.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.
    borrower_name : str
        Borrower name, compared exactly.
    pin : str
        Plain PIN, compared through its keyed digest.

    Returns
    -------
    CheckoutRecord | None
        Newest matching open record with units outstanding.
    """
    result = await session.execute(
        select(CheckoutRecord)
        .where(
            CheckoutRecord.equipment_id == equipment_id,
            CheckoutRecord.borrower_name == borrower_name,
            CheckoutRecord.pin_digest == key_ring().pin_digest(pin),
            CheckoutRecord.return_date.is_(None),
            CheckoutRecord.quantity > CheckoutRecord.quantity_returned,
        )
        .order_by(CheckoutRecord.checkout_date.desc(), CheckoutRecord.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_record(session: AsyncSession, record_id: UUID) -> CheckoutRecord:
    """Return a checkout record or raise 404."""
    record = await session.get(CheckoutRecord, record_id, populate_existing=True)
    if record is None:
        raise NotFound("Checkout record not found")
    return record


async def append_record(
    session: AsyncSession,
    *,
    equipment_id: UUID,
    borrower_name: str,
    team_name: str,
    pin: str,
    condition_counts: ConditionCounts,
    contact_number: str | None = None,
    location_used: str | None = None,
    av_member: str | None = None,
    expected_return: date | None = None,
    notes: str | None = None,
) -> CheckoutRecord:
    """Insert a new checkout record.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.
    borrower_name : str
        Person taking the units.
    team_name : str
        Team the units are borrowed on behalf of.
    pin : str
        Plain PIN; only its digest is stored.
    condition_counts : ConditionCounts
        Normalized condition mix taken out.
    contact_number, location_used, av_member : str | None
        Optional descriptive fields.
    expected_return : date | None
        Optional planned return date.
    notes : str | None
        Free text.

    Returns
    -------
    CheckoutRecord
        Persisted record.
    """
    record = CheckoutRecord(
        equipment_id=equipment_id,
        borrower_name=borrower_name,
        team_name=team_name,
        contact_number=contact_number,
        location_used=location_used,
        av_member=av_member,
        pin_digest=key_ring().pin_digest(pin),
        quantity=total(condition_counts),
        quantity_returned=0,
        checkout_condition_counts=dict(condition_counts),
        expected_return=expected_return,
        notes=notes,
    )
    session.add(record)
    await session.flush()
    return record


async def merge_into(
    session: AsyncSession,
    record: CheckoutRecord,
    *,
    condition_counts: ConditionCounts,
    notes: str | None = None,
) -> CheckoutRecord:
    """Fold a repeat checkout into an existing open record.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    record : CheckoutRecord
        Open record to grow.
    condition_counts : ConditionCounts
        Normalized condition mix being added.
    notes : str | None, default=None
        Appended to existing notes with ``"; "``.

    Returns
    -------
    CheckoutRecord
        Updated record.
    """
    if record.return_date is not None:
        raise Conflict("Checkout has already been returned")
    record.quantity = record.quantity + total(condition_counts)
    record.checkout_condition_counts = add_counts(
        record.checkout_condition_counts or {}, condition_counts
    )
    record.notes = _join_notes(record.notes, notes)
    await session.flush()
    return record


async def apply_return(
    session: AsyncSession,
    record: CheckoutRecord,
    *,
    condition_counts: ConditionCounts,
    return_notes: str | None = None,
    returned_by: str | None = None,
) -> CheckoutRecord:
    """Record a full or partial return against a checkout.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    record : CheckoutRecord
        Open record being returned against.
    condition_counts : ConditionCounts
        Normalized condition mix coming back.
    return_notes : str | None, default=None
        Appended to earlier return notes.
    returned_by : str | None, default=None
        Who brought the units back.

    Returns
    -------
    CheckoutRecord
        Updated record; ``return_date`` is set once nothing is outstanding.
    """
    returning = total(condition_counts)
    remaining = record.remaining
    if remaining <= 0 or record.return_date is not None:
        raise Conflict("Checkout has already been returned")
    if returning < 1:
        raise ValidationFailed("Must return at least 1 item")
    if returning > remaining:
        raise ValidationFailed(f"You can only return up to {remaining} items")

    record.quantity_returned = record.quantity_returned + returning
    if record.quantity_returned >= record.quantity:
        record.return_date = datetime.now(timezone.utc)
    record.condition_on_return = dominant_condition(condition_counts)
    record.return_notes = _join_notes(record.return_notes, return_notes)
    if returned_by:
        record.returned_by = returned_by
    await session.flush()
    return record


async def delete_record(session: AsyncSession, record_id: UUID) -> CheckoutRecord:
    """Delete a fully returned checkout record.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    record_id : UUID
        Checkout record identifier.

    Returns
    -------
    CheckoutRecord
        The deleted record.
    """
    record = await get_record(session, record_id)
    if record.return_date is None:
        raise Conflict("Checkout is still active and cannot be deleted")
    await session.delete(record)
    await session.flush()
    return record
