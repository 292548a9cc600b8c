"""Checkout and return reconciliation.

Every operation here reads the equipment row with a row lock, validates the
request against the row and the ledger, and applies both sides of the change
in the caller's transaction. Nothing is committed here; routers commit once
the whole operation has succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.config import get_settings
from avdesk.errors import Conflict, Forbidden, NotFound, ValidationFailed
from avdesk.log import get_logger
from avdesk.models.checkout import CheckoutRecord
from avdesk.models.equipment import Equipment
from avdesk.models.token import AdminToken
from avdesk.services import ledger
from avdesk.services.audit import log_event
from avdesk.services.conditions import (
    ConditionCounts,
    add_counts,
    normalize_counts,
    shortfalls,
    subtract_counts,
    total,
    validate_pin,
)
from avdesk.services.inventory import get_equipment, refresh_summary
from avdesk.services.security import key_ring

logger = get_logger(__name__)

PIN_MISMATCH_MESSAGE = (
    "PIN does not match the active checkout for this equipment. "
    "Please enter the 4-digit PIN used during checkout."
)


@dataclass(slots=True)
class CheckoutOutcome:
    """Result of a checkout request.

    Attributes
    ----------
    record : CheckoutRecord
        Created or merged record, or the existing record behind a prompt.
    merge_prompt : bool
        True when nothing was changed and the caller must confirm a merge.
    merged : bool
        True when the request was folded into an existing record.
    merge_token : str | None
        Confirmation token to echo back with ``force_merge``.
    """

    record: CheckoutRecord
    merge_prompt: bool = False
    merged: bool = False
    merge_token: str | None = None


def _required_text(value: str | None, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationFailed(f"{label} is required")
    return cleaned


def _optional_text(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None


def _requested_counts(raw: Any, verb: str) -> ConditionCounts:
    counts = normalize_counts(raw)
    if total(counts) < 1:
        raise ValidationFailed(f"Must {verb} at least 1 item")
    return counts


def _check_expected_return(expected_return: date | None) -> None:
    if expected_return is None:
        return
    today = datetime.now(timezone.utc).date()
    latest = today + timedelta(days=get_settings().max_return_window_days)
    if expected_return < today or expected_return > latest:
        raise ValidationFailed(
            "Expected return date must be a valid future date within 1 year"
        )


def _ensure_stock(equipment: Equipment, counts: ConditionCounts) -> None:
    """Raise 409 unless the request fits on-hand stock."""
    requested = total(counts)
    if requested > equipment.quantity_available:
        raise Conflict(
            f"Only {equipment.quantity_available} available. "
            f"You requested {requested}."
        )
    short = shortfalls(equipment.condition_counts or {}, counts)
    if short:
        condition, on_hand, wanted = short[0]
        raise Conflict(
            f"Only {on_hand} available in {condition} condition. "
            f"You requested {wanted}."
        )


def _withdraw(equipment: Equipment, counts: ConditionCounts) -> None:
    equipment.condition_counts = subtract_counts(
        equipment.condition_counts or {}, counts
    )
    equipment.quantity_available = equipment.quantity_available - total(counts)
    refresh_summary(equipment)


def _restock(equipment: Equipment, counts: ConditionCounts) -> None:
    equipment.condition_counts = add_counts(equipment.condition_counts or {}, counts)
    equipment.quantity_available = min(
        equipment.quantity_available + total(counts), equipment.total_quantity
    )
    refresh_summary(equipment)


async def _merge_target(
    session: AsyncSession,
    *,
    equipment_id: UUID,
    borrower_name: str,
    pin: str,
    merge_token: str | None,
) -> CheckoutRecord | None:
    """Resolve the record a confirmed merge should land on.

    With a token, only the record it names qualifies, and only while it is
    still open and still belongs to the same borrower and PIN. Without a
    token the newest matching record is used.
    """
    if merge_token is None:
        return await ledger.find_match(session, equipment_id, borrower_name, pin)

    record_id = key_ring().read_merge_token(
        merge_token, get_settings().merge_token_ttl_seconds
    )
    if record_id is None:
        return None
    try:
        record = await ledger.get_record(session, record_id)
    except NotFound:
        return None
    if (
        record.equipment_id != equipment_id
        or record.return_date is not None
        or record.remaining <= 0
        or record.borrower_name != borrower_name
        or not key_ring().verify_pin(pin, record.pin_digest)
    ):
        return None
    return record


async def checkout_equipment(
    session: AsyncSession,
    *,
    equipment_id: UUID,
    borrower_name: str,
    team_name: str,
    pin: str,
    condition_counts: Any,
    contact_number: str | None = None,
    location_used: str | None = None,
    av_member: str | None = None,
    expected_return: date | None = None,
    notes: str | None = None,
    force_merge: bool = False,
    merge_token: str | None = None,
) -> CheckoutOutcome:
    """Check units of an item out to a borrower.

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
        Four-digit PIN that will authorize the return.
    condition_counts : Any
        Requested units per condition bucket.
    contact_number, location_used, av_member : str | None
        Optional descriptive fields.
    expected_return : date | None, default=None
        Planned return date, at most one year out.
    notes : str | None, default=None
        Free text.
    force_merge : bool, default=False
        Confirm folding the request into an existing open checkout.
    merge_token : str | None, default=None
        Token from the merge prompt naming the record to merge into.

    Returns
    -------
    CheckoutOutcome
        Either the written record or a merge prompt.
    """
    pin = validate_pin(pin)
    borrower_name = _required_text(borrower_name, "Borrower name")
    team_name = _required_text(team_name, "Team name")
    counts = _requested_counts(condition_counts, "check out")
    _check_expected_return(expected_return)
    notes = _optional_text(notes)

    equipment = await get_equipment(session, equipment_id, lock=True)
    if equipment.is_retired or equipment.is_reserved:
        raise NotFound("Equipment not found")
    _ensure_stock(equipment, counts)

    if not force_merge:
        existing = await ledger.find_match(session, equipment.id, borrower_name, pin)
        if existing is not None:
            logger.info(
                "merge_prompted",
                checkout_id=str(existing.id),
                equipment_id=str(equipment.id),
                requested=total(counts),
            )
            return CheckoutOutcome(
                record=existing,
                merge_prompt=True,
                merge_token=key_ring().issue_merge_token(existing.id),
            )
        target = None
    else:
        target = await _merge_target(
            session,
            equipment_id=equipment.id,
            borrower_name=borrower_name,
            pin=pin,
            merge_token=merge_token,
        )

    if target is not None:
        record = await ledger.merge_into(
            session, target, condition_counts=counts, notes=notes
        )
        action = "checkout_merged"
    else:
        record = await ledger.append_record(
            session,
            equipment_id=equipment.id,
            borrower_name=borrower_name,
            team_name=team_name,
            pin=pin,
            condition_counts=counts,
            contact_number=_optional_text(contact_number),
            location_used=_optional_text(location_used),
            av_member=_optional_text(av_member),
            expected_return=expected_return,
            notes=notes,
        )
        action = "equipment_checked_out"

    _withdraw(equipment, counts)
    await session.flush()
    await log_event(
        session,
        action=action,
        resource_type="checkout",
        resource_id=str(record.id),
        metadata={
            "equipment_id": str(equipment.id),
            "quantity": total(counts),
            "quantity_available": equipment.quantity_available,
        },
    )
    return CheckoutOutcome(record=record, merged=target is not None)


async def return_equipment(
    session: AsyncSession,
    *,
    equipment_id: UUID,
    pin: str,
    condition_counts: Any,
    return_notes: str | None = None,
    returned_by: str | None = None,
) -> CheckoutRecord:
    """Return units against the newest open checkout of an item.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    equipment_id : UUID
        Equipment identifier.
    pin : str
        PIN given at checkout.
    condition_counts : Any
        Returned units per condition bucket.
    return_notes : str | None, default=None
        Free text.
    returned_by : str | None, default=None
        Who brought the units back; defaults to the borrower.

    Returns
    -------
    CheckoutRecord
        Updated checkout record.
    """
    pin = validate_pin(pin)
    counts = _requested_counts(condition_counts, "return")

    equipment = await get_equipment(session, equipment_id, lock=True)
    record = await ledger.find_open_balance(session, equipment.id)
    if record is None:
        raise NotFound("No active checkout found")
    if not key_ring().verify_pin(pin, record.pin_digest):
        logger.warning(
            "return_pin_rejected",
            checkout_id=str(record.id),
            equipment_id=str(equipment.id),
        )
        raise Forbidden(PIN_MISMATCH_MESSAGE)

    record = await ledger.apply_return(
        session,
        record,
        condition_counts=counts,
        return_notes=_optional_text(return_notes),
        returned_by=_optional_text(returned_by) or record.borrower_name,
    )
    _restock(equipment, counts)
    await session.flush()
    await log_event(
        session,
        action="equipment_returned",
        resource_type="checkout",
        resource_id=str(record.id),
        metadata={
            "equipment_id": str(equipment.id),
            "quantity": total(counts),
            "remaining": record.remaining,
        },
    )
    return record


async def force_return(
    session: AsyncSession,
    record_id: UUID,
    *,
    actor: AdminToken,
    condition_counts: Any,
    return_notes: str | None = None,
    returned_by: str | None = None,
) -> CheckoutRecord:
    """Return units against a specific checkout without a PIN.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    record_id : UUID
        Checkout record identifier.
    actor : AdminToken
        Authenticated admin performing the return.
    condition_counts : Any
        Returned units per condition bucket.
    return_notes : str | None, default=None
        Free text.
    returned_by : str | None, default=None
        Attribution; defaults to the admin credential name.

    Returns
    -------
    CheckoutRecord
        Updated checkout record.
    """
    counts = _requested_counts(condition_counts, "return")

    record = await ledger.get_record(session, record_id)
    equipment = await get_equipment(session, record.equipment_id, lock=True)
    record = await ledger.get_record(session, record_id)
    if record.return_date is not None:
        raise Conflict("Checkout has already been returned")

    record = await ledger.apply_return(
        session,
        record,
        condition_counts=counts,
        return_notes=_optional_text(return_notes),
        returned_by=_optional_text(returned_by) or actor.name,
    )
    _restock(equipment, counts)
    await session.flush()
    await log_event(
        session,
        admin_token_id=actor.id,
        action="equipment_force_returned",
        resource_type="checkout",
        resource_id=str(record.id),
        metadata={
            "equipment_id": str(equipment.id),
            "quantity": total(counts),
            "remaining": record.remaining,
        },
    )
    return record
