"""Borrower-facing catalog, checkout and return routes."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.database import get_session
from avdesk.errors import NotFound
from avdesk.models.equipment import Equipment
from avdesk.routers.dependencies import (
    EquipmentFilters,
    commit_session,
    equipment_filters,
    list_equipment_page,
    return_result,
)
from avdesk.schemas.checkouts import (
    CheckoutRequest,
    CheckoutResponse,
    CheckoutResult,
    PublicCheckoutResponse,
    ReturnRequest,
    ReturnResult,
)
from avdesk.schemas.equipment import PublicEquipmentResponse
from avdesk.services import ledger
from avdesk.services.inventory import get_equipment
from avdesk.services.reconciliation import checkout_equipment, return_equipment

router = APIRouter(prefix="/v1", tags=["public"])


async def _get_listed_equipment(session: AsyncSession, equipment_id: UUID) -> Equipment:
    """Return an item shown in the public catalog or raise 404."""
    equipment = await get_equipment(session, equipment_id)
    if equipment.is_retired or equipment.is_reserved:
        raise NotFound("Equipment not found")
    return equipment


@router.get("/equipment", response_model=list[PublicEquipmentResponse])
async def list_catalog(
    session: AsyncSession = Depends(get_session),
    filters: EquipmentFilters = Depends(equipment_filters),
) -> list[PublicEquipmentResponse]:
    """List items that can currently be borrowed or are out on loan.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    filters : EquipmentFilters
        Name search, category and paging options.

    Returns
    -------
    list[PublicEquipmentResponse]
        One page of the catalog, ordered by name.
    """
    rows = await list_equipment_page(session, "active", filters)
    return [PublicEquipmentResponse.model_validate(row) for row in rows]


@router.get("/equipment/{equipment_id}", response_model=PublicEquipmentResponse)
async def get_catalog_item(
    equipment_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> PublicEquipmentResponse:
    """Return one catalog item."""
    equipment = await _get_listed_equipment(session, equipment_id)
    return PublicEquipmentResponse.model_validate(equipment)


@router.get(
    "/equipment/{equipment_id}/checkouts",
    response_model=list[PublicCheckoutResponse],
)
async def list_item_checkouts(
    equipment_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> list[PublicCheckoutResponse]:
    """List open checkouts of an item without contact details."""
    equipment = await _get_listed_equipment(session, equipment_id)
    records = await ledger.find_active(session, equipment.id)
    return [PublicCheckoutResponse.model_validate(record) for record in records]


@router.post("/checkout", response_model=CheckoutResult)
async def checkout(
    payload: CheckoutRequest,
    session: AsyncSession = Depends(get_session),
) -> CheckoutResult:
    """Check out equipment, or ask the borrower to confirm a merge.

    Parameters
    ----------
    payload : CheckoutRequest
        Checkout request.
    session : AsyncSession
        Active database session.

    Returns
    -------
    CheckoutResult
        Written checkout, or a merge prompt naming the existing record.
    """
    outcome = await checkout_equipment(
        session,
        equipment_id=payload.equipment_id,
        borrower_name=payload.borrower_name,
        team_name=payload.team_name,
        pin=payload.pin,
        condition_counts=payload.condition_counts,
        contact_number=payload.contact_number,
        location_used=payload.location_used,
        av_member=payload.av_member,
        expected_return=payload.expected_return,
        notes=payload.notes,
        force_merge=payload.force_merge,
        merge_token=payload.merge_token,
    )
    if outcome.merge_prompt:
        return CheckoutResult(
            success=False,
            merge_prompt=True,
            existing=PublicCheckoutResponse.model_validate(outcome.record),
            merge_token=outcome.merge_token,
        )
    await commit_session(session)
    return CheckoutResult(
        success=True,
        merged=outcome.merged,
        checkout=CheckoutResponse.model_validate(outcome.record),
    )


@router.post("/return", response_model=ReturnResult)
async def return_items(
    payload: ReturnRequest,
    session: AsyncSession = Depends(get_session),
) -> ReturnResult:
    """Return units of an item against the borrower's open checkout."""
    record = await return_equipment(
        session,
        equipment_id=payload.equipment_id,
        pin=payload.pin,
        condition_counts=payload.condition_counts,
        return_notes=payload.return_notes,
        returned_by=payload.returned_by,
    )
    await commit_session(session)
    return return_result(record)
