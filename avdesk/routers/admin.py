"""Admin routes."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.database import get_session
from avdesk.models.audit import AuditLog
from avdesk.models.token import AdminToken
from avdesk.routers.dependencies import (
    EquipmentFilters,
    commit_session,
    equipment_filters,
    list_equipment_page,
    return_result,
)
from avdesk.schemas.admin import AuditResponse, DashboardResponse
from avdesk.schemas.checkouts import (
    CheckoutHistoryResponse,
    CheckoutResponse,
    ForceReturnRequest,
    ReturnResult,
)
from avdesk.schemas.common import MessageResponse
from avdesk.schemas.equipment import (
    EquipmentCreateRequest,
    EquipmentResponse,
    EquipmentUpdateRequest,
)
from avdesk.services import inventory, ledger, reports
from avdesk.services.audit import log_event
from avdesk.services.auth import require_admin_token
from avdesk.services.reconciliation import force_return

router = APIRouter(prefix="/v1/admin", tags=["admin"])

NULLABLE_FIELDS = frozenset({"notes"})


def _history_rows(rows: list[reports.CheckoutRow]) -> list[CheckoutHistoryResponse]:
    return [
        CheckoutHistoryResponse(
            **CheckoutResponse.model_validate(row.record).model_dump(),
            equipment_name=row.equipment_name,
            equipment_category=row.equipment_category,
        )
        for row in rows
    ]


@router.post("/equipment", response_model=EquipmentResponse)
async def create_equipment(
    payload: EquipmentCreateRequest,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Add an item to the inventory."""
    equipment = await inventory.create_equipment(
        session,
        actor=admin_token,
        name=payload.name,
        category=payload.category,
        total_quantity=payload.total_quantity,
        condition_counts=payload.condition_counts,
        notes=payload.notes,
        quantity_available=payload.quantity_available,
        quantity_reserved=payload.quantity_reserved,
    )
    await commit_session(session)
    return EquipmentResponse.model_validate(equipment)


@router.get("/equipment", response_model=list[EquipmentResponse])
async def list_equipment(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
    filters: EquipmentFilters = Depends(equipment_filters),
) -> list[EquipmentResponse]:
    """List active items."""
    rows = await list_equipment_page(session, "active", filters)
    return [EquipmentResponse.model_validate(row) for row in rows]


@router.get("/equipment/reserved", response_model=list[EquipmentResponse])
async def list_reserved_equipment(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
    filters: EquipmentFilters = Depends(equipment_filters),
) -> list[EquipmentResponse]:
    """List reserved items."""
    rows = await list_equipment_page(session, "reserved", filters)
    return [EquipmentResponse.model_validate(row) for row in rows]


@router.get("/equipment/archived", response_model=list[EquipmentResponse])
async def list_archived_equipment(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
    filters: EquipmentFilters = Depends(equipment_filters),
) -> list[EquipmentResponse]:
    """List retired items."""
    rows = await list_equipment_page(session, "archived", filters)
    return [EquipmentResponse.model_validate(row) for row in rows]


@router.get("/equipment/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Return one item regardless of its display bucket."""
    equipment = await inventory.get_equipment(session, equipment_id)
    return EquipmentResponse.model_validate(equipment)


@router.patch("/equipment/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: UUID,
    payload: EquipmentUpdateRequest,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Edit an item.

    Parameters
    ----------
    equipment_id : UUID
        Equipment identifier.
    payload : EquipmentUpdateRequest
        Fields to change; omitted fields are left alone.
    admin_token : AdminToken
        Authenticated admin token.
    session : AsyncSession
        Active database session.

    Returns
    -------
    EquipmentResponse
        Updated item.
    """
    patch: dict[str, Any] = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    equipment = await inventory.update_equipment(
        session, equipment_id, actor=admin_token, patch=patch
    )
    await commit_session(session)
    return EquipmentResponse.model_validate(equipment)


@router.delete("/equipment/{equipment_id}", response_model=MessageResponse)
async def delete_equipment(
    equipment_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete an item that has nothing checked out."""
    await inventory.delete_equipment(session, equipment_id, actor=admin_token)
    await commit_session(session)
    return MessageResponse(message="Equipment deleted")


@router.post("/equipment/{equipment_id}/retire", response_model=EquipmentResponse)
async def retire_equipment(
    equipment_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Move an item to the archive."""
    equipment = await inventory.retire_equipment(
        session, equipment_id, actor=admin_token
    )
    await commit_session(session)
    return EquipmentResponse.model_validate(equipment)


@router.post("/equipment/{equipment_id}/restore", response_model=EquipmentResponse)
async def restore_equipment(
    equipment_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Bring an archived or reserved item back to the catalog."""
    equipment = await inventory.restore_equipment(
        session, equipment_id, actor=admin_token
    )
    await commit_session(session)
    return EquipmentResponse.model_validate(equipment)


@router.post("/equipment/{equipment_id}/reserve", response_model=EquipmentResponse)
async def reserve_equipment(
    equipment_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Hold an item back from the public catalog."""
    equipment = await inventory.reserve_equipment(
        session, equipment_id, actor=admin_token
    )
    await commit_session(session)
    return EquipmentResponse.model_validate(equipment)


@router.post("/equipment/{equipment_id}/unreserve", response_model=EquipmentResponse)
async def unreserve_equipment(
    equipment_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> EquipmentResponse:
    """Release a reserved item."""
    equipment = await inventory.unreserve_equipment(
        session, equipment_id, actor=admin_token
    )
    await commit_session(session)
    return EquipmentResponse.model_validate(equipment)


@router.get("/checkouts", response_model=list[CheckoutHistoryResponse])
async def list_checkouts(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
    q: str | None = Query(default=None, max_length=100),
    active: bool = Query(default=False),
    equipment_id: UUID | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[CheckoutHistoryResponse]:
    """Search checkout history, newest first."""
    rows = await reports.list_checkouts(
        session,
        search=q,
        active_only=active,
        equipment_id=equipment_id,
        limit=limit,
        offset=offset,
    )
    return _history_rows(rows)


@router.get("/checkouts/active", response_model=list[CheckoutHistoryResponse])
async def list_active_checkouts(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=200, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[CheckoutHistoryResponse]:
    """List every checkout with units still outstanding."""
    rows = await reports.list_checkouts(
        session, active_only=True, limit=limit, offset=offset
    )
    return _history_rows(rows)


@router.post("/checkouts/{checkout_id}/force-return", response_model=ReturnResult)
async def force_return_checkout(
    checkout_id: UUID,
    payload: ForceReturnRequest,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> ReturnResult:
    """Return units against a checkout on the borrower's behalf."""
    record = await force_return(
        session,
        checkout_id,
        actor=admin_token,
        condition_counts=payload.condition_counts,
        return_notes=payload.return_notes,
        returned_by=payload.returned_by,
    )
    await commit_session(session)
    return return_result(record)


@router.delete("/checkouts/{checkout_id}", response_model=MessageResponse)
async def delete_checkout(
    checkout_id: UUID,
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete a closed checkout record from the history."""
    record = await ledger.delete_record(session, checkout_id)
    await log_event(
        session,
        admin_token_id=admin_token.id,
        action="checkout_deleted",
        resource_type="checkout",
        resource_id=str(checkout_id),
        metadata={"equipment_id": str(record.equipment_id)},
    )
    await commit_session(session)
    return MessageResponse(message="Checkout record deleted")


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    """Summarize the inventory."""
    stats = await reports.dashboard_stats(session)
    return DashboardResponse(
        total_items=stats.total_items,
        available_items=stats.available_items,
        checked_out_items=stats.checked_out_items,
        damaged_items=stats.damaged_items,
        archived_items=stats.archived_items,
        active_checkouts=stats.active_checkouts,
        units_out=stats.units_out,
    )


@router.get("/audit", response_model=list[AuditResponse])
async def list_audit_events(
    admin_token: AdminToken = Depends(require_admin_token),
    session: AsyncSession = Depends(get_session),
    action: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[AuditResponse]:
    """List audit events, newest first."""
    query = select(AuditLog)
    if action:
        query = query.where(AuditLog.action == action)
    result = await session.execute(
        query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return [AuditResponse.model_validate(row) for row in result.scalars().all()]
