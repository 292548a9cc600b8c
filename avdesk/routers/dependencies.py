"""Shared router helpers."""

from dataclasses import dataclass

from fastapi import Query
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.models.checkout import CheckoutRecord
from avdesk.models.equipment import Equipment
from avdesk.schemas.checkouts import CheckoutResponse, ReturnResult
from avdesk.schemas.equipment import Category
from avdesk.services import reports


@dataclass(slots=True)
class EquipmentFilters:
    """Search and paging options for equipment listings."""

    search: str | None
    category: str | None
    limit: int
    offset: int


def equipment_filters(
    q: str | None = Query(default=None, max_length=100),
    category: Category | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> EquipmentFilters:
    """Collect equipment listing query parameters.

    Parameters
    ----------
    q : str | None
        Case-insensitive name search.
    category : Category | None
        Category filter.
    limit : int
        Page size.
    offset : int
        Page offset.

    Returns
    -------
    EquipmentFilters
        Options passed through to the listing query.
    """
    return EquipmentFilters(search=q, category=category, limit=limit, offset=offset)


async def list_equipment_page(
    session: AsyncSession, view: reports.EquipmentView, filters: EquipmentFilters
) -> list[Equipment]:
    """Run an equipment listing with the request's filters."""
    return await reports.list_equipment(
        session,
        view,
        search=filters.search,
        category=filters.category,
        limit=filters.limit,
        offset=filters.offset,
    )


async def commit_session(session: AsyncSession) -> None:
    """Commit the current transaction.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Commits current transaction.
    """
    await session.commit()


def return_result(record: CheckoutRecord) -> ReturnResult:
    """Shape a return outcome for the response body."""
    return ReturnResult(
        success=True,
        fully_returned=record.return_date is not None,
        remaining=record.remaining,
        checkout=CheckoutResponse.model_validate(record),
    )
