"""Audit logging service."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.log import get_logger
from avdesk.models.audit import AuditLog

logger = get_logger(__name__)


async def log_event(
    session: AsyncSession,
    *,
    action: str,
    resource_type: str,
    resource_id: str,
    metadata: dict[str, str | int | float | None],
    admin_token_id: UUID | None = None,
) -> AuditLog:
    """Persist an audit event and emit it as a structured log line.

    The audit row joins the caller's transaction, so it is only stored if
    the mutation it describes commits.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    action : str
        Event action.
    resource_type : str
        Kind of resource touched.
    resource_id : str
        String resource identifier.
    metadata : dict[str, str | int | float | None]
        Additional event metadata. Never include PINs.
    admin_token_id : UUID | None, default=None
        Admin credential that performed the action, if any.

    Returns
    -------
    AuditLog
        Persisted audit record.
    """
    event = AuditLog(
        admin_token_id=admin_token_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        event_metadata=metadata,
    )
    session.add(event)
    await session.flush()
    logger.info(
        action,
        resource_type=resource_type,
        resource_id=resource_id,
        admin_token_id=str(admin_token_id) if admin_token_id else None,
        **metadata,
    )
    return event
