"""Admin authentication."""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.database import get_session
from avdesk.errors import Conflict, Unauthorized
from avdesk.log import get_logger
from avdesk.models.token import AdminToken
from avdesk.services.security import lookup_hash, verify_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def require_admin_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> AdminToken:
    """Resolve the admin behind a bearer token.

    Admin routes hand the returned row to the service layer as ``actor``;
    services never look up the caller on their own.

    Parameters
    ----------
    credentials : HTTPAuthorizationCredentials | None
        Parsed bearer token.
    session : AsyncSession
        Active database session.

    Returns
    -------
    AdminToken
        Authenticated, unrevoked admin token row.
    """
    if credentials is None:
        raise Unauthorized("Missing token")
    result = await session.execute(
        select(AdminToken).where(
            AdminToken.token_lookup == lookup_hash(credentials.credentials),
            AdminToken.revoked_at.is_(None),
        )
    )
    for row in result.scalars().all():
        if verify_token(credentials.credentials, row.token_hash):
            return row
    logger.warning("admin_token_rejected")
    raise Unauthorized("Invalid admin token")


async def ensure_bootstrap_allowed(session: AsyncSession) -> None:
    """Raise 409 once any admin token exists."""
    result = await session.execute(select(AdminToken.id).limit(1))
    if result.scalar_one_or_none() is not None:
        raise Conflict("Bootstrap already completed")
