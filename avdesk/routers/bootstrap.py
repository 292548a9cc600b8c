"""Bootstrap routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from avdesk.config import get_settings
from avdesk.database import get_session
from avdesk.errors import Forbidden
from avdesk.models.token import AdminToken
from avdesk.routers.dependencies import commit_session
from avdesk.schemas.bootstrap import BootstrapRequest, BootstrapResponse
from avdesk.schemas.common import TokenResponse
from avdesk.services.audit import log_event
from avdesk.services.auth import ensure_bootstrap_allowed
from avdesk.services.security import issue_admin_token

router = APIRouter(prefix="/v1", tags=["bootstrap"])


@router.post("/bootstrap", response_model=BootstrapResponse)
async def bootstrap(
    payload: BootstrapRequest,
    session: AsyncSession = Depends(get_session),
) -> BootstrapResponse:
    """Issue the desk's first admin token.

    Parameters
    ----------
    payload : BootstrapRequest
        Bootstrap request.
    session : AsyncSession
        Active database session.

    Returns
    -------
    BootstrapResponse
        Created admin token; the plaintext is only shown here.
    """
    if not get_settings().bootstrap_enabled:
        raise Forbidden("Bootstrap disabled")
    await ensure_bootstrap_allowed(session)

    issued = issue_admin_token()
    admin_token = AdminToken(
        name=payload.admin_token_name,
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    session.add(admin_token)
    await session.flush()
    await log_event(
        session,
        admin_token_id=admin_token.id,
        action="desk_bootstrapped",
        resource_type="admin_token",
        resource_id=str(admin_token.id),
        metadata={"name": admin_token.name},
    )
    await commit_session(session)
    return BootstrapResponse(
        admin_token=TokenResponse(
            id=admin_token.id,
            token=issued.plaintext,
            name=admin_token.name,
        ),
    )
