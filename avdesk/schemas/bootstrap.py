"""Bootstrap request and response schemas."""

from pydantic import BaseModel, Field

from avdesk.schemas.common import TokenResponse


class BootstrapRequest(BaseModel):
    """Create the first admin credential."""

    admin_token_name: str = Field(default="master-admin", min_length=1, max_length=255)


class BootstrapResponse(BaseModel):
    """Bootstrap response payload."""

    admin_token: TokenResponse
