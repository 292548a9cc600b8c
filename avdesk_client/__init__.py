"""Python SDK for the AV Desk service."""

from avdesk_client.client import AvDeskClient
from avdesk_client.exceptions import (
    AvDeskAPIError,
    AvDeskAuthError,
    AvDeskConflictError,
    AvDeskError,
    AvDeskForbiddenError,
    AvDeskNotFoundError,
    AvDeskRateLimitError,
    AvDeskValidationError,
)
from avdesk_client.types import (
    CheckoutInfo,
    CheckoutResult,
    EquipmentInfo,
    MergePrompt,
    ReturnResult,
)

__all__ = [
    "AvDeskAPIError",
    "AvDeskAuthError",
    "AvDeskClient",
    "AvDeskConflictError",
    "AvDeskError",
    "AvDeskForbiddenError",
    "AvDeskNotFoundError",
    "AvDeskRateLimitError",
    "AvDeskValidationError",
    "CheckoutInfo",
    "CheckoutResult",
    "EquipmentInfo",
    "MergePrompt",
    "ReturnResult",
]
