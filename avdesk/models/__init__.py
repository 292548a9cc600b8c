"""ORM models."""

from avdesk.models.audit import AuditLog
from avdesk.models.checkout import CheckoutRecord
from avdesk.models.equipment import Equipment
from avdesk.models.token import AdminToken

__all__ = [
    "AdminToken",
    "AuditLog",
    "CheckoutRecord",
    "Equipment",
]
