"""ledger quantity constraints"""

from __future__ import annotations

from alembic import op

revision = "0002_ledger_constraints"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None

EQUIPMENT_CHECKS = {
    "ck_equipment_quantities_non_negative": (
        "total_quantity >= 0 AND quantity_available >= 0 AND quantity_reserved >= 0"
    ),
    "ck_equipment_available_within_total": (
        "quantity_available + quantity_reserved <= total_quantity"
    ),
}
CHECKOUT_CHECKS = {
    "ck_checkout_records_quantity_positive": "quantity >= 1",
    "ck_checkout_records_returned_within_quantity": (
        "quantity_returned >= 0 AND quantity_returned <= quantity"
    ),
}


def upgrade() -> None:
    """Add database-level guards for the ledger quantities.

    Returns
    -------
    None
        Creates check constraints through batch mode.
    """
    with op.batch_alter_table("equipment") as batch:
        for name, condition in EQUIPMENT_CHECKS.items():
            batch.create_check_constraint(name, condition)
    with op.batch_alter_table("checkout_records") as batch:
        for name, condition in CHECKOUT_CHECKS.items():
            batch.create_check_constraint(name, condition)


def downgrade() -> None:
    """Remove the ledger check constraints.

    Returns
    -------
    None
        Drops check constraints.
    """
    with op.batch_alter_table("checkout_records") as batch:
        for name in CHECKOUT_CHECKS:
            batch.drop_constraint(name, type_="check")
    with op.batch_alter_table("equipment") as batch:
        for name in EQUIPMENT_CHECKS:
            batch.drop_constraint(name, type_="check")
