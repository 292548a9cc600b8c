"""Seed a starter AV inventory through the admin API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import anyio
import httpx


@dataclass(frozen=True, slots=True)
class EquipmentSeed:
    """Equipment seed definition.

    Attributes
    ----------
    name : str
        Display name; used to detect items that already exist.
    category : str
        Inventory category.
    condition_counts : dict[str, int]
        Units owned per condition.
    notes : str | None
        Optional free text.
    """

    name: str
    category: str
    condition_counts: dict[str, int] = field(default_factory=dict)
    notes: str | None = None

    @property
    def total_quantity(self) -> int:
        return sum(self.condition_counts.values())


INVENTORY: tuple[EquipmentSeed, ...] = (
    EquipmentSeed("Shure SM58 Microphone", "audio", {"excellent": 4, "good": 2}),
    EquipmentSeed("Wireless Lavalier Kit", "audio", {"good": 3, "fair": 1}),
    EquipmentSeed("Powered PA Speaker", "audio", {"good": 2}),
    EquipmentSeed("HD Camcorder", "video", {"excellent": 1, "good": 1}),
    EquipmentSeed("Tripod", "video", {"good": 3, "fair": 1}),
    EquipmentSeed("LED Par Light", "lighting", {"good": 6, "bad": 2}),
    EquipmentSeed("Portable Projector", "presentation", {"good": 2}),
    EquipmentSeed("Projector Screen", "presentation", {"fair": 1}),
    EquipmentSeed(
        "XLR Cable 10m",
        "cables_accessories",
        {"good": 10, "damaged": 1},
        notes="Keep damaged cable aside for repair",
    ),
    EquipmentSeed("HDMI Cable 5m", "cables_accessories", {"good": 6}),
)

LIST_PATHS = (
    "/v1/admin/equipment",
    "/v1/admin/equipment/reserved",
    "/v1/admin/equipment/archived",
)


async def existing_names(client: httpx.AsyncClient) -> set[str]:
    """Collect the names of every item, whatever its display bucket.

    Parameters
    ----------
    client : httpx.AsyncClient
        Authenticated admin API client.

    Returns
    -------
    set[str]
        Known equipment names.
    """
    names: set[str] = set()
    for path in LIST_PATHS:
        response = await client.get(path, params={"limit": 500, "offset": 0})
        response.raise_for_status()
        names.update(item["name"] for item in response.json())
    return names


async def ensure_equipment(
    client: httpx.AsyncClient, seed: EquipmentSeed, known: set[str]
) -> bool:
    """Create an item unless one with the same name exists.

    Parameters
    ----------
    client : httpx.AsyncClient
        Authenticated admin API client.
    seed : EquipmentSeed
        Item definition.
    known : set[str]
        Names already present; updated in place.

    Returns
    -------
    bool
        Whether the item was created.
    """
    if seed.name in known:
        return False
    response = await client.post(
        "/v1/admin/equipment",
        json={
            "name": seed.name,
            "category": seed.category,
            "total_quantity": seed.total_quantity,
            "condition_counts": seed.condition_counts,
            "notes": seed.notes,
        },
    )
    response.raise_for_status()
    known.add(seed.name)
    return True


async def main() -> None:
    """Seed the starter inventory.

    Returns
    -------
    None
        Creates missing items and prints a short summary.
    """
    base_url = os.environ.get("AVDESK_BASE_URL", "http://127.0.0.1:8000")
    admin_token = os.environ.get("AVDESK_ADMIN_TOKEN")
    if not admin_token:
        raise SystemExit("AVDESK_ADMIN_TOKEN is required")

    headers = {"Authorization": f"Bearer {admin_token}"}
    async with httpx.AsyncClient(
        base_url=base_url,
        headers=headers,
        timeout=10.0,
    ) as client:
        known = await existing_names(client)
        for seed in INVENTORY:
            if await ensure_equipment(client, seed, known):
                print(f"seeded {seed.name}")
            else:
                print(f"skipped {seed.name}")


if __name__ == "__main__":
    anyio.run(main)
