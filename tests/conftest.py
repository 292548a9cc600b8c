"""Pytest fixtures."""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from avdesk.config import get_settings
from avdesk.database import Base, get_session
from avdesk.main import app
from avdesk.services.security import key_ring

EquipmentFactory = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture(autouse=True)
def _clear_settings_cache(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Reset cached settings and point to a per-test secret key.

    Parameters
    ----------
    tmp_path : Path
        Temporary path fixture.
    monkeypatch : pytest.MonkeyPatch
        Environment monkeypatch helper.

    Yields
    ------
    None
        Applies environment overrides for each test.
    """
    get_settings.cache_clear()
    key_ring.cache_clear()
    monkeypatch.setenv("AVDESK_SECRET_KEY_PATH", str(tmp_path / "secret.key"))
    yield
    get_settings.cache_clear()
    key_ring.cache_clear()


@pytest.fixture()
async def session_factory(
    tmp_path: Path,
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create a session factory backed by a fresh SQLite database.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory for test database.

    Yields
    ------
    async_sessionmaker[AsyncSession]
        Session factory bound to the test engine.
    """
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, future=True)
    factory = async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield factory
    await engine.dispose()


@pytest.fixture()
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """Create a test HTTP client against the app.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Test session factory.

    Yields
    ------
    AsyncClient
        Configured test client.
    """

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    """Bootstrap the desk and return admin auth headers."""
    response = await client.post(
        "/v1/bootstrap", json={"admin_token_name": "desk-lead"}
    )
    assert response.status_code == 200
    token = response.json()["admin_token"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_equipment(
    client: AsyncClient, admin_headers: dict[str, str]
) -> EquipmentFactory:
    """Return a helper that creates an item through the admin API."""

    async def _make(
        name: str = "Shure SM58",
        *,
        category: str = "audio",
        condition_counts: dict[str, int] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        counts = condition_counts if condition_counts is not None else {"good": 3}
        response = await client.post(
            "/v1/admin/equipment",
            headers=admin_headers,
            json={
                "name": name,
                "category": category,
                "total_quantity": sum(counts.values()),
                "condition_counts": counts,
                **extra,
            },
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _make


def checkout_payload(equipment_id: str, **overrides: Any) -> dict[str, Any]:
    """Build a checkout request body with sensible defaults."""
    payload: dict[str, Any] = {
        "equipment_id": equipment_id,
        "borrower_name": "Dana",
        "team_name": "Worship",
        "pin": "1234",
        "condition_counts": {"good": 1},
    }
    payload.update(overrides)
    return payload
