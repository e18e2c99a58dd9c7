"""
Tests del contrato HTTP de la API de lectura, autenticacion y sync.

La app usa SQLite en memoria via dependency_overrides; el almacen de
imagenes y el coordinador se sustituyen por dobles.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from catalog_bff.api.v1.dependencies.repository_deps import get_catalog_store
from catalog_bff.api.v1.dependencies.use_case_deps import get_asset_store, get_sync_coordinator
from catalog_bff.core.security import security_service
from catalog_bff.domain.entities.catalog_item import CatalogItem, PromotionFlags
from catalog_bff.domain.entities.user import User
from catalog_bff.infrastructure.database.session import get_db
from catalog_bff.infrastructure.repositories.catalog_repository_impl import SqlAlchemyCatalogStore
from catalog_bff.infrastructure.repositories.user_repository_impl import UserRepositoryImpl
from catalog_bff.shared.constants.catalog_constants import PriceType, SyncState, UserRole


ITEMS = [
    CatalogItem(id="120500", scientific_name="Ficus Benjamina", family="Interior", pot_size="M-17",
                base_price=12.5, price2=10.0, price3=8.75, promotion_flags=PromotionFlags(finca=True)),
    CatalogItem(id="175000", scientific_name="Olea Europaea", family="Exterior", pot_size="M-30",
                base_price=40.0, price2=35.0, price3=30.0),
]


@pytest.fixture
async def users(session_factory):
    """Crea un usuario por rol y devuelve sus tokens."""
    specs = [
        ("comercial@vivero.test", UserRole.COMERCIAL, PriceType.BASE),
        ("trabajador@vivero.test", UserRole.TRABAJADOR, PriceType.BASE),
        ("cliente@vivero.test", UserRole.CLIENTE, PriceType.PRICE3),
    ]
    tokens = {}
    async with session_factory() as session:
        repo = UserRepositoryImpl(session)
        for email, role, price_type in specs:
            user = await repo.create(
                User(
                    email=email,
                    hashed_password=security_service.hash_password("secreto123"),
                    name=role.value.title(),
                    role=role,
                    price_type=price_type,
                )
            )
            tokens[role] = security_service.create_access_token({"sub": str(user.id), "role": role.value})
        await session.commit()
    return tokens


@pytest.fixture
def asset_store() -> AsyncMock:
    store = AsyncMock()
    store.upload_bytes = AsyncMock(return_value="https://assets.test/catalogo/120500.jpg")
    return store


@pytest.fixture
def coordinator() -> MagicMock:
    coordinator = MagicMock()
    coordinator.state = SyncState.IDLE
    coordinator.last_report = None
    coordinator.start_in_background = MagicMock(return_value=True)
    coordinator.cancel = MagicMock(return_value=False)
    return coordinator


@pytest.fixture
async def app(session_factory, users, asset_store, coordinator):
    from catalog_bff.main import create_application

    store = SqlAlchemyCatalogStore(session_factory)
    await store.replace_all(ITEMS)

    async def _get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    application = create_application()
    application.dependency_overrides[get_db] = _get_db
    application.dependency_overrides[get_catalog_store] = lambda: store
    application.dependency_overrides[get_asset_store] = lambda: asset_store
    application.dependency_overrides[get_sync_coordinator] = lambda: coordinator
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_anonymous_listing_hides_prices(client) -> None:
    response = await client.get("/api/v1/catalog/items")

    assert response.status_code == 200
    data = response.json()
    assert data["total_items"] == 2
    assert data["total_pages"] == 1
    first = data["items"][0]
    assert first["id"] == "120500"
    assert first["promotion_flags"]["finca"] is True
    for price_field in ("price", "base_price", "price2", "price3"):
        assert price_field not in first


@pytest.mark.asyncio
async def test_comercial_sees_all_price_tiers(client, users) -> None:
    response = await client.get("/api/v1/catalog/items/120500", headers=_auth(users[UserRole.COMERCIAL]))

    assert response.status_code == 200
    data = response.json()
    assert data["base_price"] == 12.5
    assert data["price2"] == 10.0
    assert data["price3"] == 8.75
    assert "price" not in data


@pytest.mark.asyncio
async def test_cliente_sees_only_assigned_tariff(client, users) -> None:
    response = await client.get("/api/v1/catalog/items/120500", headers=_auth(users[UserRole.CLIENTE]))

    assert response.status_code == 200
    data = response.json()
    assert data["price"] == 8.75
    assert "base_price" not in data
    assert "price2" not in data


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client) -> None:
    response = await client.get("/api/v1/catalog/items", headers=_auth("not-a-jwt"))

    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_listing_filters(client) -> None:
    response = await client.get("/api/v1/catalog/items", params={"search": "olea"})
    assert [i["id"] for i in response.json()["items"]] == ["175000"]

    response = await client.get("/api/v1/catalog/items", params={"promotion": "finca"})
    assert [i["id"] for i in response.json()["items"]] == ["120500"]


@pytest.mark.asyncio
async def test_unknown_promotion_is_bad_request(client) -> None:
    response = await client.get("/api/v1/catalog/items", params={"promotion": "luna"})

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_page_size_limit(client) -> None:
    response = await client.get("/api/v1/catalog/items", params={"page_size": 500})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_item_returns_404(client) -> None:
    response = await client.get("/api/v1/catalog/items/999999")

    assert response.status_code == 404
    assert response.json()["error"] == "ENTITY_NOT_FOUND"


@pytest.mark.asyncio
async def test_image_upload_requires_staff_role(client, users, asset_store) -> None:
    files = {"image": ("foto.jpg", b"\xff\xd8\xff", "image/jpeg")}

    anonymous = await client.put("/api/v1/catalog/items/120500/image", files=files)
    forbidden = await client.put(
        "/api/v1/catalog/items/120500/image", files=files, headers=_auth(users[UserRole.CLIENTE])
    )

    assert anonymous.status_code == 401
    assert forbidden.status_code == 403
    asset_store.upload_bytes.assert_not_called()


@pytest.mark.asyncio
async def test_image_upload_updates_item(client, users, asset_store) -> None:
    files = {"image": ("foto.jpg", b"\xff\xd8\xff", "image/jpeg")}

    response = await client.put(
        "/api/v1/catalog/items/120500/image", files=files, headers=_auth(users[UserRole.TRABAJADOR])
    )

    assert response.status_code == 200
    assert response.json()["image_url"] == "https://assets.test/catalogo/120500.jpg"
    asset_store.upload_bytes.assert_awaited_once_with("120500", b"\xff\xd8\xff")

    again = await client.get("/api/v1/catalog/items/120500")
    assert again.json()["image_url"] == "https://assets.test/catalogo/120500.jpg"


@pytest.mark.asyncio
async def test_image_upload_rejects_non_images(client, users) -> None:
    files = {"image": ("notas.txt", b"hola", "text/plain")}

    response = await client.put(
        "/api/v1/catalog/items/120500/image", files=files, headers=_auth(users[UserRole.COMERCIAL])
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_returns_token(client) -> None:
    response = await client.post(
        "/api/v1/auth/login", json={"email": "Cliente@Vivero.test", "password": "secreto123"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "cliente"

    me = await client.get("/api/v1/auth/me", headers=_auth(data["access_token"]))
    assert me.json()["email"] == "cliente@vivero.test"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client) -> None:
    response = await client.post(
        "/api/v1/auth/login", json={"email": "cliente@vivero.test", "password": "otra"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_register_requires_comercial(client, users) -> None:
    payload = {"email": "nuevo@vivero.test", "password": "secreto123", "name": "Nuevo", "price_type": "price2"}

    forbidden = await client.post("/api/v1/auth/register", json=payload, headers=_auth(users[UserRole.CLIENTE]))
    created = await client.post("/api/v1/auth/register", json=payload, headers=_auth(users[UserRole.COMERCIAL]))
    duplicate = await client.post("/api/v1/auth/register", json=payload, headers=_auth(users[UserRole.COMERCIAL]))

    assert forbidden.status_code == 403
    assert created.status_code == 201
    assert created.json()["price_type"] == "price2"
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_sync_run_and_overlap(client, users, coordinator) -> None:
    headers = _auth(users[UserRole.COMERCIAL])

    started = await client.post("/api/v1/sync/run", headers=headers)
    coordinator.start_in_background.return_value = False
    overlap = await client.post("/api/v1/sync/run", headers=headers)

    assert started.status_code == 202
    assert started.json()["started"] is True
    assert overlap.status_code == 409
    assert overlap.json()["started"] is False


@pytest.mark.asyncio
async def test_sync_endpoints_require_comercial(client, users) -> None:
    response = await client.get("/api/v1/sync/status", headers=_auth(users[UserRole.TRABAJADOR]))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_sync_status(client, users) -> None:
    response = await client.get("/api/v1/sync/status", headers=_auth(users[UserRole.COMERCIAL]))

    assert response.status_code == 200
    assert response.json() == {"state": "idle", "last_report": None}


@pytest.mark.asyncio
async def test_sync_not_configured_returns_503(app, client, users) -> None:
    del app.dependency_overrides[get_sync_coordinator]

    response = await client.post("/api/v1/sync/run", headers=_auth(users[UserRole.COMERCIAL]))

    assert response.status_code == 503
    assert response.json()["error"] == "SYNC_NOT_CONFIGURED"


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
