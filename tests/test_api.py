"""
HTTP-level tests: routing, JSON shape, status codes and auth.
"""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from storefront import catalog
from storefront.catalog import CatalogQueryError
from storefront.db import get_db
from storefront.server import app
from storefront.settings import settings


@pytest.fixture
async def client(db):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def bearer(user_id) -> dict:
    token = jwt.encode({"user_id": str(user_id)}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


@pytest.mark.asyncio
async def test_product_listing_json(client, seed):
    men = seed.gender("Men")
    red = seed.color("Red")
    p = seed.product("Pegasus", gender=men)
    v = seed.variant(p, 120, sale_price=99.5, color=red, default=True)
    seed.variant(p, 140, color=red)
    seed.image(p, "pegasus.jpg", color=red, primary=True)
    await seed.commit()

    response = await client.get("/api/products", params={"color": "red", "sort": "price_asc"})

    assert response.status_code == 200
    body = response.json()
    assert body["totalCount"] == 1
    (item,) = body["items"]
    assert item["name"] == "Pegasus"
    assert item["minPrice"] == 99.5
    assert item["maxPrice"] == 140.0
    assert item["imageUrl"] == "pegasus.jpg"
    assert item["subtitle"] == "Men Shoes"
    assert item["defaultVariantId"] == str(v.id)
    assert "createdAt" in item


@pytest.mark.asyncio
async def test_repeated_query_params(client, seed):
    red, blue, green = seed.color("Red"), seed.color("Blue"), seed.color("Green")
    for color in (red, blue, green):
        p = seed.product(f"Shoe {color.name}")
        seed.variant(p, 50, color=color)
    await seed.commit()

    response = await client.get("/api/products?color=red&color=blue&limit=abc")
    body = response.json()
    assert body["totalCount"] == 2
    assert {i["name"] for i in body["items"]} == {"Shoe Red", "Shoe Blue"}


@pytest.mark.asyncio
async def test_variant_listing_json(client, seed):
    p = seed.product("Pegasus")
    seed.variant(p, 80, sku="PEG-1")
    await seed.commit()

    response = await client.get("/api/products/variants")

    assert response.status_code == 200
    (item,) = response.json()["items"]
    assert item["sku"] == "PEG-1"
    assert item["productName"] == "Pegasus"
    assert item["price"] == 80.0
    assert item["salePrice"] is None


@pytest.mark.asyncio
async def test_listing_failure_returns_500(client, monkeypatch):
    async def failing(db, filters):
        raise CatalogQueryError("product listing failed")

    monkeypatch.setattr(catalog, "list_products", failing)

    response = await client.get("/api/products")
    assert response.status_code == 500
    assert response.json()["detail"] == "Unable to load products right now."


@pytest.mark.asyncio
async def test_facets(client, seed):
    seed.brand("Nike")
    seed.size("S", sort_order=10)
    await seed.commit()

    response = await client.get("/api/products/facets")
    assert response.status_code == 200
    body = response.json()
    assert [b["slug"] for b in body["brands"]] == ["nike"]
    assert body["sizes"][0]["sortOrder"] == 10


@pytest.mark.asyncio
async def test_product_detail(client, seed):
    red = seed.color("Red", hex_code="#ff0000")
    p = seed.product("Pegasus")
    seed.variant(p, 120, color=red, default=True, in_stock=2)
    await seed.commit()

    response = await client.get(f"/api/products/{p.id}")
    assert response.status_code == 200
    body = response.json()
    assert body["selectedColor"]["hexCode"] == "#ff0000"
    assert body["sizes"][0]["lowStock"] is True
    assert body["product"]["name"] == "Pegasus"


@pytest.mark.asyncio
async def test_unknown_product_is_404(client):
    response = await client.get(f"/api/products/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_malformed_product_id_is_422(client):
    response = await client.get("/api/products/not-a-uuid")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_orders_require_a_token(client):
    response = await client.get("/api/orders/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_orders_reject_a_bad_token(client):
    response = await client.get("/api/orders/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_orders_for_token_user(client, seed):
    user = uuid.uuid4()
    p = seed.product("Pegasus")
    v = seed.variant(p, 120)
    order = seed.order(user, 120)
    seed.order_item(order, v, price=120)
    seed.order(uuid.uuid4(), 10)
    await seed.commit()

    response = await client.get("/api/orders/me", headers=bearer(user))

    assert response.status_code == 200
    (body,) = response.json()
    assert body["totalAmount"] == 120.0
    assert body["items"][0]["productName"] == "Pegasus"
    assert body["items"][0]["priceAtPurchase"] == 120.0
