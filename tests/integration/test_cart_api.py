"""HTTP tests for /api/v1/cart and the auth middleware."""

from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport

from storefront import app
from tests.factories import make_product


CART_URL = "/api/v1/cart"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_authorization_header_is_rejected():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as anonymous:
        response = await anonymous.get(CART_URL)

    assert response.status_code == 401
    assert response.json()["error"] == "authentication_required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health_is_public():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as anonymous:
        response = await anonymous.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_cart_before_adding_anything(client, customer):
    response = await client.get(CART_URL)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] is None
    assert data["owner_id"] == customer.id
    assert data["items"] == []
    assert data["total_amount"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_item_lifecycle(client, db_session):
    boots = await make_product(db_session, name="Hiking Boots", price=Decimal("89.99"), stock=5)
    socks = await make_product(db_session, name="Wool Socks", price=Decimal("12.50"), stock=20)

    response = await client.post(f"{CART_URL}/items", json={"product_id": boots.id, "quantity": 1})
    assert response.status_code == 200

    response = await client.post(f"{CART_URL}/items", json={"product_id": socks.id, "quantity": 2})
    data = response.json()
    assert [item["product_name"] for item in data["items"]] == ["Hiking Boots", "Wool Socks"]
    assert data["total_amount"] == 114.99

    socks_item_id = data["items"][1]["id"]
    response = await client.put(f"{CART_URL}/items/{socks_item_id}", json={"quantity": 4})
    data = response.json()
    assert data["items"][1]["quantity"] == 4
    assert data["items"][1]["line_total"] == 50.0
    assert data["total_amount"] == 139.99

    boots_item_id = data["items"][0]["id"]
    response = await client.delete(f"{CART_URL}/items/{boots_item_id}")
    data = response.json()
    assert [item["product_id"] for item in data["items"]] == [socks.id]
    assert data["total_amount"] == 50.0

    response = await client.delete(CART_URL)
    data = response.json()
    assert response.status_code == 200
    assert data["items"] == []
    assert data["total_amount"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_item_errors(client, db_session):
    product = await make_product(db_session, stock=2)

    response = await client.post(f"{CART_URL}/items", json={"product_id": 9999, "quantity": 1})
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    response = await client.post(f"{CART_URL}/items", json={"product_id": product.id, "quantity": 3})
    assert response.status_code == 400
    assert response.json()["error"] == "insufficient_stock"

    response = await client.post(f"{CART_URL}/items", json={"product_id": product.id, "quantity": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_to_zero_removes_item(client, db_session):
    product = await make_product(db_session)
    data = (await client.post(f"{CART_URL}/items", json={"product_id": product.id, "quantity": 2})).json()

    response = await client.put(f"{CART_URL}/items/{data['items'][0]['id']}", json={"quantity": 0})

    assert response.status_code == 200
    assert response.json()["items"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_item_and_missing_cart(client, db_session):
    response = await client.delete(CART_URL)
    assert response.status_code == 404
    assert response.json()["detail"] == "Cart not found"

    product = await make_product(db_session)
    await client.post(f"{CART_URL}/items", json={"product_id": product.id, "quantity": 1})

    response = await client.put(f"{CART_URL}/items/9999", json={"quantity": 1})
    assert response.status_code == 404
    assert response.json()["detail"] == "Item not found in cart"
