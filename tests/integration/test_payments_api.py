"""HTTP tests for /api/v1/payments."""

from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport

from storefront import app
from tests.factories import make_product


WEBHOOK_URL = "/api/v1/payments/webhook"


async def _place_order(client, db_session) -> int:
    product = await make_product(db_session, price=Decimal("45"))
    await client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 1})
    response = await client.post(
        "/api/v1/orders",
        json={
            "shipping_address": {
                "street": "9 Canal Street",
                "city": "Kisumu",
                "postal_code": "40100",
                "country": "Kenya",
            },
            "payment_method": "paypal",
        },
    )
    return response.json()["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_confirms_payment(client, db_session, webhook_headers):
    order_id = await _place_order(client, db_session)

    # The collaborator calls without a user token
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as collaborator:
        response = await collaborator.post(
            WEBHOOK_URL,
            json={"event": "payment_succeeded", "order_id": order_id, "payment_reference": "PAY-8812"},
            headers=webhook_headers,
        )

    assert response.status_code == 200
    assert response.json() == {
        "received": True,
        "order_id": order_id,
        "order_status": "processing",
        "payment_status": "completed",
    }

    response = await client.get(f"/api/v1/payments/status/{order_id}")
    assert response.json() == {
        "order_id": order_id,
        "payment_status": "completed",
        "payment_reference": "PAY-8812",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_failed_payment(client, db_session, webhook_headers):
    order_id = await _place_order(client, db_session)

    response = await client.post(
        WEBHOOK_URL, json={"event": "payment_failed", "order_id": order_id}, headers=webhook_headers
    )

    assert response.status_code == 200
    assert response.json()["order_status"] == "pending"
    assert response.json()["payment_status"] == "failed"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("headers", [{}, {"X-Webhook-Secret": "guessed"}])
async def test_webhook_rejects_bad_secret(client, db_session, headers):
    order_id = await _place_order(client, db_session)

    response = await client.post(
        WEBHOOK_URL, json={"event": "payment_succeeded", "order_id": order_id}, headers=headers
    )

    assert response.status_code == 401
    assert response.json()["error"] == "authentication_required"

    response = await client.get(f"/api/v1/payments/status/{order_id}")
    assert response.json()["payment_status"] == "pending"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_for_unknown_order(client, webhook_headers):
    response = await client.post(
        WEBHOOK_URL, json={"event": "payment_succeeded", "order_id": 9999}, headers=webhook_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_payment_status_of_someone_elses_order(client, db_session, other_customer, login_as):
    order_id = await _place_order(client, db_session)

    with login_as(other_customer):
        response = await client.get(f"/api/v1/payments/status/{order_id}")

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_confirms_delivered_order(client, db_session, admin, login_as, webhook_headers):
    order_id = await _place_order(client, db_session)

    with login_as(admin):
        for next_status in ("processing", "shipped", "delivered"):
            response = await client.put(f"/api/v1/orders/{order_id}", json={"order_status": next_status})
            assert response.status_code == 200

    response = await client.post(
        WEBHOOK_URL, json={"event": "payment_succeeded", "order_id": order_id}, headers=webhook_headers
    )

    assert response.status_code == 200
    assert response.json()["order_status"] == "delivered"
    assert response.json()["payment_status"] == "completed"
