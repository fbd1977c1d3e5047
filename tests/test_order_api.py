from datetime import timedelta
from decimal import Decimal

from conftest import OWNER_ID, auth_headers, cart_of, count_rows, fill_cart, mint_token
from services.order_service.models import Order, OrderLine


async def test_checkout_returns_created_order(order_api, upstream):
    upstream.prices = {7: "29.99"}

    resp = await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 2}]}, headers=auth_headers()
    )

    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["total_amount"]) == Decimal("59.98")
    assert body["status"] == "processing"
    assert body["owner_id"] == OWNER_ID
    assert body["shipping_address"] == "Default Address"
    assert len(body["items"]) == 1
    line = body["items"][0]
    assert (line["product_id"], line["quantity"], Decimal(line["price"])) == (7, 2, Decimal("29.99"))


async def test_declined_payment_still_returns_201_pending(order_api, upstream, session_factory):
    upstream.prices = {7: "29.99"}
    upstream.payment_mode = "failed"
    await fill_cart(session_factory, OWNER_ID, {7: 2})

    resp = await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 2}], "shipping_address": "221B Baker St"},
        headers=auth_headers(),
    )

    assert resp.status_code == 201
    assert resp.json()["status"] == "pending"
    assert resp.json()["shipping_address"] == "221B Baker St"
    assert await cart_of(session_factory, OWNER_ID) == {}


async def test_empty_items_is_400_without_writes(order_api, upstream, session_factory):
    resp = await order_api.post("/", json={"items": []}, headers=auth_headers())

    assert resp.status_code == 400
    assert await count_rows(session_factory, Order) == 0
    assert upstream.catalog_calls == []


async def test_unknown_product_is_500_and_cart_survives(order_api, upstream, session_factory):
    await fill_cart(session_factory, OWNER_ID, {7: 2})

    resp = await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 2}]}, headers=auth_headers()
    )

    assert resp.status_code == 500
    assert "product 7" in resp.json()["detail"]
    assert await count_rows(session_factory, Order) == 0
    assert await count_rows(session_factory, OrderLine) == 0
    assert await cart_of(session_factory, OWNER_ID) == {7: 2}


async def test_non_positive_quantity_is_rejected_by_validation(order_api):
    resp = await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 0}]}, headers=auth_headers()
    )

    assert resp.status_code == 422


async def test_checkout_requires_a_bearer_token(order_api, upstream, session_factory):
    resp = await order_api.post("/", json={"items": [{"product_id": 7, "quantity": 1}]})

    assert resp.status_code == 401
    assert upstream.catalog_calls == []


async def test_checkout_without_items_uses_stored_cart(order_api, upstream, session_factory):
    upstream.prices = {7: "29.99"}
    await order_api.post("/cart/add", json={"product_id": 7, "quantity": 1}, headers=auth_headers())
    await order_api.post("/cart/add", json={"product_id": 7, "quantity": 1}, headers=auth_headers())

    resp = await order_api.post("/", json={}, headers=auth_headers())

    assert resp.status_code == 201
    assert Decimal(resp.json()["total_amount"]) == Decimal("59.98")
    assert (await order_api.get("/cart", headers=auth_headers())).json() == []


async def test_orders_are_scoped_to_their_owner(order_api, upstream):
    upstream.prices = {7: "10.00"}
    created = await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 1}]}, headers=auth_headers(1)
    )
    order_id = created.json()["id"]

    own = await order_api.get(f"/{order_id}", headers=auth_headers(1))
    other = await order_api.get(f"/{order_id}", headers=auth_headers(2))

    assert own.status_code == 200
    assert own.json()["items"][0]["product_id"] == 7
    assert other.status_code == 404
    assert [o["id"] for o in (await order_api.get("/", headers=auth_headers(1))).json()] == [order_id]
    assert (await order_api.get("/", headers=auth_headers(2))).json() == []


async def test_status_update_accepts_fulfilment_statuses_only(order_api, upstream):
    upstream.prices = {7: "10.00"}
    order_id = (await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 1}]}, headers=auth_headers()
    )).json()["id"]

    for forbidden in ("pending", "processing", "lost"):
        resp = await order_api.put(f"/{order_id}/status", json={"status": forbidden}, headers=auth_headers())
        assert resp.status_code == 400

    shipped = await order_api.put(f"/{order_id}/status", json={"status": "shipped"}, headers=auth_headers())
    delivered = await order_api.put(f"/{order_id}/status", json={"status": "delivered"}, headers=auth_headers())
    cancelled = await order_api.put(f"/{order_id}/status", json={"status": "cancelled"}, headers=auth_headers())

    assert shipped.json()["status"] == "shipped"
    assert delivered.json()["status"] == "delivered"
    assert cancelled.status_code == 409


async def test_status_update_unknown_order_is_404(order_api):
    resp = await order_api.put("/999/status", json={"status": "shipped"}, headers=auth_headers())

    assert resp.status_code == 404


async def test_cart_add_merges_and_remove_deletes(order_api):
    await order_api.post("/cart/add", json={"product_id": 3}, headers=auth_headers())
    await order_api.post("/cart/add", json={"product_id": 3, "quantity": 2}, headers=auth_headers())
    await order_api.post("/cart/add", json={"product_id": 4, "quantity": 1}, headers=auth_headers())

    cart = (await order_api.get("/cart", headers=auth_headers())).json()
    assert cart == [{"product_id": 3, "quantity": 3}, {"product_id": 4, "quantity": 1}]

    removed = await order_api.delete("/cart/3", headers=auth_headers())
    missing = await order_api.delete("/cart/3", headers=auth_headers())

    assert removed.status_code == 204
    assert missing.status_code == 404
    assert (await order_api.get("/cart", headers=auth_headers())).json() == [{"product_id": 4, "quantity": 1}]


async def test_health_is_public(order_api):
    resp = await order_api.get("/health")

    assert resp.json() == {"service": "order", "status": "running"}


async def test_expired_token_is_rejected(order_api, upstream):
    expired = mint_token(OWNER_ID, expires_in=timedelta(minutes=-1))

    resp = await order_api.post(
        "/", json={"items": [{"product_id": 7, "quantity": 1}]},
        headers={"Authorization": f"Bearer {expired}"},
    )

    assert resp.status_code == 401
    assert upstream.catalog_calls == []
