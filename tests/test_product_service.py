import httpx
import pytest

from conftest import override_db
from shared.security import INTERNAL_HEADERS


@pytest.fixture
async def product_api(session_factory):
    from services.product_service.main import product_app

    override_db(product_app, session_factory)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=product_app), base_url="http://test", headers=INTERNAL_HEADERS
    ) as client:
        yield client
    product_app.dependency_overrides.clear()


async def test_create_and_get_product(product_api):
    created = await product_api.post(
        "/", json={"name": "Mouse", "description": "Wireless mouse", "price": "29.99", "stock_quantity": 50}
    )
    product_id = created.json()["id"]

    fetched = await product_api.get(f"/{product_id}")

    assert created.status_code == 201
    assert fetched.status_code == 200
    assert fetched.json()["price"] == "29.99"
    assert fetched.json()["name"] == "Mouse"


async def test_unknown_product_is_404(product_api):
    resp = await product_api.get("/12345")

    assert resp.status_code == 404


async def test_search_matches_name_or_description(product_api):
    await product_api.post("/", json={"name": "Laptop", "description": "High-performance laptop", "price": "999.99"})
    await product_api.post("/", json={"name": "Mouse", "description": "Wireless mouse", "price": "29.99"})
    await product_api.post("/", json={"name": "Headphones", "description": "Noise-canceling", "price": "199.99"})

    by_name = await product_api.get("/", params={"search": "lap"})
    by_description = await product_api.get("/", params={"search": "wireless"})
    page = await product_api.get("/", params={"limit": 2, "offset": 0})

    assert [p["name"] for p in by_name.json()] == ["Laptop"]
    assert [p["name"] for p in by_description.json()] == ["Mouse"]
    assert len(page.json()) == 2


async def test_catalog_requires_internal_key(product_api):
    resp = await product_api.get("/1", headers={"X-Internal-API-Key": "wrong"})

    assert resp.status_code == 403


async def test_non_positive_price_is_rejected(product_api):
    resp = await product_api.post("/", json={"name": "Free", "price": "0"})

    assert resp.status_code == 422
