import os

# Must be set before any service module is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest-unused.db")
os.environ["OTEL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from jose import jwt
from sqlalchemy import func, select

from shared.config.database import build_engine, build_session_factory, get_db, get_session_factory, init_models
from shared.security import INTERNAL_HEADERS
from shared.security.jwt_handler import ALGORITHM, SECRET_KEY
from services.order_service.checkout import CheckoutOrchestrator
from services.order_service.clients import CatalogClient, PaymentClient
from services.order_service.dependencies import get_http_client
from services.order_service.repository import CartRepository
from services.product_service.models import Product  # registers product tables
from services.payment_service.models import Payment  # registers payment tables

OWNER_ID = 1


class FakeUpstream:
    """
    Stands in for the catalog and payment services behind an httpx.MockTransport.

    `prices` maps product id -> price (missing ids 404), `broken_products`
    answer 503, and `payment_mode` is one of success / failed / error / timeout.
    """

    def __init__(self):
        self.prices = {}
        self.broken_products = set()
        self.payment_mode = "success"
        self.catalog_calls = []
        self.payment_calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/products/"):
            return self._catalog(request, int(path.rsplit("/", 1)[-1]))
        if path.startswith("/payments"):
            return self._payment(request)
        return httpx.Response(404, json={"detail": "Not Found"})

    def _catalog(self, request, product_id):
        self.catalog_calls.append(product_id)
        if product_id in self.broken_products:
            return httpx.Response(503, json={"detail": "catalog down"})
        if product_id not in self.prices:
            return httpx.Response(404, json={"detail": "Product not found"})
        return httpx.Response(
            200,
            json={"id": product_id, "name": f"Product {product_id}", "price": self.prices[product_id]},
        )

    def _payment(self, request):
        body = json.loads(request.content)
        self.payment_calls.append(body)
        if self.payment_mode == "timeout":
            raise httpx.ReadTimeout("payment timed out", request=request)
        if self.payment_mode == "error":
            return httpx.Response(500, json={"detail": "Internal server error"})
        return httpx.Response(
            201,
            json={
                "id": len(self.payment_calls),
                "order_id": body["order_id"],
                "amount": body["amount"],
                "status": self.payment_mode,
                "transaction_id": f"txn_test_{len(self.payment_calls)}",
            },
        )


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(upstream.handler), headers=INTERNAL_HEADERS
    ) as client:
        yield client


@pytest.fixture
def orchestrator(session_factory, http_client):
    return CheckoutOrchestrator(session_factory, CatalogClient(http_client), PaymentClient(http_client))


def override_db(app, session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory


@pytest.fixture
async def order_api(session_factory, upstream):
    from services.order_service.main import order_app

    override_db(order_app, session_factory)

    async def _http_client():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(upstream.handler), headers=INTERNAL_HEADERS
        ) as client:
            yield client

    order_app.dependency_overrides[get_http_client] = _http_client
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=order_app), base_url="http://test") as client:
        yield client
    order_app.dependency_overrides.clear()


def mint_token(owner_id: int = OWNER_ID, expires_in: timedelta = timedelta(minutes=15)) -> str:
    """Signs a token the way the identity service does."""
    claims = {"sub": str(owner_id), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def auth_headers(owner_id: int = OWNER_ID) -> dict:
    return {"Authorization": f"Bearer {mint_token(owner_id)}"}


async def count_rows(session_factory, model, **filters) -> int:
    async with session_factory() as session:
        stmt = select(func.count()).select_from(model)
        for name, value in filters.items():
            stmt = stmt.where(getattr(model, name) == value)
        return (await session.execute(stmt)).scalar_one()


async def fill_cart(session_factory, owner_id: int, lines: dict):
    async with session_factory() as session:
        for product_id, quantity in lines.items():
            await CartRepository.add_item(session, owner_id, product_id, quantity)


async def cart_of(session_factory, owner_id: int) -> dict:
    async with session_factory() as session:
        return {line.product_id: line.quantity for line in await CartRepository.get_lines(session, owner_id)}
