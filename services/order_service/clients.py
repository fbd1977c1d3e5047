"""
Synchronous-from-the-checkout's-view clients for the catalog and payment
services. Each call is a single request: no retries, no caching. Every
transport-level problem (connection error, timeout, unexpected status or
body) is reported as TransportError so the orchestrator can decide what
it means at its stage.
"""
import enum
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import httpx

from shared.config.settings import PRODUCT_URL, PAYMENT_URL

CENTS = Decimal("0.01")


class TransportError(Exception):
    """The remote service could not give a usable answer."""


class ProductNotFound(Exception):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


@dataclass(frozen=True)
class PriceInfo:
    product_id: int
    price: Decimal
    name: str


class PaymentOutcome(str, enum.Enum):
    SUCCEEDED = "succeeded"
    DECLINED = "declined"


# Payment service wire status -> outcome
_PAYMENT_STATUSES = {
    "success": PaymentOutcome.SUCCEEDED,
    "failed": PaymentOutcome.DECLINED,
}


class CatalogClient:
    def __init__(self, client: httpx.AsyncClient, base_url: str = PRODUCT_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def lookup(self, product_id: int) -> PriceInfo:
        try:
            resp = await self.client.get(f"{self.base_url}/{product_id}")
        except httpx.HTTPError as e:
            raise TransportError(f"Catalog unreachable for product {product_id}: {e}") from e

        if resp.status_code == 404:
            raise ProductNotFound(product_id)
        if resp.status_code != 200:
            raise TransportError(f"Catalog returned {resp.status_code} for product {product_id}")

        try:
            product = resp.json()
            # Orders store cents: round here so the priced, stored and charged amounts agree
            price = Decimal(str(product["price"])).quantize(CENTS, rounding=ROUND_HALF_UP)
        except (ValueError, KeyError, TypeError, InvalidOperation) as e:
            raise TransportError(f"Malformed catalog response for product {product_id}") from e

        return PriceInfo(
            product_id=product_id,
            price=price,
            name=product.get("name", "Unknown Product"),
        )


class PaymentClient:
    def __init__(self, client: httpx.AsyncClient, base_url: str = PAYMENT_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def charge(self, order_id: int, amount: Decimal) -> PaymentOutcome:
        # Amount travels as a string so the cents survive the JSON hop
        payload = {"order_id": order_id, "amount": str(amount)}
        try:
            resp = await self.client.post(f"{self.base_url}/", json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"Payment service unreachable for order {order_id}: {e}") from e

        if resp.status_code not in (200, 201):
            raise TransportError(f"Payment service returned {resp.status_code} for order {order_id}")

        try:
            status = resp.json()["status"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(f"Malformed payment response for order {order_id}") from e

        outcome = _PAYMENT_STATUSES.get(status)
        if outcome is None:
            raise TransportError(f"Unknown payment status {status!r} for order {order_id}")
        return outcome
