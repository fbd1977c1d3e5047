"""
Checkout orchestrator: turns a cart snapshot into a persisted order, then
attempts payment.

    validate -> price (catalog) -> transaction A -> charge (payment) -> transaction B

Everything up to and including transaction A is all-or-nothing: any failure
leaves no order and an untouched cart. Transaction A commits *before* the
payment call, so the order is visible even if payment never completes.
Payment and transaction B are best-effort: declines, payment transport
failures and a failed status advance are logged and absorbed, and the order
is returned as `pending`. Nothing is compensated.
"""
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.config.database import StoreError, run_in_transaction
from shared.config.settings import DEFAULT_SHIPPING_ADDRESS
from shared.observability import (
    get_logger,
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_payment_outcome_total,
    ecomm_absorbed_failures_total,
)
from .clients import CatalogClient, PaymentClient, PaymentOutcome, PriceInfo, ProductNotFound, TransportError
from .exceptions import (
    CartChanged,
    CheckoutError,
    InvalidRequest,
    OrderPersistenceError,
    PaymentDeclined,
    PaymentUnavailable,
    ProductUnavailable,
    StatusAdvanceError,
    UpstreamError,
)
from .models import Order, OrderLine, OrderStatus, utcnow
from .repository import CartRepository, OrderRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class CheckoutOrchestrator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        catalog: CatalogClient,
        payments: PaymentClient,
    ):
        self.session_factory = session_factory
        self.catalog = catalog
        self.payments = payments

    async def checkout(
        self,
        owner_id: int,
        items: Optional[Sequence[CartItem]] = None,
        shipping_address: Optional[str] = None,
    ) -> Order:
        """
        Runs a checkout for `owner_id`.

        `items` is the cart snapshot sent by the client; when omitted, the
        owner's stored cart is used and re-validated under lock before it
        is consumed. Returns the committed order, `pending` or `processing`.
        """
        log = logger.bind(owner_id=owner_id)
        started = time.perf_counter()
        try:
            order = await self._run(log, owner_id, items, shipping_address)
        except CheckoutError as e:
            status = "rejected" if isinstance(e, InvalidRequest) else "failed"
            ecomm_checkout_total.labels(status=status).inc()
            log.error("checkout_aborted", stage=e.stage, error=str(e), error_type=type(e).__name__)
            raise
        except Exception:
            ecomm_checkout_total.labels(status="failed").inc()
            log.exception("checkout_crashed")
            raise
        finally:
            ecomm_checkout_duration_seconds.observe(time.perf_counter() - started)

        ecomm_checkout_total.labels(status="success").inc()
        log.info("checkout_completed", order_id=order.id, status=order.status, total_amount=str(order.total_amount))
        return order

    async def _run(self, log, owner_id, items, shipping_address) -> Order:
        # 1. Snapshot and validate
        from_cart = items is None
        if from_cart:
            snapshot = await self._load_cart(owner_id)
        else:
            snapshot = [CartItem(i.product_id, i.quantity) for i in items]
        if not snapshot:
            raise InvalidRequest("No items provided")
        address = shipping_address or DEFAULT_SHIPPING_ADDRESS
        log.info("checkout_started", items_count=len(snapshot), from_cart=from_cart)

        # 2. Price every line against the catalog, fail fast
        lines = [await self._price(log, item) for item in snapshot]

        # 3. The only place the total is ever computed
        total = sum((line.subtotal for line in lines), Decimal("0"))
        log.info("total_computed", total_amount=str(total))

        # 4. Transaction A: order + lines + cart clear
        order = await self._persist(log, owner_id, snapshot if from_cart else None, lines, total, address)
        log = log.bind(order_id=order.id)

        # 5. Payment, outside any local transaction
        try:
            await self._charge(log, order)
        except (PaymentDeclined, PaymentUnavailable) as e:
            ecomm_absorbed_failures_total.labels(stage=e.stage).inc()
            log.warning("payment_not_completed", stage=e.stage, error=str(e), status=order.status)
            return order

        # 6. Transaction B: pending -> processing
        try:
            await self._advance(order)
        except StatusAdvanceError as e:
            ecomm_absorbed_failures_total.labels(stage=e.stage).inc()
            log.error("status_advance_failed", stage=e.stage, error=str(e), status=order.status)
        return order

    async def _load_cart(self, owner_id: int) -> list[CartItem]:
        async def read(session):
            return await CartRepository.get_lines(session, owner_id)

        try:
            cart_lines = await run_in_transaction(self.session_factory, read)
        except StoreError as e:
            raise OrderPersistenceError(f"Failed to read cart: {e}") from e
        return [CartItem(line.product_id, line.quantity) for line in cart_lines]

    async def _price(self, log, item: CartItem) -> PricedLine:
        try:
            info: PriceInfo = await self.catalog.lookup(item.product_id)
        except ProductNotFound as e:
            raise ProductUnavailable(f"Failed to process product {item.product_id}: {e}") from e
        except TransportError as e:
            raise UpstreamError(f"Failed to process product {item.product_id}: {e}") from e

        line = PricedLine(item.product_id, item.quantity, info.price)
        log.info("item_priced", product_id=item.product_id, quantity=item.quantity, price=str(info.price))
        return line

    async def _persist(self, log, owner_id, expected_cart, lines, total, address) -> Order:
        async def work(session):
            locked = await CartRepository.lock_lines(session, owner_id)
            if expected_cart is not None and _as_counter(locked) != _as_counter(expected_cart):
                raise CartChanged("Cart changed while checking out")

            order = Order(
                owner_id=owner_id,
                total_amount=total,
                shipping_address=address,
                status=OrderStatus.PENDING.value,
                items=[
                    OrderLine(product_id=line.product_id, quantity=line.quantity, price=line.price)
                    for line in lines
                ],
            )
            await OrderRepository.add_order(session, order)
            # Only the rows seen under the lock; lines added since then stay for the next checkout
            cleared = await CartRepository.clear(session, owner_id, [line.id for line in locked])
            log.info("order_staged", order_id=order.id, lines=len(lines), cart_lines_cleared=cleared)
            return order

        try:
            order = await run_in_transaction(self.session_factory, work)
        except StoreError as e:
            raise OrderPersistenceError(f"Failed to create order: {e}") from e
        log.info("order_committed", order_id=order.id, status=order.status)
        return order

    async def _charge(self, log, order: Order):
        log.info("payment_requested", amount=str(order.total_amount))
        try:
            outcome = await self.payments.charge(order.id, order.total_amount)
        except TransportError as e:
            ecomm_payment_outcome_total.labels(outcome="unavailable").inc()
            raise PaymentUnavailable(str(e)) from e

        ecomm_payment_outcome_total.labels(outcome=outcome.value).inc()
        if outcome is not PaymentOutcome.SUCCEEDED:
            raise PaymentDeclined(f"Payment declined for order {order.id}")
        log.info("payment_succeeded")

    async def _advance(self, order: Order):
        now = utcnow()

        async def work(session):
            return await OrderRepository.mark_processing(session, order.id, now)

        try:
            advanced = await run_in_transaction(self.session_factory, work)
        except StoreError as e:
            raise StatusAdvanceError(f"Failed to update order status: {e}") from e
        if not advanced:
            raise StatusAdvanceError(f"Order {order.id} was no longer pending")
        order.status = OrderStatus.PROCESSING.value
        order.updated_at = now


def _as_counter(lines) -> dict:
    return {line.product_id: line.quantity for line in lines}
