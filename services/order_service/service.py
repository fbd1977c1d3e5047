from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import get_logger
from .exceptions import InvalidStatusTransition, OrderNotFound
from .models import OrderStatus
from .repository import CartRepository, OrderRepository

logger = get_logger(__name__)

# Statuses only the fulfilment side may set. `processing` is reserved for a
# successful payment and nothing ever returns to `pending`.
MANUAL_STATUSES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED}
FINAL_STATUSES = {OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value}

class OrderService:
    @staticmethod
    async def get_order(db: AsyncSession, order_id: int, owner_id: int):
        return await OrderRepository.get_order(db, order_id, owner_id)

    @staticmethod
    async def list_orders(db: AsyncSession, owner_id: int):
        return await OrderRepository.list_orders(db, owner_id)

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, owner_id: int, status: str):
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise ValueError("Invalid status")
        if new_status not in MANUAL_STATUSES:
            raise ValueError(f"Status '{status}' cannot be set manually")

        order = await OrderRepository.get_order(db, order_id, owner_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        if order.status in FINAL_STATUSES:
            raise InvalidStatusTransition(f"Order {order_id} is already {order.status}")

        previous = order.status
        order = await OrderRepository.update_status(db, order, new_status)
        logger.info("order_status_updated", order_id=order_id, owner_id=owner_id, previous=previous, status=order.status)
        return order


class CartService:
    @staticmethod
    async def get_cart(db: AsyncSession, owner_id: int):
        return await CartRepository.get_lines(db, owner_id)

    @staticmethod
    async def add_item(db: AsyncSession, owner_id: int, product_id: int, quantity: int):
        line = await CartRepository.add_item(db, owner_id, product_id, quantity)
        logger.info("cart_item_added", owner_id=owner_id, product_id=product_id, quantity=line.quantity)
        return line

    @staticmethod
    async def remove_item(db: AsyncSession, owner_id: int, product_id: int) -> bool:
        removed = await CartRepository.remove_item(db, owner_id, product_id)
        if removed:
            logger.info("cart_item_removed", owner_id=owner_id, product_id=product_id)
        return removed
