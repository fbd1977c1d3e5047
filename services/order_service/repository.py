from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update
from .models import Order, OrderStatus, CartLine, utcnow

class OrderRepository:
    @staticmethod
    async def add_order(db: AsyncSession, order: Order):
        """Stages the order and its lines; the caller's transaction commits them."""
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int, owner_id: int):
        result = await db.execute(
            select(Order).where(Order.id == order_id, Order.owner_id == owner_id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_orders(db: AsyncSession, owner_id: int):
        result = await db.execute(
            select(Order)
            .where(Order.owner_id == owner_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def mark_processing(db: AsyncSession, order_id: int, at) -> bool:
        """Moves a pending order to processing. Returns False if it was no longer pending."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
            .values(status=OrderStatus.PROCESSING.value, updated_at=at)
        )
        return result.rowcount == 1

    @staticmethod
    async def update_status(db: AsyncSession, order: Order, status: OrderStatus):
        order.status = status.value
        order.updated_at = utcnow()
        await db.commit()
        await db.refresh(order)
        return order


class CartRepository:
    @staticmethod
    async def get_lines(db: AsyncSession, owner_id: int):
        result = await db.execute(
            select(CartLine).where(CartLine.owner_id == owner_id).order_by(CartLine.id)
        )
        return result.scalars().all()

    @staticmethod
    async def lock_lines(db: AsyncSession, owner_id: int):
        """Row-locks the owner's cart so concurrent checkouts cannot both consume it."""
        result = await db.execute(
            select(CartLine)
            .where(CartLine.owner_id == owner_id)
            .order_by(CartLine.id)
            .with_for_update()
        )
        return result.scalars().all()

    @staticmethod
    async def add_item(db: AsyncSession, owner_id: int, product_id: int, quantity: int):
        result = await db.execute(
            select(CartLine)
            .where(CartLine.owner_id == owner_id)
            .where(CartLine.product_id == product_id)
        )
        line = result.scalars().first()

        if line:
            line.quantity += quantity
        else:
            line = CartLine(owner_id=owner_id, product_id=product_id, quantity=quantity)
            db.add(line)

        await db.commit()
        await db.refresh(line)
        return line

    @staticmethod
    async def remove_item(db: AsyncSession, owner_id: int, product_id: int) -> bool:
        result = await db.execute(
            delete(CartLine).where(
                CartLine.owner_id == owner_id,
                CartLine.product_id == product_id
            )
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def clear(db: AsyncSession, owner_id: int, line_ids) -> int:
        """Deletes the given cart lines of the owner, the ones locked for checkout. Does not commit."""
        if not line_ids:
            return 0
        result = await db.execute(
            delete(CartLine).where(CartLine.owner_id == owner_id, CartLine.id.in_(line_ids))
        )
        return result.rowcount
