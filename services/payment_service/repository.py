from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import Payment

class PaymentRepository:
    @staticmethod
    async def create_payment(db: AsyncSession, payment: Payment):
        db.add(payment)
        await db.commit()
        await db.refresh(payment)
        return payment

    @staticmethod
    async def get_by_order(db: AsyncSession, order_id: int):
        result = await db.execute(
            select(Payment).where(Payment.order_id == order_id).order_by(Payment.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_by_transaction(db: AsyncSession, transaction_id: str):
        result = await db.execute(select(Payment).where(Payment.transaction_id == transaction_id))
        return result.scalars().first()
