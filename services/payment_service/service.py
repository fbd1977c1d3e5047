import random
import uuid
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.settings import PAYMENT_SUCCESS_RATE
from shared.observability import get_logger
from .models import Payment
from .repository import PaymentRepository
from .schemas import PaymentCreate, RefundCreate

logger = get_logger(__name__)

class RefundNotAllowed(Exception):
    pass

def _simulate_gateway() -> str:
    """Stands in for the card processor: succeeds PAYMENT_SUCCESS_RATE of the time."""
    return "success" if random.random() < PAYMENT_SUCCESS_RATE else "failed"

def _new_transaction_id() -> str:
    return f"txn_{uuid.uuid4().hex}"

class PaymentService:
    @staticmethod
    async def process_payment(db: AsyncSession, data: PaymentCreate):
        payment = Payment(
            order_id=data.order_id,
            amount=data.amount,
            payment_method=data.payment_method,
            status=_simulate_gateway(),
            transaction_id=_new_transaction_id()
        )
        payment = await PaymentRepository.create_payment(db, payment)
        logger.info("payment_processed", order_id=payment.order_id, status=payment.status, transaction_id=payment.transaction_id)
        return payment

    @staticmethod
    async def get_payments_for_order(db: AsyncSession, order_id: int):
        return await PaymentRepository.get_by_order(db, order_id)

    @staticmethod
    async def get_payment(db: AsyncSession, transaction_id: str):
        return await PaymentRepository.get_by_transaction(db, transaction_id)

    @staticmethod
    async def refund(db: AsyncSession, original: Payment, data: RefundCreate):
        if original.status != "success" or original.refund_of is not None:
            raise RefundNotAllowed("Can only refund successful payments")

        refund = Payment(
            order_id=original.order_id,
            amount=data.amount or original.amount,
            payment_method="refund",
            status=_simulate_gateway(),
            transaction_id=f"refund_{_new_transaction_id()}",
            refund_of=original.id
        )
        refund = await PaymentRepository.create_payment(db, refund)
        logger.info("refund_processed", order_id=refund.order_id, refund_of=original.transaction_id, status=refund.status)
        return refund
