from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key

from .schemas import PaymentCreate, PaymentResponse, RefundCreate
from .service import PaymentService, RefundNotAllowed

# Router-level dependency protects all payment endpoints
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


@router.post("/", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def process_payment(
    payment: PaymentCreate, db: AsyncSession = Depends(get_db)
):
    return await PaymentService.process_payment(db, payment)


@router.get("/order/{order_id}", response_model=list[PaymentResponse])
async def get_order_payments(order_id: int, db: AsyncSession = Depends(get_db)):
    return await PaymentService.get_payments_for_order(db, order_id)


@router.get("/transaction/{transaction_id}", response_model=PaymentResponse)
async def get_payment(transaction_id: str, db: AsyncSession = Depends(get_db)):
    payment = await PaymentService.get_payment(db, transaction_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.post("/{transaction_id}/refund", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def refund_payment(
    transaction_id: str, data: RefundCreate, db: AsyncSession = Depends(get_db)
):
    payment = await PaymentService.get_payment(db, transaction_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    try:
        return await PaymentService.refund(db, payment, data)
    except RefundNotAllowed as e:
        raise HTTPException(status_code=400, detail=str(e))
