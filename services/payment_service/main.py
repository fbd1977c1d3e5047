from fastapi import FastAPI

from shared.config.database import engine, init_models
from shared.observability import setup_observability

from .models import Payment # Import to register with Base
from .router import router, public_router


payment_app = FastAPI(title="Payment Service", version="2.0.0")

setup_observability(payment_app, "payment_service")

payment_app.include_router(router)
payment_app.include_router(public_router)

@payment_app.on_event("startup")
async def startup_event():
    await init_models(engine, schemas=("payment_schema",))
