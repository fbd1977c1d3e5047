from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import engine, init_models
from shared.observability import setup_observability
from shared.security import limiter
from .router import router, cart_router, public_router
from .models import Order, OrderLine, CartLine # Import to register with Base

order_app = FastAPI(title="Order Service", version="2.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(order_app, "order_service")

# --- SECURITY SETUP ---
order_app.state.limiter = limiter
order_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

order_app.include_router(public_router)
order_app.include_router(cart_router)
order_app.include_router(router)

@order_app.on_event("startup")
async def startup_event():
    await init_models(engine, schemas=("order_schema",))
