from fastapi import FastAPI
from shared.config.database import engine, init_models
from shared.observability import setup_observability
from .router import router, public_router
from .models import Product # Import to register with Base

product_app = FastAPI(
    title="Product Service",
    version="2.0.0"
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(product_app, "product_service")

product_app.include_router(public_router)
product_app.include_router(router)

@product_app.on_event("startup")
async def startup_event():
    await init_models(engine, schemas=("product_schema",))
