from fastapi import FastAPI
from shared.config.database import engine, init_models

from services.product_service.main import product_app
from services.order_service.main import order_app
from services.payment_service.main import payment_app

app = FastAPI(title="Ecommerce Cluster")

@app.on_event("startup")
async def startup_event():
    # Mounted apps do not receive lifespan events, so the cluster creates every schema
    await init_models(engine)

@app.get("/health")
async def health_check():
    return {"service": "gateway", "status": "running"}

app.mount("/products", product_app)
app.mount("/orders", order_app)
app.mount("/payments", payment_app)
