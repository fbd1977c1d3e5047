import os
from dotenv import load_dotenv

load_dotenv()

# --- DATABASE ---
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost") # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5433")
DB_NAME = os.getenv("POSTGRES_DB", "ecommerce")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# --- UPSTREAM SERVICES ---
PRODUCT_URL = os.getenv("PRODUCT_URL", "http://localhost:8000/products")
PAYMENT_URL = os.getenv("PAYMENT_URL", "http://localhost:8000/payments")

# Catalog and payment calls block the checkout, so they always carry a bound
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10.0"))

# --- SECURITY ---
INTERNAL_API_KEY = os.getenv("INTERNAL_API_KEY", "")
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
CHECKOUT_RATE_LIMIT = os.getenv("CHECKOUT_RATE_LIMIT", "10/minute")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# --- CHECKOUT ---
DEFAULT_SHIPPING_ADDRESS = os.getenv("DEFAULT_SHIPPING_ADDRESS", "Default Address")

# --- PAYMENT SIMULATION ---
PAYMENT_SUCCESS_RATE = float(os.getenv("PAYMENT_SUCCESS_RATE", "0.9"))

# --- OBSERVABILITY ---
OTEL_ENABLED = os.getenv("OTEL_ENABLED", "true").lower() == "true"
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")
