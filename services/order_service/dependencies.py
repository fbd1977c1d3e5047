import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.config.database import get_session_factory
from shared.config.settings import HTTP_TIMEOUT_SECONDS
from shared.security import INTERNAL_HEADERS
from .checkout import CheckoutOrchestrator
from .clients import CatalogClient, PaymentClient

async def get_http_client():
    """One outbound client per request, carrying the internal key and a hard timeout."""
    async with httpx.AsyncClient(headers=INTERNAL_HEADERS, timeout=HTTP_TIMEOUT_SECONDS) as client:
        yield client

def get_catalog_client(client: httpx.AsyncClient = Depends(get_http_client)) -> CatalogClient:
    return CatalogClient(client)

def get_payment_client(client: httpx.AsyncClient = Depends(get_http_client)) -> PaymentClient:
    return PaymentClient(client)

def get_checkout_orchestrator(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    catalog: CatalogClient = Depends(get_catalog_client),
    payments: PaymentClient = Depends(get_payment_client),
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(session_factory, catalog, payments)
