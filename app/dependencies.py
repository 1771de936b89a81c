# backend/app/dependencies.py
import logging
from fastapi import Request, HTTPException, status, Depends, Header
from typing import Annotated, Optional
from app.services.shopify import ShopifyService
from app.services.store import StoreService
from app.services.orders import OrderService
from app.services.sku import SkuCounterService
from app.utils.shopify_auth import verify_webhook_hmac
from app.core.config import settings

logger = logging.getLogger(__name__)


async def get_store_service(request: Request) -> StoreService:
    service = getattr(request.app.state, 'store_service', None)
    if not service or not isinstance(service, StoreService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store service is unavailable."
        )
    return service

async def get_shopify_service(request: Request) -> ShopifyService:
    service = getattr(request.app.state, 'shopify_service', None)
    if not service or not isinstance(service, ShopifyService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shopify service is unavailable."
        )
    return service

async def get_order_service(
    store: StoreService = Depends(get_store_service),
    shopify: ShopifyService = Depends(get_shopify_service),
) -> OrderService:
    return OrderService(store=store, shopify=shopify)

async def get_sku_counter_service(
    store: StoreService = Depends(get_store_service),
) -> SkuCounterService:
    return SkuCounterService(store=store)


# --- Проверка подписи вебхуков Shopify ---
async def verify_shopify_webhook(
    request: Request,
    x_shopify_hmac_sha256: Annotated[Optional[str], Header()] = None,
) -> None:
    """
    Если SHOPIFY_WEBHOOK_SECRET задан, требует корректный X-Shopify-Hmac-Sha256.
    Без секрета проверка отключена.
    """
    secret = settings.SHOPIFY_WEBHOOK_SECRET
    if not secret:
        return
    body = await request.body()
    if not verify_webhook_hmac(body, x_shopify_hmac_sha256, secret):
        logger.warning(f"Rejected webhook with invalid signature: {request.method} {request.url.path}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")
