# backend/app/api/v1/endpoints/orders.py
import logging
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from app.dependencies import get_order_service, verify_shopify_webhook
from app.models.order import ShopifyOrderWebhook
from app.services.orders import OrderService
from app.services.store import StoreError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/shopify-order-webhook",
    response_class=PlainTextResponse,
    summary="Shopify orders/create webhook",
    dependencies=[Depends(verify_shopify_webhook)],
)
async def shopify_order_webhook(
    request: Request,
    order_service: OrderService = Depends(get_order_service),
):
    """
    Записывает заказ и начисляет SKU на счетчик покупателя.
    Ошибка записи заказа - 500 без начислений.
    Ошибки начисления по отдельным позициям только логируются, ответ остается 200.
    """
    try:
        payload = await request.json()
        logger.debug(f"--> Received order webhook: {payload}")
        order = ShopifyOrderWebhook.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid order webhook payload: {e}")
        return PlainTextResponse("Order Webhook Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    try:
        result = await order_service.process_order(order)
    except StoreError as e:
        logger.error(f"Failed to record order {order.id}: {e.message} ({e.details})")
        return PlainTextResponse("Order Webhook Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(
        f"Order {result.order_id} processed for user {result.customer_id}: "
        f"{[(o.index, o.status) for o in result.outcomes]}"
    )
    return PlainTextResponse("Order webhook received and processed", status_code=status.HTTP_200_OK)
