# backend/app/api/v1/endpoints/customers.py
import logging
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from app.dependencies import get_store_service, verify_shopify_webhook
from app.models.customer import ShopifyCustomerWebhook
from app.services.store import StoreError, StoreService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/user-registration",
    response_class=PlainTextResponse,
    summary="Shopify customers/create webhook",
    dependencies=[Depends(verify_shopify_webhook)],
)
async def user_registration_webhook(
    request: Request,
    store: StoreService = Depends(get_store_service),
):
    """Сохраняет нового покупателя в users. Ответ не зависит от содержимого вставки."""
    try:
        payload = await request.json()
        logger.debug(f"--> Received customer webhook: {payload}")
        customer = ShopifyCustomerWebhook.model_validate(payload)
        logger.info(f"New customer registration: {customer.id} ({customer.email})")
        await store.insert_user(customer)
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid customer webhook payload: {e}")
        return PlainTextResponse("Webhook Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except StoreError as e:
        logger.error(f"Failed to insert user: {e.message} ({e.details})")
        return PlainTextResponse("Webhook Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return PlainTextResponse("Webhook received and processed", status_code=status.HTTP_200_OK)
