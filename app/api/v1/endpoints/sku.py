# backend/app/api/v1/endpoints/sku.py
import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.dependencies import get_sku_counter_service
from app.models.common import ErrorResponse
from app.models.sku import (
    CheckSkuRequest,
    CountRequest,
    CountResponse,
    SaveBotIdRequest,
    SkuStatusResponse,
)
from app.services.sku import SkuCounterService
from app.services.store import StoreError

logger = logging.getLogger(__name__)
router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/count",
    response_model=CountResponse,
    summary="Списать единицу со счетчика SKU",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def consume_sku_count(
    payload: CountRequest,
    sku_service: SkuCounterService = Depends(get_sku_counter_service),
):
    if payload.request_count is None or payload.user_id is None or payload.bot_id is None:
        logger.warning(f"/count called with missing fields: {payload.model_dump(by_alias=True)}")
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields: requestCount, userId and botId are required")

    try:
        results = await sku_service.consume(payload.user_id, payload.bot_id)
    except StoreError as e:
        logger.error(f"Failed to query SKU counters for user {payload.user_id} / bot {payload.bot_id}: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error querying SKU quantities")

    if not results:
        logger.info(f"No SKU counters found for user {payload.user_id} / bot {payload.bot_id}")
        return _error(status.HTTP_404_NOT_FOUND, "No records found for this user ID and bot ID")

    return CountResponse(
        message="SKU quantity updated",
        request_count=payload.request_count,
        results=results,
    )


@router.post(
    "/save-user-bot-id",
    response_class=PlainTextResponse,
    summary="Привязать бота к счетчику пользователя",
)
async def save_user_bot_id(
    payload: SaveBotIdRequest,
    sku_service: SkuCounterService = Depends(get_sku_counter_service),
):
    try:
        await sku_service.save_bot_id(payload.customer_id, payload.bot_id)
    except StoreError as e:
        logger.error(f"Failed to save bot {payload.bot_id} for user {payload.customer_id}: {e.message}")
        return PlainTextResponse("Error saving bot ID", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return PlainTextResponse("Bot ID saved successfully", status_code=status.HTTP_200_OK)


@router.post(
    "/check-sku-quantity",
    response_model=SkuStatusResponse,
    summary="Проверить счетчик SKU пользователя",
    responses={500: {"model": ErrorResponse}},
)
async def check_sku_quantity(
    payload: CheckSkuRequest,
    sku_service: SkuCounterService = Depends(get_sku_counter_service),
):
    if payload.customer_id is None:
        logger.warning("/check-sku-quantity called without customerId")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Missing required field: customerId")

    try:
        return await sku_service.check(payload.customer_id)
    except StoreError as e:
        logger.error(f"Failed to fetch SKU counter for user {payload.customer_id}: {e.message} (code={e.code})")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch SKU quantity")
