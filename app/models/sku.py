# backend/app/models/sku.py
from datetime import datetime
from pydantic import Field
from typing import List, Optional, Union
from app.models.common import CamelModel


class CountRequest(CamelModel):
    # Все поля Optional: отсутствие проверяется в эндпоинте и дает 400, а не 422
    request_count: Optional[int] = Field(None, alias="requestCount")
    user_id: Optional[int] = Field(None, alias="userId")
    bot_id: Optional[Union[int, str]] = Field(None, alias="botId")


class CounterDecrementResult(CamelModel):
    user_id: int = Field(..., alias="userId")
    bot_id: Optional[str] = Field(None, alias="botId")
    decremented: bool
    sku_quantity: Optional[int] = Field(None, alias="skuQuantity")
    error: Optional[str] = None


class CountResponse(CamelModel):
    message: str
    request_count: int = Field(..., alias="requestCount")
    results: List[CounterDecrementResult] = []


class SaveBotIdRequest(CamelModel):
    customer_id: int = Field(..., alias="customerId")
    bot_id: Union[int, str] = Field(..., alias="botId")


class CheckSkuRequest(CamelModel):
    # Без customerId отвечаем 500 с JSON-ошибкой, а не 422
    customer_id: Optional[int] = Field(None, alias="customerId")


class SkuUserData(CamelModel):
    user_id: int = Field(..., alias="userId")
    sku_quantity: Optional[int] = Field(None, alias="skuQuantity")
    last_purchase_date: Optional[datetime] = Field(None, alias="lastPurchaseDate")
    bot_id: Optional[str] = Field(None, alias="botId")


class SkuStatusResponse(CamelModel):
    show_button: bool = Field(..., alias="showButton")
    user_data: SkuUserData = Field(..., alias="userData")
