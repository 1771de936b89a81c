# backend/app/models/order.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional, Any
from app.models.common import CamelModel


class OrderCustomer(BaseModel):
    id: Optional[int] = None
    email: Optional[str] = None


# Позиция заказа в том виде, в котором ее присылает Shopify.
# sku/quantity/price могут прийти строками, числами или вообще мусором.
class ShopifyLineItem(BaseModel):
    id: Optional[int] = None
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    name: Optional[str] = None
    title: Optional[str] = None
    sku: Optional[Any] = None
    quantity: Optional[Any] = None
    price: Optional[Any] = None
    fulfillment_status: Optional[str] = None


# Вебхук orders/create. Лишние поля Shopify игнорируются.
class ShopifyOrderWebhook(BaseModel):
    id: int
    email: Optional[str] = None
    customer: Optional[OrderCustomer] = None
    created_at: Optional[datetime] = None
    # Суммы приходят строками, но принимаем и числа: разбор делает parse_float
    current_total_price: Optional[Any] = None
    total_price: Optional[Any] = None
    currency: Optional[str] = None
    line_items: List[ShopifyLineItem] = []


# Каноническая позиция, которая сохраняется в orders.line_items
class NormalizedLineItem(CamelModel):
    product_name: Optional[str] = Field(None, alias="productName")
    sku: Optional[int] = None  # None - не удалось распарсить
    quantity: Optional[int] = None
    price: Optional[float] = None
    fulfillment_status: Optional[str] = Field(None, alias="fulfillmentStatus")


class SkuAccumulationOutcome(BaseModel):
    """Результат начисления по одной позиции заказа."""
    index: int
    sku: Optional[int] = None
    status: str  # created | incremented | invalid_sku | failed | skipped
    sku_quantity: Optional[int] = None
    error: Optional[str] = None


class OrderProcessingResult(BaseModel):
    order_id: int
    customer_id: Optional[int] = None
    line_items: List[NormalizedLineItem] = []
    outcomes: List[SkuAccumulationOutcome] = []
