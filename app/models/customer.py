# backend/app/models/customer.py
from datetime import datetime
from pydantic import BaseModel, field_validator
from typing import Any, Optional


# Вебхук customers/create. Все поля кроме id необязательны.
class ShopifyCustomerWebhook(BaseModel):
    id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    currency: Optional[str] = None
    tags: Optional[str] = None
    note: Optional[str] = None
    state: Optional[str] = None
    accepts_marketing: Optional[bool] = None
    verified_email: Optional[bool] = None
    tax_exempt: Optional[bool] = None
    orders_count: Optional[int] = None
    total_spent: Optional[str] = None
    last_order_id: Optional[int] = None
    last_order_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("total_spent", mode="before")
    @classmethod
    def amount_to_str(cls, value: Any) -> Any:
        # Shopify обычно шлет "0.00", но число тоже принимаем
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def tags_to_str(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return ", ".join(str(tag) for tag in value)
        return value
