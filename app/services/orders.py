# backend/app/services/orders.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.models.order import (
    NormalizedLineItem,
    OrderProcessingResult,
    ShopifyLineItem,
    ShopifyOrderWebhook,
    SkuAccumulationOutcome,
)
from app.services.shopify import ShopifyService
from app.services.store import StoreError, StoreService
from app.utils.parsing import parse_float, parse_int

logger = logging.getLogger(__name__)

# Счетчик хранится в 64-битном INTEGER
_MAX_SKU_VALUE = 2 ** 63 - 1


class OrderService:
    """
    Обработка вебхука orders/create:
    нормализация позиций -> запись заказа -> начисление SKU на счетчик покупателя.
    """
    def __init__(self, store: StoreService, shopify: Optional[ShopifyService] = None):
        self.store = store
        self.shopify = shopify

    async def normalize_line_items(self, line_items: List[ShopifyLineItem]) -> List[NormalizedLineItem]:
        """Приводит позиции к каноническому виду, сохраняя порядок. Метаданные запрашиваются по очереди."""
        normalized: List[NormalizedLineItem] = []
        for item in line_items:
            metadata: Optional[Dict[str, Any]] = None
            if self.shopify is not None:
                metadata = await self.shopify.fetch_product_metadata(item.product_id)

            product_name = item.name or item.title or (metadata or {}).get("title")
            normalized.append(
                NormalizedLineItem(
                    product_name=product_name,
                    sku=parse_int(item.sku),
                    quantity=parse_int(item.quantity),
                    price=parse_float(item.price),
                    fulfillment_status=item.fulfillment_status,
                )
            )
        return normalized

    async def record_order(
        self,
        order: ShopifyOrderWebhook,
        line_items: List[NormalizedLineItem],
        purchased_at: datetime,
    ) -> Dict[str, Any]:
        """Одна вставка в orders. Ошибка хранилища пробрасывается: без заказа начислений нет."""
        customer = order.customer
        return await self.store.insert_order(
            order_id=order.id,
            customer_id=customer.id if customer else None,
            customer_email=(customer.email if customer else None) or order.email,
            purchase_date=purchased_at,
            total_amount=parse_float(
                order.current_total_price if order.current_total_price is not None else order.total_price
            ),
            currency=order.currency,
            line_items=[item.model_dump(by_alias=True) for item in line_items],
        )

    async def accumulate_sku_quantities(
        self,
        customer_id: int,
        line_items: List[NormalizedLineItem],
        purchased_at: datetime,
    ) -> List[SkuAccumulationOutcome]:
        """
        Начисляет значение SKU каждой позиции на счетчик покупателя.
        Ошибка по одной позиции не прерывает обработку остальных,
        результат по каждой позиции возвращается вызывающему.
        """
        outcomes: List[SkuAccumulationOutcome] = []
        for index, item in enumerate(line_items):
            # Начисляется именно числовое значение поля sku, а не quantity
            if item.sku is None or not 0 <= item.sku <= _MAX_SKU_VALUE:
                logger.warning(f"Line item #{index} ('{item.product_name}') has no usable SKU value, skipping accumulation for user {customer_id}")
                outcomes.append(SkuAccumulationOutcome(index=index, sku=item.sku, status="invalid_sku"))
                continue
            try:
                row, created = await self.store.increment_sku_quantity(customer_id, item.sku, purchased_at)
            except StoreError as e:
                logger.error(f"Failed to accumulate SKU {item.sku} for user {customer_id} (line item #{index}): {e.message}")
                outcomes.append(SkuAccumulationOutcome(index=index, sku=item.sku, status="failed", error=e.message))
                continue

            status = "created" if created else "incremented"
            logger.info(f"SKU counter for user {customer_id} {status}: +{item.sku} -> {row['sku_quantity']}")
            outcomes.append(
                SkuAccumulationOutcome(index=index, sku=item.sku, status=status, sku_quantity=row["sku_quantity"])
            )
        return outcomes

    async def process_order(self, order: ShopifyOrderWebhook) -> OrderProcessingResult:
        customer_id = order.customer.id if order.customer else None
        logger.info(f"Processing order {order.id} for user {customer_id} ({len(order.line_items)} line items)")

        line_items = await self.normalize_line_items(order.line_items)
        purchased_at = order.created_at or datetime.now(timezone.utc)

        await self.record_order(order, line_items, purchased_at)
        logger.info(f"Order {order.id} recorded.")

        if customer_id is None:
            logger.warning(f"Order {order.id} has no customer. SKU accumulation skipped.")
            outcomes = [
                SkuAccumulationOutcome(index=index, sku=item.sku, status="skipped")
                for index, item in enumerate(line_items)
            ]
        else:
            outcomes = await self.accumulate_sku_quantities(customer_id, line_items, purchased_at)

        failed = [o for o in outcomes if o.status == "failed"]
        if failed:
            logger.error(f"Order {order.id}: SKU accumulation failed for {len(failed)} of {len(outcomes)} line items: {[o.index for o in failed]}")

        return OrderProcessingResult(
            order_id=order.id,
            customer_id=customer_id,
            line_items=line_items,
            outcomes=outcomes,
        )
