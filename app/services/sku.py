# backend/app/services/sku.py
import asyncio
import logging
from typing import List, Union

from app.models.sku import CounterDecrementResult, SkuStatusResponse, SkuUserData
from app.services.store import StoreService

logger = logging.getLogger(__name__)


class SkuCounterService:
    """Операции внешнего потребителя (бота) над счетчиком SKU."""

    def __init__(self, store: StoreService):
        self.store = store

    async def consume(self, user_id: int, bot_id: Union[int, str]) -> List[CounterDecrementResult]:
        """
        Списывает по 1 с каждой строки (user_id, bot_id), у которой количество > 0.
        Пустой список означает, что строк нет.
        """
        rows = await self.store.find_sku_counters(user_id, bot_id)
        if not rows:
            return []

        updates = await asyncio.gather(
            *(self.store.decrement_sku_quantity(row["user_id"], bot_id) for row in rows),
            return_exceptions=True,
        )

        results: List[CounterDecrementResult] = []
        for row, outcome in zip(rows, updates):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to decrement SKU quantity for user {row['user_id']} / bot {row['bot_id']}: {outcome}")
                results.append(CounterDecrementResult(
                    user_id=row["user_id"], bot_id=row["bot_id"], decremented=False,
                    sku_quantity=row["sku_quantity"], error=str(outcome),
                ))
                continue

            updated_row, decremented = outcome
            if decremented:
                logger.info(f"SKU quantity decremented for user {row['user_id']} / bot {row['bot_id']}: {updated_row['sku_quantity']} left")
            else:
                logger.info(f"No decrement applied for user {row['user_id']} / bot {row['bot_id']}: quantity is already 0")
            results.append(CounterDecrementResult(
                user_id=row["user_id"],
                bot_id=row["bot_id"],
                decremented=decremented,
                sku_quantity=updated_row["sku_quantity"] if updated_row else row["sku_quantity"],
            ))
        return results

    async def check(self, user_id: int) -> SkuStatusResponse:
        """Статус счетчика. Количество None считается разрешающим."""
        row = await self.store.get_sku_counter(user_id)
        quantity = row["sku_quantity"]
        show_button = quantity is None or quantity > 0
        return SkuStatusResponse(
            show_button=show_button,
            user_data=SkuUserData(
                user_id=row["user_id"],
                sku_quantity=quantity,
                last_purchase_date=row["last_purchase_date"],
                bot_id=row["bot_id"],
            ),
        )

    async def save_bot_id(self, user_id: int, bot_id: Union[int, str]) -> None:
        _, created = await self.store.save_bot_id(user_id, bot_id)
        logger.info(f"Bot {bot_id} {'attached to new' if created else 'saved on existing'} SKU counter of user {user_id}")
