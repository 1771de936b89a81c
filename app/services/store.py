# backend/app/services/store.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import func
from sqlalchemy.sql.dml import Update

from app.models.customer import ShopifyCustomerWebhook
from app.models.tables import Order, User, UserSkuQuantity

logger = logging.getLogger(__name__)

# Сколько раз повторяем UPDATE, если параллельный запрос успел вставить строку раньше нас
_UPSERT_ATTEMPTS = 2


class StoreError(Exception):
    """Базовый класс для ошибок хранилища."""
    def __init__(self, message="Store operation failed", code=None, details=None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(self.message)


class RecordNotFoundError(StoreError):
    """Одиночное чтение не нашло строку. Ожидаемая ситуация, а не сбой."""
    def __init__(self, message="Record not found", details=None):
        super().__init__(message, code="not_found", details=details)


class DuplicateRecordError(StoreError):
    def __init__(self, message="Record already exists", details=None):
        super().__init__(message, code="duplicate", details=details)


class MultipleRecordsError(StoreError):
    def __init__(self, message="More than one record matched", details=None):
        super().__init__(message, code="multiple_rows", details=details)


def _counter_to_dict(row: UserSkuQuantity) -> Dict[str, Any]:
    return {
        "user_id": row.user_id,
        "sku_quantity": row.sku_quantity,
        "last_purchase_date": row.last_purchase_date,
        "bot_id": row.bot_id,
    }


def _order_to_dict(row: Order) -> Dict[str, Any]:
    return {
        "id": row.id,
        "customer_id": row.customer_id,
        "customer_email": row.customer_email,
        "purchase_date": row.purchase_date,
        "total_amount": row.total_amount,
        "currency": row.currency,
        "line_items": row.line_items,
    }


class StoreService:
    """
    Доступ к таблицам users, orders и user_sku_quantities.
    Каждая операция выполняется в собственной короткой транзакции,
    поэтому методы можно безопасно вызывать параллельно (asyncio.gather).
    """
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Открывает сессию с транзакцией и переводит ошибки SQLAlchemy в StoreError."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except IntegrityError as e:
            logger.warning(f"Integrity error during '{operation}': {e.orig}")
            raise DuplicateRecordError(f"Duplicate or conflicting record during {operation}", details=str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(f"Database error during '{operation}': {e}")
            raise StoreError(f"Database error during {operation}", code="db_error", details=str(e)) from e
        except OverflowError as e:
            # Драйвер не смог привести Python int к целому типу БД
            logger.error(f"Value out of range during '{operation}': {e}")
            raise StoreError(f"Value out of range during {operation}", code="out_of_range", details=str(e)) from e

    # --- Пользователи и заказы ---

    async def insert_user(self, customer: ShopifyCustomerWebhook) -> Dict[str, Any]:
        logger.info(f"Inserting user {customer.id} ({customer.email})")
        user = User(
            id=customer.id,
            email=customer.email,
            first_name=customer.first_name,
            last_name=customer.last_name,
            phone=customer.phone,
            currency=customer.currency,
            tags=customer.tags,
            note=customer.note,
            state=customer.state,
            accepts_marketing=customer.accepts_marketing,
            verified_email=customer.verified_email,
            tax_exempt=customer.tax_exempt,
            orders_count=customer.orders_count,
            total_spent=customer.total_spent,
            last_order_id=customer.last_order_id,
            last_order_name=customer.last_order_name,
            shopify_created_at=customer.created_at,
            shopify_updated_at=customer.updated_at,
        )
        async with self._transaction("insert_user") as session:
            session.add(user)
        return {"id": user.id, "email": user.email}

    async def insert_order(
        self,
        order_id: int,
        customer_id: Optional[int],
        customer_email: Optional[str],
        purchase_date: datetime,
        total_amount: Optional[float],
        currency: Optional[str],
        line_items: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        logger.info(f"Inserting order {order_id} for customer {customer_id} with {len(line_items)} line items")
        order = Order(
            id=order_id,
            customer_id=customer_id,
            customer_email=customer_email,
            purchase_date=purchase_date,
            total_amount=total_amount,
            currency=currency,
            line_items=line_items,
        )
        async with self._transaction("insert_order") as session:
            session.add(order)
        return _order_to_dict(order)

    async def get_order(self, order_id: int) -> Dict[str, Any]:
        """Чтение записанного заказа по id. Обработка вебхука его не вызывает, нужен для сверки и тестов."""
        async with self._transaction("get_order") as session:
            order = await session.get(Order, order_id)
            if order is None:
                raise RecordNotFoundError(f"Order {order_id} not found")
            return _order_to_dict(order)

    # --- Счетчики SKU ---

    async def get_sku_counter(self, user_id: int) -> Dict[str, Any]:
        """Чтение ровно одной строки счетчика. Нет строки - RecordNotFoundError."""
        async with self._transaction("get_sku_counter") as session:
            result = await session.scalars(select(UserSkuQuantity).where(UserSkuQuantity.user_id == user_id))
            rows = result.all()
        if not rows:
            raise RecordNotFoundError(f"No SKU counter for user {user_id}")
        if len(rows) > 1:
            raise MultipleRecordsError(f"{len(rows)} SKU counters matched user {user_id}")
        return _counter_to_dict(rows[0])

    async def find_sku_counters(self, user_id: int, bot_id: Union[int, str]) -> List[Dict[str, Any]]:
        async with self._transaction("find_sku_counters") as session:
            result = await session.scalars(
                select(UserSkuQuantity).where(
                    UserSkuQuantity.user_id == user_id,
                    UserSkuQuantity.bot_id == str(bot_id),
                )
            )
            return [_counter_to_dict(row) for row in result.all()]

    async def _update_or_insert(
        self,
        operation: str,
        user_id: int,
        update_stmt: Update,
        new_row: Callable[[], UserSkuQuantity],
    ) -> Tuple[Dict[str, Any], bool]:
        """
        UPDATE строки счетчика, а если ее нет - INSERT.
        Если INSERT проиграл гонку параллельному запросу, UPDATE повторяется.
        Возвращает (строка, создана_ли).
        """
        for attempt in range(1, _UPSERT_ATTEMPTS + 1):
            async with self._transaction(operation) as session:
                result = await session.execute(update_stmt.execution_options(synchronize_session=False))
                if result.rowcount:
                    row = await session.scalar(select(UserSkuQuantity).where(UserSkuQuantity.user_id == user_id))
                    return _counter_to_dict(row), False
            try:
                row = new_row()
                async with self._transaction(operation) as session:
                    session.add(row)
                return _counter_to_dict(row), True
            except DuplicateRecordError:
                logger.info(f"Counter row for user {user_id} was created concurrently ({operation}, attempt {attempt}). Retrying update.")
        raise StoreError(f"Could not {operation} for user {user_id} after {_UPSERT_ATTEMPTS} attempts", code="conflict")

    async def increment_sku_quantity(
        self, user_id: int, amount: int, purchased_at: datetime
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Атомарно увеличивает sku_quantity на amount (одним UPDATE на стороне БД)
        и обновляет дату последней покупки. Создает строку, если ее нет.
        """
        stmt = (
            update(UserSkuQuantity)
            .where(UserSkuQuantity.user_id == user_id)
            .values(
                sku_quantity=func.coalesce(UserSkuQuantity.sku_quantity, 0) + amount,
                last_purchase_date=purchased_at,
            )
        )
        return await self._update_or_insert(
            "increment_sku_quantity",
            user_id,
            stmt,
            lambda: UserSkuQuantity(user_id=user_id, sku_quantity=amount, last_purchase_date=purchased_at),
        )

    async def decrement_sku_quantity(self, user_id: int, bot_id: Union[int, str]) -> Tuple[Optional[Dict[str, Any]], bool]:
        """
        Уменьшает sku_quantity на 1, только если она больше нуля.
        Возвращает (строка, было_ли_списание).
        """
        stmt = (
            update(UserSkuQuantity)
            .where(
                UserSkuQuantity.user_id == user_id,
                UserSkuQuantity.bot_id == str(bot_id),
                UserSkuQuantity.sku_quantity > 0,
            )
            .values(sku_quantity=UserSkuQuantity.sku_quantity - 1)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction("decrement_sku_quantity") as session:
            result = await session.execute(stmt)
            row = await session.scalar(select(UserSkuQuantity).where(UserSkuQuantity.user_id == user_id))
        return (_counter_to_dict(row) if row else None), bool(result.rowcount)

    async def save_bot_id(self, user_id: int, bot_id: Union[int, str]) -> Tuple[Dict[str, Any], bool]:
        """Привязывает bot_id к счетчику пользователя, создавая строку без количества при необходимости."""
        stmt = (
            update(UserSkuQuantity)
            .where(UserSkuQuantity.user_id == user_id)
            .values(bot_id=str(bot_id))
        )
        return await self._update_or_insert(
            "save_bot_id",
            user_id,
            stmt,
            lambda: UserSkuQuantity(user_id=user_id, bot_id=str(bot_id)),
        )
