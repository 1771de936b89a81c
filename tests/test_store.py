"""Tests for the store: inserts, single-row reads and atomic counter updates."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from app.models.customer import ShopifyCustomerWebhook
from app.models.tables import User
from app.services.store import DuplicateRecordError, RecordNotFoundError, StoreError

PURCHASED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc)


class TestInserts:
    @pytest.mark.asyncio
    async def test_duplicate_user_is_rejected(self, store):
        customer = ShopifyCustomerWebhook(id=42, email="a@example.com")
        await store.insert_user(customer)
        with pytest.raises(DuplicateRecordError):
            await store.insert_user(customer)

    @pytest.mark.asyncio
    async def test_numeric_total_spent_and_tag_list_are_stored_as_text(self, store, session_factory):
        customer = ShopifyCustomerWebhook.model_validate(
            {"id": 43, "email": "b@example.com", "total_spent": 120.5, "tags": ["vip", "wholesale"]}
        )
        await store.insert_user(customer)
        async with session_factory() as session:
            user = await session.get(User, 43)
        assert user.total_spent == "120.5"
        assert user.tags == "vip, wholesale"

    @pytest.mark.asyncio
    async def test_order_round_trips_line_items(self, store):
        items = [{"productName": "Widget", "sku": 5, "quantity": 1, "price": 9.99, "fulfillmentStatus": None}]
        await store.insert_order(1001, 42, "a@example.com", PURCHASED_AT, 9.99, "USD", items)
        order = await store.get_order(1001)
        assert order["customer_id"] == 42
        assert order["line_items"] == items

    @pytest.mark.asyncio
    async def test_duplicate_order_is_rejected(self, store):
        await store.insert_order(1001, 42, None, PURCHASED_AT, None, None, [])
        with pytest.raises(DuplicateRecordError):
            await store.insert_order(1001, 42, None, PURCHASED_AT, None, None, [])


class TestIncrement:
    @pytest.mark.asyncio
    async def test_creates_row_when_absent(self, store):
        row, created = await store.increment_sku_quantity(42, 5, PURCHASED_AT)
        assert created is True
        assert row["sku_quantity"] == 5

    @pytest.mark.asyncio
    async def test_adds_to_existing_quantity(self, store):
        await store.increment_sku_quantity(42, 5, PURCHASED_AT)
        row, created = await store.increment_sku_quantity(42, 3, LATER)
        assert created is False
        assert row["sku_quantity"] == 8
        assert row["last_purchase_date"].replace(tzinfo=None) == LATER.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_null_quantity_counts_as_zero(self, store):
        await store.save_bot_id(42, "bot-1")
        row, created = await store.increment_sku_quantity(42, 4, PURCHASED_AT)
        assert created is False
        assert row["sku_quantity"] == 4
        assert row["bot_id"] == "bot-1"

    @pytest.mark.asyncio
    async def test_concurrent_increments_do_not_lose_updates(self, store):
        await asyncio.gather(*(store.increment_sku_quantity(42, 1, PURCHASED_AT) for _ in range(10)))
        row = await store.get_sku_counter(42)
        assert row["sku_quantity"] == 10

    @pytest.mark.asyncio
    async def test_value_beyond_integer_range_is_store_error(self, store):
        with pytest.raises(StoreError) as exc_info:
            await store.increment_sku_quantity(42, 2 ** 70, PURCHASED_AT)
        assert exc_info.value.code == "out_of_range"
        with pytest.raises(RecordNotFoundError):
            await store.get_sku_counter(42)


class TestDecrement:
    @pytest.mark.asyncio
    async def test_decrements_by_one(self, store):
        await store.increment_sku_quantity(42, 2, PURCHASED_AT)
        await store.save_bot_id(42, 7)
        row, decremented = await store.decrement_sku_quantity(42, 7)
        assert decremented is True
        assert row["sku_quantity"] == 1

    @pytest.mark.asyncio
    async def test_never_goes_below_zero(self, store):
        await store.increment_sku_quantity(42, 0, PURCHASED_AT)
        await store.save_bot_id(42, 7)
        row, decremented = await store.decrement_sku_quantity(42, 7)
        assert decremented is False
        assert row["sku_quantity"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_decrements_stop_at_zero(self, store):
        await store.increment_sku_quantity(42, 3, PURCHASED_AT)
        await store.save_bot_id(42, 7)
        results = await asyncio.gather(*(store.decrement_sku_quantity(42, 7) for _ in range(5)))
        assert sum(1 for _, decremented in results if decremented) == 3
        assert (await store.get_sku_counter(42))["sku_quantity"] == 0


class TestReads:
    @pytest.mark.asyncio
    async def test_missing_counter_raises_not_found(self, store):
        with pytest.raises(RecordNotFoundError) as exc_info:
            await store.get_sku_counter(404)
        assert exc_info.value.code == "not_found"

    @pytest.mark.asyncio
    async def test_find_matches_user_and_bot(self, store):
        await store.save_bot_id(42, 7)
        assert len(await store.find_sku_counters(42, 7)) == 1
        assert len(await store.find_sku_counters(42, "7")) == 1
        assert await store.find_sku_counters(42, 8) == []

    @pytest.mark.asyncio
    async def test_save_bot_id_creates_row_without_quantity(self, store):
        row, created = await store.save_bot_id(42, 7)
        assert created is True
        assert row["sku_quantity"] is None
        assert row["bot_id"] == "7"
