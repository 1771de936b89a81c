"""Tests for the counter consumer: decrement-on-use, status check, bot association."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from app.services.sku import SkuCounterService
from app.services.store import RecordNotFoundError, StoreError

PURCHASED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestCheck:
    """Eligibility is default-open: an unset quantity allows the button."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity, eligible", [(None, True), (0, False), (3, True)])
    async def test_eligibility(self, quantity, eligible):
        store = AsyncMock()
        store.get_sku_counter.return_value = {
            "user_id": 42, "sku_quantity": quantity, "last_purchase_date": None, "bot_id": "7",
        }
        status = await SkuCounterService(store).check(42)
        assert status.show_button is eligible
        assert status.user_data.sku_quantity == quantity
        assert status.user_data.bot_id == "7"

    @pytest.mark.asyncio
    async def test_missing_row_propagates(self, store):
        with pytest.raises(RecordNotFoundError):
            await SkuCounterService(store).check(42)


class TestConsume:
    @pytest.mark.asyncio
    async def test_no_rows_returns_empty(self, store):
        assert await SkuCounterService(store).consume(42, 7) == []

    @pytest.mark.asyncio
    async def test_decrements_positive_row(self, store):
        await store.increment_sku_quantity(42, 2, PURCHASED_AT)
        await store.save_bot_id(42, 7)
        results = await SkuCounterService(store).consume(42, 7)
        assert len(results) == 1
        assert results[0].decremented is True
        assert results[0].sku_quantity == 1

    @pytest.mark.asyncio
    async def test_zero_row_reports_no_decrement(self, store):
        await store.increment_sku_quantity(42, 0, PURCHASED_AT)
        await store.save_bot_id(42, 7)
        results = await SkuCounterService(store).consume(42, 7)
        assert results[0].decremented is False
        assert results[0].sku_quantity == 0

    @pytest.mark.asyncio
    async def test_failed_row_update_is_reported(self):
        store = AsyncMock()
        store.find_sku_counters.return_value = [
            {"user_id": 42, "sku_quantity": 2, "last_purchase_date": None, "bot_id": "7"},
        ]
        store.decrement_sku_quantity.side_effect = StoreError("write failed")
        results = await SkuCounterService(store).consume(42, 7)
        assert results[0].decremented is False
        assert results[0].error == "write failed"
        assert results[0].sku_quantity == 2


class TestSaveBotId:
    @pytest.mark.asyncio
    async def test_keeps_existing_quantity(self, store):
        await store.increment_sku_quantity(42, 4, PURCHASED_AT)
        await SkuCounterService(store).save_bot_id(42, "bot-a")
        row = await store.get_sku_counter(42)
        assert row["sku_quantity"] == 4
        assert row["bot_id"] == "bot-a"
