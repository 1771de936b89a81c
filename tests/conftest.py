"""Shared fixtures: isolated SQLite store, mocked Shopify catalog, ASGI client."""

from __future__ import annotations

import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-unused.db")
os.environ.setdefault("SHOPIFY_STORE_URL", "https://test-store.myshopify.com")
os.environ.setdefault("SHOPIFY_ACCESS_TOKEN", "shpat_test_token")
os.environ["SHOPIFY_WEBHOOK_SECRET"] = ""

from typing import Dict

import httpx
import pytest
import pytest_asyncio

from app.core.db import create_engine_and_sessionmaker, init_models
from app.services.shopify import ShopifyService
from app.services.store import StoreService

STORE_URL = "https://test-store.myshopify.com"
ACCESS_TOKEN = "shpat_test_token"


def catalog_transport(products: Dict[int, dict], calls: list | None = None) -> httpx.MockTransport:
    """Mock Shopify catalog: known product ids answer 200, everything else 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        product_id = int(request.url.path.rsplit("/", 1)[-1].removesuffix(".json"))
        if product_id in products:
            return httpx.Response(200, json={"product": products[product_id]})
        return httpx.Response(404, json={"errors": "Not Found"})

    return httpx.MockTransport(handler)


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh SQLite database per test."""
    engine, factory = create_engine_and_sessionmaker(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_models(engine)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture()
async def store(session_factory) -> StoreService:
    return StoreService(session_factory)


@pytest.fixture()
def catalog_calls() -> list:
    return []


@pytest_asyncio.fixture()
async def shopify(catalog_calls):
    service = ShopifyService(
        store_url=STORE_URL,
        access_token=ACCESS_TOKEN,
        api_version="2024-01",
        transport=catalog_transport({111: {"id": 111, "title": "Widget", "vendor": "Acme"}}, catalog_calls),
    )
    yield service
    await service.close_client()


@pytest_asyncio.fixture()
async def client(store, shopify):
    """ASGI client with the store and catalog injected through dependency overrides."""
    from app.dependencies import get_shopify_service, get_store_service
    from app.main import app

    app.dependency_overrides[get_store_service] = lambda: store
    app.dependency_overrides[get_shopify_service] = lambda: shopify
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
