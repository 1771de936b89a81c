# backend/app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.endpoints import customers, orders, sku

api_router_v1 = APIRouter()

# Пути вебхуков заданы в Shopify, поэтому роутеры подключаются без префиксов
api_router_v1.include_router(customers.router, tags=["Customers"])
api_router_v1.include_router(orders.router, tags=["Orders"])
api_router_v1.include_router(sku.router, tags=["SKU Counter"])
