# backend/app/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.api.v1.router import api_router_v1
from app.core.config import settings
from app.core.db import create_engine_and_sessionmaker, init_models
from app.services.shopify import ShopifyService
from app.services.store import StoreService

# --- Настройка логирования ---
log_level = settings.LOGGING_LEVEL.upper()
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
logger.info(f"Starting application with log level: {log_level}")


# --- Lifespan для управления ресурсами ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: Initializing resources...")
    engine, session_factory = create_engine_and_sessionmaker(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await init_models(engine)
    shopify_service = ShopifyService()

    # Клиенты создаются здесь и передаются в эндпоинты через зависимости
    app.state.store_service = StoreService(session_factory)
    app.state.shopify_service = shopify_service
    logger.info("Store and Shopify services initialized.")

    try:
        yield
    finally:
        logger.info("Application shutdown: Cleaning up resources...")
        await shopify_service.close_client()
        await engine.dispose()
        logger.info("Resources cleaned up successfully.")


# --- Создание экземпляра FastAPI ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Shopify webhook receiver that records customers and orders and keeps per-user SKU counters.",
    lifespan=lifespan,
)

# --- Настройка CORS ---
logger.info(f"Allowed CORS origins: {settings.CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Обработчики ошибок ---
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Request validation error: {exc.errors()} for {request.method} {request.url}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    logger.error(f"Pydantic model validation error: {exc.errors()} for {request.method} {request.url}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Data validation error"},
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception: {exc} for {request.method} {request.url}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# --- Подключение роутеров ---
app.include_router(api_router_v1, prefix=settings.API_PREFIX)
logger.info(f"Included API router at prefix: '{settings.API_PREFIX}'")

# --- Корневой эндпоинт ---
@app.get("/", tags=["Root"], summary="Health check")
async def read_root():
    """Простой эндпоинт для проверки работоспособности API."""
    return {"status": "ok", "project": settings.PROJECT_NAME}
