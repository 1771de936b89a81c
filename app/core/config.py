# backend/app/core/config.py
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Shopify SKU Webhook Receiver"
    API_PREFIX: str = ""
    LOGGING_LEVEL: str = os.getenv("LOGGING_LEVEL", "INFO")
    PORT: int = 3000

    # --- Database Settings ---
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # --- Shopify Settings ---
    SHOPIFY_STORE_URL: str
    SHOPIFY_ACCESS_TOKEN: str
    SHOPIFY_API_VERSION: str = "2024-01"
    SHOPIFY_WEBHOOK_SECRET: Optional[str] = None

    # --- CORS ---
    CORS_ORIGINS_STR: str = "*"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Преобразует строку origins через запятую в список."""
        return [origin.strip().rstrip('/') for origin in self.CORS_ORIGINS_STR.split(',') if origin.strip()]

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

settings = Settings()
# Проверка при старте
if "your-store" in settings.SHOPIFY_STORE_URL:
    print("WARNING: SHOPIFY_STORE_URL seems to be a placeholder. Please update it in your .env file.")
if "dummy" in settings.SHOPIFY_ACCESS_TOKEN:
    print("WARNING: Shopify access token seems to be using a dummy value. Please update it in your .env file.")
if not settings.SHOPIFY_WEBHOOK_SECRET:
    print("WARNING: SHOPIFY_WEBHOOK_SECRET is not set. Incoming webhooks will not be authenticated.")
