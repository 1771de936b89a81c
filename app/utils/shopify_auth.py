# backend/app/utils/shopify_auth.py
import base64
import hashlib
import hmac
import logging
from typing import Optional

# Секрет передается аргументом, settings здесь не импортируем
logger = logging.getLogger(__name__)


def compute_webhook_hmac(body: bytes, secret: str) -> str:
    """base64(HMAC-SHA256(secret, body)) - формат заголовка X-Shopify-Hmac-Sha256."""
    digest = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode('utf-8')


def verify_webhook_hmac(body: bytes, received_hmac: Optional[str], secret: str) -> bool:
    """
    Проверяет подпись вебхука Shopify.

    Args:
        body: Сырое тело запроса (до парсинга JSON).
        received_hmac: Значение заголовка X-Shopify-Hmac-Sha256.
        secret: Секрет вебхуков приложения Shopify.

    Returns:
        True, если подпись совпала.
    """
    if not received_hmac:
        logger.warning("Shopify webhook HMAC header is missing.")
        return False
    calculated = compute_webhook_hmac(body, secret)
    if hmac.compare_digest(calculated, received_hmac.strip()):
        return True
    logger.warning("Shopify webhook HMAC mismatch.")
    return False
