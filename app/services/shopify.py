# backend/app/services/shopify.py
import httpx
import json
import logging
from typing import Dict, Optional, Any, Union
from httpx import Headers
from app.core.config import settings

logger = logging.getLogger(__name__)

class ShopifyServiceError(Exception):
    """Базовый класс для ошибок сервиса Shopify."""
    def __init__(self, message="Error while talking to the Shopify Admin API", status_code=None, details=None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ShopifyService:
    """
    Асинхронный клиент Shopify Admin REST API.
    Используется только для чтения метаданных товаров из каталога.
    """
    def __init__(
        self,
        store_url: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        store_url = store_url or settings.SHOPIFY_STORE_URL
        api_version = api_version or settings.SHOPIFY_API_VERSION
        self.base_url = f"{store_url.rstrip('/')}/admin/api/{api_version}"
        headers = {"X-Shopify-Access-Token": access_token or settings.SHOPIFY_ACCESS_TOKEN}
        # Таймауты httpx по умолчанию, без ретраев
        self._client = httpx.AsyncClient(base_url=self.base_url, headers=headers, transport=transport)
        logger.info(f"ShopifyService initialized for URL: {self.base_url}")

    async def close_client(self):
        """Закрывает httpx клиент."""
        if hasattr(self, '_client') and self._client:
            await self._client.aclose()
            logger.info("Shopify HTTP client closed.")

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
    ) -> tuple[Optional[Any], Optional[Headers]]:
        """
        Внутренний метод для выполнения запросов к API с обработкой ошибок.
        Возвращает кортеж (данные_ответа, заголовки_ответа) или вызывает ShopifyServiceError.
        """
        logger.debug(f"Requesting {method} {endpoint} | Params: {params}")

        try:
            response = await self._client.request(method, endpoint, params=params)
            response.raise_for_status()

            try:
                response_data = response.json()
            except json.JSONDecodeError as json_err:
                logger.error(f"Failed to decode JSON response for {method} {endpoint}. Status: {response.status_code}. Response text: {response.text[:500]}...")
                raise ShopifyServiceError("Could not decode JSON response from Shopify", status_code=response.status_code, details=response.text) from json_err

            logger.debug(f"Received {response.status_code} response for {method} {endpoint}. Body sample: {str(response_data)[:200]}...")
            return response_data, response.headers

        except httpx.HTTPStatusError as e:
            error_status_code = e.response.status_code
            error_message = f"HTTP error {error_status_code} from Shopify API"
            error_details: Union[str, Any] = e.response.text
            try:
                # Shopify отдает ошибки в виде {"errors": "..."} или {"errors": {...}}
                error_details = e.response.json().get("errors", error_details)
            except (json.JSONDecodeError, AttributeError):
                pass
            logger.error(f"Shopify API error: {error_status_code} for {e.request.url}: {str(error_details)[:500]}")
            raise ShopifyServiceError(error_message, status_code=error_status_code, details=error_details) from e
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {e} for {e.request.url}")
            raise ShopifyServiceError("Shopify API request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Network error: {e} for {e.request.url}")
            raise ShopifyServiceError("Network error while connecting to Shopify API") from e

    async def get_product(self, product_id: Union[int, str]) -> Optional[Dict]:
        """Возвращает товар каталога или None, если его нет (404)."""
        logger.info(f"Fetching product with ID: {product_id}")
        try:
            data, _ = await self._request("GET", f"products/{product_id}.json")
        except ShopifyServiceError as e:
            if e.status_code == 404:
                return None
            raise
        if isinstance(data, dict) and isinstance(data.get("product"), dict):
            return data["product"]
        logger.error(f"Unexpected data received from Shopify for product {product_id}: {str(data)[:200]}")
        raise ShopifyServiceError(f"Unexpected response for product {product_id}", details=data)

    async def fetch_product_metadata(self, product_id: Optional[Union[int, str]]) -> Optional[Dict]:
        """
        Метаданные товара для позиции заказа.
        Никогда не выбрасывает исключений: любая ошибка означает "метаданных нет".
        """
        if product_id is None:
            return None
        try:
            product = await self.get_product(product_id)
        except ShopifyServiceError as e:
            logger.warning(f"Could not fetch metadata for product {product_id}: {e.message}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error fetching metadata for product {product_id}: {e}")
            return None
        if product:
            logger.info(f"Product metadata for {product_id}: title='{product.get('title')}', vendor='{product.get('vendor')}'")
        return product
