# storefront/clients/woocommerce.py

import httpx
from storefront.core.config import settings
from storefront.core.errors import NetworkUnreachableError, RequestTimeoutError, ServerError
import logging

logger = logging.getLogger(__name__)

class WooCommerceClient:
    """
    Асинхронный клиент для REST API WooCommerce (wc/v3).
    Аутентификация парой consumer key / consumer secret на каждом запросе.
    Клиент не кеширует и не повторяет запросы: любая ошибка сразу
    приводится к таксономии из storefront.core.errors.
    """
    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        timeout: float = 20.0,
        read_timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = f"{base_url.rstrip('/')}/wp-json/wc/v3"
        self.auth = (consumer_key, consumer_secret)
        timeouts = httpx.Timeout(timeout, read=read_timeout)
        self.async_client = httpx.AsyncClient(
            auth=self.auth,
            base_url=self.base_url,
            timeout=timeouts,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def get(self, endpoint: str, params: dict = None) -> httpx.Response:
        """
        Выполняет GET-запрос. В случае успеха возвращает объект Response.
        Таймаут -> RequestTimeoutError, DNS/соединение -> NetworkUnreachableError,
        ответ не 2xx -> ServerError с кодом и телом ответа.
        """
        try:
            response = await self.async_client.get(endpoint, params=params)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout during GET request to {endpoint!r}: {e!r}")
            raise RequestTimeoutError(f"Request to {endpoint} timed out") from e
        except httpx.TransportError as e:
            logger.warning(f"Network error during GET request to {endpoint!r}: {e!r}")
            raise NetworkUnreachableError(f"Catalog API is unreachable: {e}") from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            # 404 - штатная ситуация для удаленного товара, остальное логируем как ошибку
            if status_code == 404:
                logger.info(f"GET {e.request.url!r} returned 404.")
            else:
                logger.error(f"HTTP error during GET request to {e.request.url!r}: {status_code} {e.response.text}")
            raise ServerError(
                f"Catalog API responded with status {status_code}",
                status_code=status_code,
                body=e.response.text,
            ) from e

    async def aclose(self):
        await self.async_client.aclose()


def create_wc_client() -> WooCommerceClient:
    return WooCommerceClient(
        base_url=settings.WC_URL,
        consumer_key=settings.WC_CONSUMER_KEY,
        consumer_secret=settings.WC_CONSUMER_SECRET,
        timeout=settings.WC_TIMEOUT_SECONDS,
        read_timeout=settings.WC_READ_TIMEOUT_SECONDS,
    )

# Создаем синглтон
wc_client = create_wc_client()
